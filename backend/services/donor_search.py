"""
Donor search.

Translates role-scoped filters into MongoDB queries over donor accounts and
annotates every hit with the donor's current eligibility.
"""
import re
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING

from models import DonorSearchFilters, DonorSummary, DonorDetail, RequestStatus, UserRole
from services.accounts import CONTACT_FIELDS, attach_requesters
from services.eligibility import can_donate
from services.exceptions import NotFoundError

SEARCH_LIMIT = 50
BULK_SEARCH_LIMIT = 100
RELEVANT_REQUESTS_LIMIT = 20

DONOR_PROJECTION = {
    "_id": 0, "id": 1, "name": 1, "email": 1, "phone": 1, "blood_type": 1,
    "location": 1, "available": 1, "last_donation_date": 1, "created_at": 1,
}


def contains(text: str) -> dict:
    """Case-insensitive substring match."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}


def build_donor_query(filters: DonorSearchFilters) -> dict:
    query = {"role": UserRole.DONOR.value, "is_active": True}

    blood_types = [bt.value for bt in filters.blood_types]
    if filters.blood_type is not None:
        query["blood_type"] = filters.blood_type.value
    elif blood_types:
        query["blood_type"] = {"$in": blood_types}

    if filters.available_only:
        query["available"] = True
    if filters.city:
        query["location.city"] = contains(filters.city)
    if filters.state:
        query["location.state"] = contains(filters.state)
    if filters.pincode:
        query["location.pincode"] = filters.pincode.strip()
    return query


def summarize(donor: dict, now: Optional[datetime] = None) -> dict:
    return DonorSummary(
        id=donor["id"],
        name=donor["name"],
        blood_type=donor["blood_type"],
        location=donor.get("location") or {},
        phone=donor["phone"],
        email=donor["email"],
        available=donor.get("available", False),
        can_donate=can_donate(donor.get("last_donation_date"), now),
        last_donation_date=donor.get("last_donation_date"),
    ).model_dump(mode="json")


async def _find_donors(db, query: dict, sort: list, limit: int, now: Optional[datetime]) -> List[dict]:
    cursor = db.users.find(query, DONOR_PROJECTION).sort(sort).limit(limit)
    donors = await cursor.to_list(limit)
    return [summarize(donor, now) for donor in donors]


async def search_donors(db, filters: DonorSearchFilters, now: Optional[datetime] = None) -> List[dict]:
    """Single search: newest registrations first, at most 50 hits."""
    return await _find_donors(
        db, build_donor_query(filters), [("created_at", DESCENDING)], SEARCH_LIMIT, now
    )


async def bulk_search_donors(db, filters: DonorSearchFilters, now: Optional[datetime] = None) -> List[dict]:
    """Hospital search: grouped by blood type with available donors first, at most 100 hits."""
    return await _find_donors(
        db,
        build_donor_query(filters),
        [("blood_type", ASCENDING), ("available", DESCENDING)],
        BULK_SEARCH_LIMIT,
        now,
    )


async def get_donor(db, donor_id: str, now: Optional[datetime] = None) -> dict:
    donor = await db.users.find_one({"id": donor_id}, {"_id": 0, "password_hash": 0})
    if not donor or donor.get("role") != UserRole.DONOR.value:
        raise NotFoundError("Donor not found")
    summary = summarize(donor, now)
    return DonorDetail(**summary, member_since=donor.get("created_at")).model_dump(mode="json")


async def relevant_requests(db, donor: dict, now: Optional[datetime] = None) -> List[dict]:
    """Active requests for the donor's blood type in the donor's city."""
    now = now or datetime.now(timezone.utc)
    query = {
        "blood_type": donor.get("blood_type"),
        "status": RequestStatus.ACTIVE.value,
        "expires_at": {"$gt": now},
    }
    city = (donor.get("location") or {}).get("city")
    if city:
        query["location.city"] = contains(city)
    cursor = db.blood_requests.find(query, {"_id": 0}).sort(
        [("urgency_rank", ASCENDING), ("created_at", DESCENDING)]
    ).limit(RELEVANT_REQUESTS_LIMIT)
    requests = await cursor.to_list(RELEVANT_REQUESTS_LIMIT)
    return await attach_requesters(db, requests, CONTACT_FIELDS)
