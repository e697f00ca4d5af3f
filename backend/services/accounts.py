"""
Account Service
Registration, credential checks and donor profile updates.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from models import (
    DonorAccount, PatientAccount, HospitalAccount, DonorRegistration,
    HospitalRegistration, DonationStats, UserRole
)
from services.auth import hash_password, verify_password
from services.eligibility import (
    ensure_utc, can_donate, days_since_last_donation,
    days_until_eligible, next_eligible_date
)
from services.exceptions import AuthenticationFailed, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

PUBLIC_PROJECTION = {"_id": 0, "password_hash": 0}

PROFILE_FIELDS = (
    "id", "name", "email", "phone", "role", "location", "blood_type",
    "available", "last_donation_date", "total_donations", "hospital_name",
    "registration_number", "profile_complete", "profile_picture", "created_at",
)


def public_profile(user: dict) -> dict:
    """Account fields that are safe to return to clients."""
    return {key: user[key] for key in PROFILE_FIELDS if key in user}


def build_account(data):
    common = dict(
        name=data.name,
        email=data.email,
        phone=data.phone,
        password_hash=hash_password(data.password),
        location=data.location(),
        profile_complete=True,
    )
    if isinstance(data, DonorRegistration):
        return DonorAccount(blood_type=data.blood_type, available=True, **common)
    if isinstance(data, HospitalRegistration):
        return HospitalAccount(
            hospital_name=data.hospital_name,
            registration_number=data.registration_number,
            **common
        )
    return PatientAccount(**common)


async def register_account(db, data) -> dict:
    existing = await db.users.find_one({"email": data.email}, {"_id": 0, "id": 1})
    if existing:
        raise ConflictError("User already exists with this email")

    account = build_account(data)
    doc = account.model_dump()
    try:
        await db.users.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictError("User already exists with this email")

    doc.pop("_id", None)
    logger.info("Registered %s account %s", account.role, account.id)
    return doc


async def authenticate(db, email: str, password: str) -> dict:
    user = await db.users.find_one({"email": email.strip().lower()}, {"_id": 0})
    if not user or not verify_password(password, user.get("password_hash")):
        raise AuthenticationFailed("Invalid credentials")
    if not user.get("is_active", True):
        raise AuthenticationFailed("Account is deactivated")
    user.pop("password_hash", None)
    return user


async def get_account(db, user_id: str) -> dict:
    user = await db.users.find_one({"id": user_id}, PUBLIC_PROJECTION)
    if not user:
        raise NotFoundError("User not found")
    return user


async def set_availability(db, donor: dict, available: bool) -> dict:
    updated = await db.users.find_one_and_update(
        {"id": donor["id"], "role": UserRole.DONOR.value},
        {"$set": {"available": available, "updated_at": datetime.now(timezone.utc)}},
        projection=PUBLIC_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("Donor not found")
    logger.info("Donor %s availability set to %s", donor["id"], available)
    return updated


async def record_donation(db, donor: dict, donation_date: Optional[datetime] = None) -> dict:
    """Store the donation date and take the donor off the available list."""
    donated_at = ensure_utc(donation_date) if donation_date else datetime.now(timezone.utc)
    updated = await db.users.find_one_and_update(
        {"id": donor["id"], "role": UserRole.DONOR.value},
        {
            "$set": {
                "last_donation_date": donated_at,
                "available": False,
                "updated_at": datetime.now(timezone.utc),
            },
            "$inc": {"total_donations": 1},
        },
        projection=PUBLIC_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("Donor not found")
    logger.info("Recorded donation for donor %s", donor["id"])
    return updated


def donation_stats(donor: dict, now: Optional[datetime] = None) -> DonationStats:
    last = donor.get("last_donation_date")
    return DonationStats(
        total_donations=donor.get("total_donations", 0),
        last_donation_date=last,
        can_donate=can_donate(last, now),
        days_since_last_donation=days_since_last_donation(last, now),
        days_until_eligible=days_until_eligible(last, now),
        next_eligible_date=next_eligible_date(last),
    )


# Account fields shown alongside blood requests
REQUESTER_FIELDS = ("name", "email", "phone", "role")
CONTACT_FIELDS = ("name", "phone")
RESPONDER_FIELDS = ("name", "phone", "blood_type", "location")


def _pick(account: Optional[dict], fields) -> Optional[dict]:
    if account is None:
        return None
    return {field: account.get(field) for field in fields}


async def accounts_by_id(db, ids: Iterable[str], fields) -> dict:
    """Load the given accounts in one query, keyed by id."""
    wanted = list({account_id for account_id in ids if account_id})
    if not wanted:
        return {}
    projection = {"_id": 0, "id": 1, **{field: 1 for field in fields}}
    accounts = await db.users.find({"id": {"$in": wanted}}, projection).to_list(len(wanted))
    return {account["id"]: account for account in accounts}


async def attach_requesters(db, requests: List[dict], fields=REQUESTER_FIELDS) -> List[dict]:
    """Add a ``requester`` summary to each request; None once the account is gone."""
    accounts = await accounts_by_id(db, (request.get("requested_by") for request in requests), fields)
    for request in requests:
        request["requester"] = _pick(accounts.get(request.get("requested_by")), fields)
    return requests


async def attach_responders(db, requests: List[dict]) -> List[dict]:
    """Add a ``donor`` summary to every response on each request."""
    donor_ids = [
        response.get("donor_id")
        for request in requests
        for response in request.get("responses", [])
    ]
    accounts = await accounts_by_id(db, donor_ids, RESPONDER_FIELDS)
    for request in requests:
        for response in request.get("responses", []):
            response["donor"] = _pick(accounts.get(response.get("donor_id")), RESPONDER_FIELDS)
    return requests
