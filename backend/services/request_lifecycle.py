"""
Blood request lifecycle.

Requests start ``active`` and end ``fulfilled``, ``cancelled`` or ``expired``.
Only the account that created a request may change its status or delete it;
expiry is driven by time, never by a caller.
"""
import logging
from datetime import datetime, timezone, timedelta
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING

from models import (
    BloodRequest, BloodRequestCreate, BulkRequestItem, DonorResponse,
    LocationSnapshot, RequestFilters, RequestStatus, ResponseStatus,
    Urgency, URGENCY_RANK, UserRole
)
from services.accounts import attach_requesters, attach_responders
from services.donor_search import contains
from services.eligibility import ensure_utc
from services.exceptions import NotFoundError, PermissionDenied, ValidationFailed

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)
LIST_LIMIT = 50
OWN_REQUESTS_LIMIT = 100

# Statuses a requester may set by hand
SETTABLE_STATUSES = {
    RequestStatus.ACTIVE.value,
    RequestStatus.FULFILLED.value,
    RequestStatus.CANCELLED.value,
}
TERMINAL_STATUSES = {
    RequestStatus.FULFILLED.value,
    RequestStatus.CANCELLED.value,
    RequestStatus.EXPIRED.value,
}


def new_request(
    requester: dict,
    blood_type,
    patient_name: str,
    contact_number: str,
    location: LocationSnapshot,
    units_needed: Optional[int] = None,
    urgency: Optional[Urgency] = None,
    hospital_name: Optional[str] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    ttl: timedelta = DEFAULT_TTL,
    now: Optional[datetime] = None,
) -> BloodRequest:
    created_at = now or datetime.now(timezone.utc)
    urgency = urgency or Urgency.URGENT
    return BloodRequest(
        requested_by=requester["id"],
        blood_type=blood_type,
        units_needed=units_needed or 1,
        urgency=urgency,
        urgency_rank=URGENCY_RANK[Urgency(urgency)],
        location=location,
        hospital_name=hospital_name,
        patient_name=patient_name,
        contact_number=contact_number,
        reason=reason,
        notes=notes,
        created_at=created_at,
        updated_at=created_at,
        expires_at=created_at + ttl,
    )


async def _insert(db, request: BloodRequest) -> dict:
    doc = request.model_dump()
    await db.blood_requests.insert_one(doc)
    doc.pop("_id", None)
    return doc


async def create_request(
    db,
    requester: dict,
    data: BloodRequestCreate,
    ttl: timedelta = DEFAULT_TTL,
    now: Optional[datetime] = None,
) -> dict:
    request = new_request(
        requester,
        blood_type=data.blood_type,
        patient_name=data.patient_name.strip(),
        contact_number=data.contact_number.strip(),
        location=LocationSnapshot(
            address=data.address,
            city=data.city,
            state=data.state,
            pincode=data.pincode,
        ),
        units_needed=data.units_needed,
        urgency=data.urgency,
        hospital_name=data.hospital_name,
        reason=data.reason,
        notes=data.notes,
        ttl=ttl,
        now=now,
    )
    doc = await _insert(db, request)
    logger.info("Blood request %s created by %s (%s, %s)", request.id, requester["id"], request.blood_type, request.urgency)
    return doc


async def create_bulk_requests(
    db,
    hospital: dict,
    items: List[BulkRequestItem],
    ttl: timedelta = DEFAULT_TTL,
    now: Optional[datetime] = None,
) -> List[dict]:
    """Create one request per item, filled in from the hospital's profile."""
    if hospital.get("role") != UserRole.HOSPITAL.value:
        raise PermissionDenied("Only hospitals can create bulk requests")
    if not items:
        raise ValidationFailed("Requests array is required")

    location = LocationSnapshot(**{
        key: value for key, value in (hospital.get("location") or {}).items()
        if key in ("address", "city", "state", "pincode")
    })
    created = []
    for item in items:
        request = new_request(
            hospital,
            blood_type=item.blood_type,
            patient_name=item.patient_name.strip(),
            contact_number=(item.contact_number or hospital.get("phone") or "").strip(),
            location=location,
            units_needed=item.units_needed,
            urgency=item.urgency,
            hospital_name=hospital.get("hospital_name"),
            reason=item.reason,
            notes=item.notes,
            ttl=ttl,
            now=now,
        )
        if not request.contact_number:
            raise ValidationFailed("Contact number is required")
        created.append(request)

    docs = []
    for request in created:
        docs.append(await _insert(db, request))
    logger.info("Hospital %s created %d bulk requests", hospital["id"], len(docs))
    return docs


async def list_requests(db, filters: RequestFilters, now: Optional[datetime] = None) -> List[dict]:
    query = {}
    if filters.blood_type:
        query["blood_type"] = filters.blood_type.value
    if filters.city:
        query["location.city"] = contains(filters.city)
    if filters.urgency:
        query["urgency"] = filters.urgency.value
    if filters.status:
        query["status"] = filters.status.value
    else:
        query["status"] = RequestStatus.ACTIVE.value
        # hide records past expiry that the TTL monitor has not removed yet
        query["expires_at"] = {"$gt": now or datetime.now(timezone.utc)}

    cursor = db.blood_requests.find(query, {"_id": 0}).sort(
        [("urgency_rank", ASCENDING), ("created_at", DESCENDING)]
    ).limit(LIST_LIMIT)
    return await attach_requesters(db, await cursor.to_list(LIST_LIMIT))


async def my_requests(db, user: dict, status: Optional[RequestStatus] = None) -> List[dict]:
    query = {"requested_by": user["id"]}
    if status:
        query["status"] = status.value
    cursor = db.blood_requests.find(query, {"_id": 0}).sort("created_at", DESCENDING).limit(OWN_REQUESTS_LIMIT)
    return await attach_responders(db, await cursor.to_list(OWN_REQUESTS_LIMIT))


async def get_request(db, request_id: str) -> dict:
    request = await db.blood_requests.find_one({"id": request_id}, {"_id": 0})
    if not request:
        raise NotFoundError("Blood request not found")
    return request


async def request_detail(db, request_id: str) -> dict:
    """A single request with its requester's contact details."""
    request = await get_request(db, request_id)
    [request] = await attach_requesters(db, [request])
    return request


def _is_expired(request: dict, now: datetime) -> bool:
    expires_at = request.get("expires_at")
    return expires_at is not None and ensure_utc(expires_at) <= now


async def _owned_request(db, user: dict, request_id: str, action: str) -> dict:
    request = await get_request(db, request_id)
    if request["requested_by"] != user["id"]:
        logger.warning("Account %s tried to %s request %s it does not own", user["id"], action, request_id)
        raise PermissionDenied(f"Not authorized to {action} this request")
    return request


async def transition_status(db, user: dict, request_id: str, status: str, now: Optional[datetime] = None) -> dict:
    if status not in SETTABLE_STATUSES:
        raise ValidationFailed("Invalid status")

    request = await _owned_request(db, user, request_id, "update")
    current = request["status"]
    now = now or datetime.now(timezone.utc)
    if current == RequestStatus.ACTIVE.value and _is_expired(request, now):
        raise ValidationFailed("Request has expired")
    if current == status:
        return request
    if current in TERMINAL_STATUSES:
        raise ValidationFailed(f"Cannot change status of a {current} request")

    await db.blood_requests.update_one(
        {"id": request_id},
        {"$set": {"status": status, "updated_at": now}}
    )
    request["status"] = status
    request["updated_at"] = now
    logger.info("Blood request %s moved from %s to %s", request_id, current, status)
    return request


async def delete_request(db, user: dict, request_id: str) -> None:
    await _owned_request(db, user, request_id, "delete")
    result = await db.blood_requests.delete_one({"id": request_id})
    if result.deleted_count == 0:
        raise NotFoundError("Blood request not found")
    logger.info("Blood request %s deleted by %s", request_id, user["id"])


async def add_response(
    db,
    donor: dict,
    request_id: str,
    status: ResponseStatus = ResponseStatus.PENDING,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Record a donor's answer; a second answer replaces the donor's first one."""
    if donor.get("role") != UserRole.DONOR.value:
        raise PermissionDenied("Only donors can respond to requests")

    request = await get_request(db, request_id)
    if request["status"] != RequestStatus.ACTIVE.value:
        raise ValidationFailed("Only active requests accept responses")
    now = now or datetime.now(timezone.utc)
    if _is_expired(request, now):
        raise ValidationFailed("Request has expired")

    response = DonorResponse(donor_id=donor["id"], status=status, message=message)
    responses = [r for r in request.get("responses", []) if r.get("donor_id") != donor["id"]]
    responses.append(response.model_dump())

    result = await db.blood_requests.update_one(
        {"id": request_id, "status": RequestStatus.ACTIVE.value, "expires_at": {"$gt": now}},
        {"$set": {"responses": responses, "updated_at": now}}
    )
    if result.matched_count == 0:
        raise ValidationFailed("Only active requests accept responses")

    request["responses"] = responses
    logger.info("Donor %s responded %s to request %s", donor["id"], response.status, request_id)
    return request


async def purge_expired_requests(db, now: Optional[datetime] = None) -> int:
    """Delete requests whose expiry has passed."""
    now = now or datetime.now(timezone.utc)
    result = await db.blood_requests.delete_many({"expires_at": {"$lte": now}})
    if result.deleted_count:
        logger.info("Purged %d expired blood requests", result.deleted_count)
    return result.deleted_count
