from datetime import datetime, timedelta, timezone

import pytest
from pymongo.errors import DuplicateKeyError

from conftest import donor_doc, hospital_doc, patient_doc
from database import init_indexes
from models import BloodRequestCreate, BulkRequestItem, RequestFilters, RequestStatus, ResponseStatus, Urgency
from services.eligibility import ensure_utc
from services.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from services.request_lifecycle import (
    add_response,
    create_bulk_requests,
    create_request,
    delete_request,
    get_request,
    list_requests,
    my_requests,
    purge_expired_requests,
    request_detail,
    transition_status,
)

OWNER = patient_doc("Owner")
STRANGER = patient_doc("Stranger")


def request_data(**overrides):
    data = {
        "blood_type": "O+",
        "patient_name": "Asha",
        "contact_number": "9876543210",
        "city": "Pune",
    }
    data.update(overrides)
    return BloodRequestCreate(**data)


async def test_create_applies_defaults(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())

    assert doc["units_needed"] == 1
    assert doc["urgency"] == "urgent"
    assert doc["status"] == "active"
    assert doc["responses"] == []
    assert doc["requested_by"] == OWNER["id"]
    assert doc["expires_at"] - doc["created_at"] == timedelta(days=7)

    stored = await get_request(mock_db, doc["id"])
    elapsed = ensure_utc(stored["expires_at"]) - ensure_utc(stored["created_at"])
    assert abs(elapsed - timedelta(days=7)) <= timedelta(seconds=1)


async def test_create_keeps_explicit_values(mock_db):
    doc = await create_request(
        mock_db, OWNER, request_data(units_needed=3, urgency=Urgency.CRITICAL), ttl=timedelta(days=2)
    )
    assert doc["units_needed"] == 3
    assert doc["urgency"] == "critical"
    assert doc["urgency_rank"] == 0
    assert doc["expires_at"] - doc["created_at"] == timedelta(days=2)


def test_units_below_one_are_rejected():
    with pytest.raises(ValueError):
        request_data(units_needed=0)


async def test_owner_can_fulfil(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())
    updated = await transition_status(mock_db, OWNER, doc["id"], "fulfilled")
    assert updated["status"] == "fulfilled"
    assert (await get_request(mock_db, doc["id"]))["status"] == "fulfilled"


async def test_non_owner_cannot_change_status(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())
    with pytest.raises(PermissionDenied):
        await transition_status(mock_db, STRANGER, doc["id"], "cancelled")
    assert (await get_request(mock_db, doc["id"]))["status"] == "active"


async def test_invalid_status_rejected_before_lookup(mock_db):
    with pytest.raises(ValidationFailed):
        await transition_status(mock_db, OWNER, "does-not-exist", "expired")
    with pytest.raises(ValidationFailed):
        await transition_status(mock_db, OWNER, "does-not-exist", "approved")


async def test_terminal_states_cannot_be_left(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())
    await transition_status(mock_db, OWNER, doc["id"], "cancelled")
    with pytest.raises(ValidationFailed):
        await transition_status(mock_db, OWNER, doc["id"], "active")
    with pytest.raises(ValidationFailed):
        await transition_status(mock_db, OWNER, doc["id"], "fulfilled")
    assert (await get_request(mock_db, doc["id"]))["status"] == "cancelled"


async def test_missing_request_is_not_found(mock_db):
    with pytest.raises(NotFoundError):
        await transition_status(mock_db, OWNER, "missing", "fulfilled")
    with pytest.raises(NotFoundError):
        await delete_request(mock_db, OWNER, "missing")


async def test_delete_removes_request(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())
    with pytest.raises(PermissionDenied):
        await delete_request(mock_db, STRANGER, doc["id"])

    await delete_request(mock_db, OWNER, doc["id"])
    with pytest.raises(NotFoundError):
        await get_request(mock_db, doc["id"])


async def test_list_defaults_to_active_sorted_by_urgency(mock_db):
    await create_request(mock_db, OWNER, request_data(urgency=Urgency.NORMAL, patient_name="Normal"))
    await create_request(mock_db, OWNER, request_data(urgency=Urgency.CRITICAL, patient_name="Critical"))
    closed = await create_request(mock_db, OWNER, request_data(patient_name="Closed"))
    await transition_status(mock_db, OWNER, closed["id"], "fulfilled")
    await create_request(mock_db, OWNER, request_data(patient_name="Elsewhere", city="Delhi"))

    listed = await list_requests(mock_db, RequestFilters(city="pune"))
    assert [r["patient_name"] for r in listed] == ["Critical", "Normal"]

    fulfilled = await list_requests(mock_db, RequestFilters(status=RequestStatus.FULFILLED))
    assert [r["id"] for r in fulfilled] == [closed["id"]]


async def test_list_hides_requests_past_expiry(mock_db):
    past = datetime.now(timezone.utc) - timedelta(days=8)
    await create_request(mock_db, OWNER, request_data(patient_name="Old"), now=past)
    await create_request(mock_db, OWNER, request_data(patient_name="Fresh"))

    listed = await list_requests(mock_db, RequestFilters())
    assert [r["patient_name"] for r in listed] == ["Fresh"]


async def test_my_requests_only_returns_own(mock_db):
    await create_request(mock_db, OWNER, request_data())
    await create_request(mock_db, STRANGER, request_data())
    mine = await my_requests(mock_db, OWNER)
    assert len(mine) == 1
    assert mine[0]["requested_by"] == OWNER["id"]


async def test_donor_response_replaces_previous_answer(mock_db):
    donor = donor_doc("Helper")
    doc = await create_request(mock_db, OWNER, request_data())

    await add_response(mock_db, donor, doc["id"], ResponseStatus.PENDING, "Checking")
    updated = await add_response(mock_db, donor, doc["id"], ResponseStatus.ACCEPTED, "On my way")

    assert len(updated["responses"]) == 1
    stored = await get_request(mock_db, doc["id"])
    [response] = stored["responses"]
    assert response["donor_id"] == donor["id"]
    assert response["status"] == "accepted"
    assert response["message"] == "On my way"


async def test_responses_need_an_active_request_and_a_donor(mock_db):
    donor = donor_doc("Helper")
    doc = await create_request(mock_db, OWNER, request_data())

    with pytest.raises(PermissionDenied):
        await add_response(mock_db, STRANGER, doc["id"])

    await transition_status(mock_db, OWNER, doc["id"], "cancelled")
    with pytest.raises(ValidationFailed):
        await add_response(mock_db, donor, doc["id"], ResponseStatus.ACCEPTED)


async def test_bulk_requests_use_hospital_profile(mock_db):
    hospital = hospital_doc("Ruby")
    docs = await create_bulk_requests(mock_db, hospital, [
        BulkRequestItem(blood_type="A+", patient_name="One"),
        BulkRequestItem(blood_type="B-", patient_name="Two", units_needed=4, contact_number="9123456789"),
    ])

    assert len(docs) == 2
    assert all(doc["hospital_name"] == "Ruby General" for doc in docs)
    assert all(doc["location"]["city"] == "Pune" for doc in docs)
    assert docs[0]["contact_number"] == hospital["phone"]
    assert docs[1]["contact_number"] == "9123456789"
    assert docs[1]["units_needed"] == 4


async def test_bulk_requests_are_hospital_only(mock_db):
    with pytest.raises(PermissionDenied):
        await create_bulk_requests(mock_db, OWNER, [BulkRequestItem(blood_type="A+", patient_name="One")])


async def test_purge_deletes_only_expired(mock_db):
    now = datetime.now(timezone.utc)
    old = await create_request(mock_db, OWNER, request_data(), now=now - timedelta(days=10))
    fresh = await create_request(mock_db, OWNER, request_data())

    assert await purge_expired_requests(mock_db, now) == 1
    with pytest.raises(NotFoundError):
        await get_request(mock_db, old["id"])
    assert (await get_request(mock_db, fresh["id"]))["status"] == "active"


async def test_indexes_enforce_unique_email(mock_db):
    await init_indexes(mock_db)
    await mock_db.users.insert_one(patient_doc("Twin"))
    with pytest.raises(DuplicateKeyError):
        await mock_db.users.insert_one(patient_doc("Twin"))


async def test_expired_request_rejects_status_change_and_responses(mock_db):
    past = datetime.now(timezone.utc) - timedelta(days=8)
    doc = await create_request(mock_db, OWNER, request_data(), now=past)

    with pytest.raises(ValidationFailed):
        await transition_status(mock_db, OWNER, doc["id"], "fulfilled")
    with pytest.raises(ValidationFailed):
        await add_response(mock_db, donor_doc("Late"), doc["id"], ResponseStatus.ACCEPTED)

    stored = await get_request(mock_db, doc["id"])
    assert stored["status"] == "active"
    assert stored["responses"] == []


async def test_views_carry_account_details(mock_db):
    owner = patient_doc("Meera")
    donor = donor_doc("Helper", blood_type="O+")
    await mock_db.users.insert_many([dict(owner), dict(donor)])
    doc = await create_request(mock_db, owner, request_data())
    await add_response(mock_db, donor, doc["id"], ResponseStatus.ACCEPTED)

    [listed] = await list_requests(mock_db, RequestFilters())
    assert listed["requester"] == {
        "name": "Meera", "email": "meera@example.com", "phone": "9876543210", "role": "patient",
    }
    assert (await request_detail(mock_db, doc["id"]))["requester"]["name"] == "Meera"

    [mine] = await my_requests(mock_db, owner)
    [response] = mine["responses"]
    assert response["donor"]["name"] == "Helper"
    assert response["donor"]["blood_type"] == "O+"
    assert response["donor"]["location"]["city"] == "Pune"
    assert "email" not in response["donor"]


async def test_requester_is_none_when_account_is_gone(mock_db):
    doc = await create_request(mock_db, OWNER, request_data())
    assert (await request_detail(mock_db, doc["id"]))["requester"] is None
