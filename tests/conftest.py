from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "backend"))

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from database import get_db
from models import DonorAccount, HospitalAccount, PatientAccount, Location
from server import create_app

DEFAULT_LOCATION = {
    "address": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}


@pytest.fixture()
def settings():
    return Settings(
        jwt_secret="test-secret",
        expiry_sweep_seconds=0,
        environment="test",
    )


@pytest.fixture()
def mock_db():
    return AsyncMongoMockClient()["blood_connect_test"]


@pytest.fixture()
def client(settings, mock_db):
    app = create_app(settings)
    app.dependency_overrides[get_db] = lambda: mock_db
    return TestClient(app)


def registration(role: str, email: str, **overrides) -> dict:
    payload = {
        "name": f"Test {role.title()}",
        "email": email,
        "password": "secret123",
        "phone": "9876543210",
        "role": role,
        **DEFAULT_LOCATION,
    }
    if role == "donor":
        payload["blood_type"] = "A+"
    if role == "hospital":
        payload["hospital_name"] = "City Hospital"
        payload["registration_number"] = "MH-1234"
    payload.update(overrides)
    return payload


@pytest.fixture()
def register(client):
    """Register an account through the API and return (auth headers, user)."""

    def _register(role: str, email: str, **overrides):
        resp = client.post("/api/auth/register", json=registration(role, email, **overrides))
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _register


def donor_doc(name="Donor", blood_type="A+", city="Pune", state="Maharashtra", pincode="411001",
              created_at=None, **overrides) -> dict:
    donor = DonorAccount(
        name=name,
        email=overrides.pop("email", f"{name.lower().replace(' ', '.')}@example.com"),
        phone="9876543210",
        location=Location(address="1 Main Street", city=city, state=state, pincode=pincode),
        blood_type=blood_type,
        created_at=created_at or datetime.now(timezone.utc),
        **overrides,
    )
    return donor.model_dump()


def patient_doc(name="Patient", **overrides) -> dict:
    return PatientAccount(
        name=name,
        email=f"{name.lower()}@example.com",
        phone="9876543210",
        location=Location(**DEFAULT_LOCATION),
        **overrides,
    ).model_dump()


def hospital_doc(name="Hospital", city="Pune", **overrides) -> dict:
    return HospitalAccount(
        name=name,
        email=f"{name.lower()}@example.com",
        phone="9876543210",
        location=Location(address="1 Hospital Road", city=city, state="Maharashtra", pincode="411001"),
        hospital_name=f"{name} General",
        registration_number="REG-1",
        **overrides,
    ).model_dump()
