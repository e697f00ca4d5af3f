import pytest


@pytest.fixture()
def hospital(register):
    return register("hospital", "ruby@example.com", hospital_name="Ruby Hall")


def test_routes_are_hospital_only(client, register):
    headers, _ = register("patient", "pat@example.com")
    for path in ("/api/hospitals/dashboard", "/api/hospitals/my-requests", "/api/hospitals/blood-stats"):
        resp = client.get(path, headers=headers)
        assert resp.status_code == 403, path
    resp = client.post("/api/hospitals/bulk-search", json={}, headers=headers)
    assert resp.status_code == 403


def test_bulk_search_defaults_to_hospital_city(client, hospital, register):
    headers, _ = hospital
    register("donor", "a@example.com", name="Local A", blood_type="A+")
    register("donor", "o@example.com", name="Local O", blood_type="O-")
    register("donor", "far@example.com", name="Far A", blood_type="A+", city="Nagpur")

    resp = client.post("/api/hospitals/bulk-search", json={"blood_types": ["A+", "O-"]}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [donor["name"] for donor in body["donors"]] == ["Local A", "Local O"]

    resp = client.post("/api/hospitals/bulk-search", json={"city": "Nagpur"}, headers=headers)
    assert [donor["name"] for donor in resp.json()["donors"]] == ["Far A"]


def test_bulk_request_uses_hospital_profile(client, hospital):
    headers, user = hospital
    resp = client.post("/api/hospitals/bulk-request", json={"requests": [
        {"blood_type": "A+", "patient_name": "Ward 3", "units_needed": 2},
        {"blood_type": "O-", "patient_name": "ICU", "urgency": "critical", "contact_number": "9123456789"},
    ]}, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["count"] == 2
    first, second = body["requests"]
    assert first["hospital_name"] == "Ruby Hall"
    assert first["requested_by"] == user["id"]
    assert first["contact_number"] == user["phone"]
    assert first["location"]["city"] == "Pune"
    assert second["contact_number"] == "9123456789"

    listed = client.get("/api/hospitals/my-requests", headers=headers).json()
    assert listed["count"] == 2


def test_bulk_request_needs_items(client, hospital):
    headers, _ = hospital
    resp = client.post("/api/hospitals/bulk-request", json={"requests": []}, headers=headers)
    assert resp.status_code == 400


def test_dashboard_counts(client, hospital, register):
    headers, _ = hospital
    register("donor", "a@example.com", blood_type="A+")
    donor_headers, _ = register("donor", "b@example.com", blood_type="B+")
    client.put("/api/donors/availability", json={"available": False}, headers=donor_headers)

    created = client.post("/api/hospitals/bulk-request", json={"requests": [
        {"blood_type": "A+", "patient_name": "One"},
        {"blood_type": "B+", "patient_name": "Two"},
    ]}, headers=headers).json()["requests"]
    client.put(f"/api/requests/{created[0]['id']}/status", json={"status": "fulfilled"}, headers=headers)

    stats = client.get("/api/hospitals/dashboard", headers=headers).json()["stats"]
    assert stats["requests"] == {"total": 2, "active": 1, "fulfilled": 1, "cancelled": 0}
    assert stats["donors"] == {"total": 2, "available": 1}
    assert stats["blood_type_distribution"] == {"A+": 1}


def test_blood_stats(client, hospital, register):
    headers, _ = hospital
    register("donor", "a@example.com", blood_type="A+")
    register("donor", "a2@example.com", blood_type="A+")
    client.post("/api/hospitals/bulk-request", json={"requests": [
        {"blood_type": "A+", "patient_name": "One", "units_needed": 3},
        {"blood_type": "A+", "patient_name": "Two", "units_needed": 2},
    ]}, headers=headers)

    body = client.get("/api/hospitals/blood-stats", headers=headers).json()
    assert body["city"] == "Pune"
    assert body["donor_stats"] == [{"blood_type": "A+", "total": 2, "available": 2}]
    assert body["request_stats"] == [{"blood_type": "A+", "total_requests": 2, "total_units_needed": 5}]
