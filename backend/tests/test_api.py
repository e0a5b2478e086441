import json

from conftest import CITY_GENERAL

EMERGENCY = {
    "patient_id": "patient-1",
    "lat": CITY_GENERAL[0],
    "lon": CITY_GENERAL[1],
    "type": "Cardiac arrest",
}


def _create(client, **overrides):
    response = client.post("/api/emergencies", json={**EMERGENCY, **overrides})
    assert response.status_code == 201
    return response.json()


def test_api_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_emergency(client):
    body = _create(client)
    assert body["emergency"]["status"] == "assigned"
    assert body["emergency"]["assigned_hospital_id"] == "hosp-001"
    assert body["triage"]["score"] == 30
    assert body["routing"]["primary"]["eta"] == 0


def test_create_emergency_validates_coordinates(client):
    response = client.post("/api/emergencies", json={**EMERGENCY, "lat": 120})
    assert response.status_code == 422
    response = client.post("/api/emergencies", json={**EMERGENCY, "needs": ["Dialysis"]})
    assert response.status_code == 422


def test_get_and_filter_emergencies(client):
    created = _create(client)["emergency"]
    assert client.get(f"/api/emergencies/{created['id']}").json()["id"] == created["id"]
    assert client.get("/api/emergencies/missing").status_code == 404

    listed = client.get("/api/emergencies", params={"status": "assigned"}).json()
    assert [e["id"] for e in listed] == [created["id"]]
    assert client.get("/api/emergencies", params={"triage_level": "red"}).json() == []


def test_status_update_and_timeline(client):
    created = _create(client)["emergency"]
    response = client.patch(f"/api/emergencies/{created['id']}", json={"status": "enroute"})
    assert response.status_code == 200
    assert response.json()["status"] == "enroute"

    timeline = client.get(f"/api/emergencies/{created['id']}/timeline").json()
    assert [e["kind"] for e in timeline] == ["created", "assigned", "triage", "enroute"]

    bad = client.patch(f"/api/emergencies/{created['id']}", json={"status": "flying"})
    assert bad.status_code == 422


def test_reroute(client):
    created = _create(client)["emergency"]
    response = client.post(f"/api/emergencies/{created['id']}/reroute", json={"reason": "Traffic"})
    assert response.status_code == 200
    assert response.json()["hospital"]["id"] == "hosp-003"

    response = client.post(f"/api/emergencies/{created['id']}/reroute")
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "No alternative hospitals available"
    assert detail["routing"]["primary"]["hospital"]["id"] == "hosp-002"


def test_hospitals(client):
    hospitals = client.get("/api/hospitals").json()
    assert len(hospitals) == 3
    assert client.get("/api/hospitals/hosp-001").json()["name"] == "City General Hospital"
    assert client.get("/api/hospitals/missing").status_code == 404

    updated = client.patch("/api/hospitals/hosp-001", json={"beds_available": 2}).json()
    assert updated["beds_available"] == 2
    assert updated["capabilities"] == ["ICU", "Ventilator", "Cardio"]


def test_set_unavailable(client):
    created = _create(client)["emergency"]
    response = client.post(
        "/api/hospitals/hosp-001/set-unavailable", json={"emergency_id": created["id"]}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["hospital"]["accepting_emergencies"] is False
    assert body["reroute"]["hospital"]["id"] == "hosp-003"


def test_import_csv(client):
    response = client.post(
        "/api/hospitals/import-csv",
        json={"csv_data": "North Clinic,13.0,77.6,3,1,ICU,true\nbroken,,"},
    )
    assert response.status_code == 200
    assert response.json()["imported"] == 1
    assert len(client.get("/api/hospitals").json()) == 4

    assert client.post("/api/hospitals/import-csv", json={"csv_data": ""}).status_code == 400


def test_ambulance_positions(client):
    response = client.post(
        "/api/ambulance/positions",
        json={
            "positions": [
                {"ambulance_id": "amb-1", "lat": 12.97, "lon": 77.59},
                {"ambulanceId": "amb-1", "lat": 12.98, "lon": 77.6},
                {"ambulance_id": "amb-1", "lat": "north"},
            ]
        },
    )
    assert response.status_code == 200
    assert len(response.json()["positions"]) == 2
    assert len(client.get("/api/ambulance/positions/amb-1").json()) == 2


def test_profiles(client):
    assert client.get("/api/profiles/demo-driver").json()["role"] == "driver"
    assert client.get("/api/profiles/nobody").status_code == 404
    saved = client.put("/api/profiles/u-1", json={"role": "hospital", "name": "Ward desk"}).json()
    assert saved["id"] == "u-1"
    assert client.get("/api/profiles/u-1").json()["name"] == "Ward desk"
    again = client.put("/api/profiles/u-1", json={"role": "hospital", "name": "Night desk"}).json()
    assert again["name"] == "Night desk"
    assert again["created_at"] == saved["created_at"]


def test_routing_eta(client):
    response = client.post(
        "/api/routing/eta",
        json={"origin": {"lat": 0.0, "lon": 0.0}, "destination": {"lat": 0.1, "lon": 0.0}},
    )
    assert response.status_code == 200
    assert response.json() == {"minutes": 23, "distance_km": 11.12, "source": "haversine"}
    missing = client.post("/api/routing/eta", json={"origin": {"lat": 0.0}, "destination": {}})
    assert missing.status_code == 400


def test_admin_dashboard_and_archive(client):
    _create(client)
    dashboard = client.get("/api/admin/dashboard").json()
    assert dashboard["stats"]["total_emergencies"] == 1
    assert dashboard["stats"]["assigned"] == 1
    assert client.post("/api/admin/archive").json() == {"archived": 0}


def test_websocket_connect_ack_and_broadcast(client):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json() == {
            "type": "connected",
            "message": "WebSocket connection established",
        }
        ws.send_text(json.dumps({"ping": 1}))
        assert ws.receive_json() == {"type": "ack", "data": {"ping": 1}}

        assert client.get("/api/health").json()["websocket_clients"] == 1
        _create(client)
        event = ws.receive_json()
        assert event["type"] == "emergency_created"
        assert event["data"]["emergency"]["assigned_hospital_id"] == "hosp-001"
        assert "timestamp" in event


def test_set_unavailable_broadcasts_hospital_and_emergency(client):
    created = _create(client)["emergency"]
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["type"] == "connected"
        client.post("/api/hospitals/hosp-001/set-unavailable", json={"emergency_id": created["id"]})

        hospital_event = ws.receive_json()
        assert hospital_event["type"] == "hospital_updated"
        assert hospital_event["data"]["accepting_emergencies"] is False

        emergency_event = ws.receive_json()
        assert emergency_event["type"] == "emergency_updated"
        assert emergency_event["data"]["id"] == created["id"]
        assert emergency_event["data"]["rerouted_to_id"] == "hosp-003"
