from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from gatepass.main import create_app
from gatepass.services.credential_codec import encode

USER = 40123456
EMAIL = "gate1@example.com"


@pytest.fixture
def app(db):
    app = create_app(db=db, start_worker=False)
    app.state.scan_service._scan_cache_ttl = 0
    yield app
    app.state.scan_service.shutdown()


@pytest.fixture
def client(app):
    return TestClient(app)


def scan(client, payload, as_of="2024-01-01", email=EMAIL):
    return client.post("/api/scan", json={
        "payload": payload, "controller_email": email, "as_of": as_of,
    })


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_scan_allow_then_exit(client, seed):
    seed.controller(1, EMAIL, gate="S1")
    seed.user(USER, role="B")

    first = scan(client, encode(USER))
    second = scan(client, encode(USER))

    assert first.status_code == 200
    assert first.json()["status"] == "ALLOW"
    assert first.json()["movement"] == "ingress"
    assert first.json()["movement_label"] == "entering"
    assert first.json()["event_id"] is not None
    assert second.json()["movement_label"] == "exiting"


def test_scan_deny_is_ok_response(client, seed):
    seed.controller(1, EMAIL, gate="S2")
    seed.user(USER, role="B")

    body = scan(client, encode(USER)).json()

    assert body["status"] == "DENY"
    assert body["reason"] == "NotPermittedForRole"


def test_scan_malformed_payload(client, seed):
    seed.controller(1, EMAIL)
    body = scan(client, "not-a-credential").json()
    assert body["status"] == "UNDETERMINED"
    assert body["reason"] == "Malformed"


def test_scan_unknown_controller(client):
    assert scan(client, encode(USER), email="nobody@example.com").status_code == 404


def test_controller_and_gate_change(client, seed):
    seed.controller(1, EMAIL, gate="S1")
    seed.user(USER, role="C")

    assert client.get(f"/api/controllers/{EMAIL}").json()["gate"] == "S1"

    response = client.put(f"/api/controllers/{EMAIL}/gate", json={"gate": "S3"})
    assert response.status_code == 200
    assert response.json()["gate"] == "S3"

    body = scan(client, encode(USER)).json()
    assert body["reason"] == "NotPermittedForRole"


def test_gate_change_rejects_unknown_gate(client, seed):
    seed.controller(1, EMAIL)
    response = client.put(f"/api/controllers/{EMAIL}/gate", json={"gate": "S9"})
    assert response.status_code == 422


def test_gate_change_persist_failure(client, app, seed):
    seed.controller(1, EMAIL, gate="S1")
    client.get(f"/api/controllers/{EMAIL}")

    with patch.object(app.state.db, "get_connection",
                      side_effect=OperationalError("UPDATE", {}, Exception("down"))):
        response = client.put(f"/api/controllers/{EMAIL}/gate", json={"gate": "S4"})

    assert response.status_code == 503
    assert client.get(f"/api/controllers/{EMAIL}").json()["gate"] == "S1"


def test_movement_and_events(client, seed):
    seed.controller(1, EMAIL, gate="S1")
    seed.user(USER, role="A")

    assert client.get(f"/api/users/{USER}/movement").json()["state"] == "outside"
    scan(client, encode(USER))
    assert client.get(f"/api/users/{USER}/movement").json()["state"] == "inside"

    events = client.get(f"/api/users/{USER}/events").json()["events"]
    assert len(events) == 1
    assert events[0]["allowed"] is True
    assert events[0]["to_state"] == "inside"
    assert events[0]["as_of"] == "2024-01-01"


def test_credential_payload(client):
    body = client.get(f"/api/users/{USER}/credential").json()
    assert body == {"user_id": USER, "payload": encode(USER)}
    assert client.get("/api/users/0/credential").status_code == 422


def test_disable_user_takes_effect_on_next_scan(client, seed):
    seed.controller(1, EMAIL, gate="S1")
    seed.user(USER, role="A")

    response = client.put(f"/api/users/{USER}/enabled", json={"enabled": False})
    assert response.json() == {"success": True, "message": "User disabled"}

    assert scan(client, encode(USER)).json()["reason"] == "Disabled"


def test_disable_unknown_user(client):
    response = client.put("/api/users/999/enabled", json={"enabled": False})
    assert response.status_code == 404
