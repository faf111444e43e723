import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from jokko.models.event import Event
from jokko.routers import admin_auth


# -------- Event tracking --------


def test_track_event_stores_payload_and_user(client, session):
    user_id = uuid.uuid4()
    response = client.post(
        "/api/v1/track-event",
        json={
            "eventType": "contact_click",
            "payload": {"provider_id": "p-1", "user_id": str(user_id)},
        },
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    event = session.exec(select(Event)).one()
    assert event.event_type == "contact_click"
    assert event.event_payload["provider_id"] == "p-1"
    assert event.user_id == user_id


def test_track_event_ignores_malformed_user_id(client, session):
    client.post(
        "/api/v1/track-event",
        json={"eventType": "provider_view", "payload": {"user_id": "guest"}},
    )
    assert session.exec(select(Event)).one().user_id is None


@pytest.mark.parametrize("body", [{}, {"eventType": "  "}, {"payload": {}}])
def test_track_event_requires_event_type(client, body):
    assert client.post("/api/v1/track-event", json=body).status_code == 422


# -------- Health --------


def test_root(client):
    assert client.get("/").json() == {"status": "ok", "service": "jokko-backend"}


def test_health_is_healthy_by_default(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "0.1.0"
    assert body["errors"]["lastHour"] == 0


def test_health_degraded_after_errors(client, monitoring):
    for i in range(11):
        monitoring.log_error(f"boom {i}", context="test")

    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert len(response.json()["errors"]["recent"]) == 5


def test_health_unhealthy_after_security_events(client, monitoring):
    for _ in range(6):
        monitoring.log_security("suspicious", context="auth")

    response = client.get("/api/v1/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_requests_are_recorded(client, monitoring):
    client.get("/api/v1/providers")
    client.get("/api/v1/admin/kpis")

    api_events = [e for e in monitoring.recent_events(limit=10) if e.context == "api"]
    assert [e.metadata["statusCode"] for e in api_events] == [401, 200]
    assert api_events[0].type == "error"
    assert api_events[1].metadata["endpoint"] == "/api/v1/providers"


def test_monitoring_report(client, monitoring, admin_headers):
    monitoring.log_warning("slow query", context="db")
    monitoring.log_security("bad token", context="auth")

    assert client.get("/api/v1/admin/monitoring").status_code == 401

    body = client.get("/api/v1/admin/monitoring", headers=admin_headers).json()
    assert [e["message"] for e in body["events"]["warning"]] == ["slow query"]
    assert body["counts"]["securityEvents"]["lastHour"] == 1
    assert body["counts"]["errors"]["lastWeek"] >= 1
    assert body["totalEvents"] >= 3


def test_schema_check(client, admin_headers):
    body = client.get("/api/v1/admin/schema-check", headers=admin_headers).json()

    assert body["connectionSchema"] == "symmetric"
    assert body["tables"]["service_categories"]["rowCount"] == 5
    provider_columns = {c["name"] for c in body["tables"]["provider"]["columns"]}
    assert {"phone_hash", "phone_enc", "owner_user_id"} <= provider_columns


# -------- Admin auth --------


def test_admin_login_rejects_non_admin(client, monkeypatch):
    calls = []
    monkeypatch.setattr(admin_auth, "sign_in_with_password", lambda e, p: calls.append(e))

    response = client.post(
        "/api/v1/admin/auth", json={"email": "visitor@jokko.sn", "password": "secret"}
    )
    assert response.status_code == 403
    assert calls == []


def test_admin_login_success(client, monkeypatch):
    monkeypatch.setattr(admin_auth, "sign_in_with_password", lambda e, p: "access-token")

    response = client.post(
        "/api/v1/admin/auth", json={"email": "admin@jokko.sn", "password": "secret"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "token": "access-token",
        "user": {"email": "admin@jokko.sn", "role": "admin"},
    }


def test_admin_login_bad_password(client, monitoring, monkeypatch):
    monkeypatch.setattr(admin_auth, "sign_in_with_password", lambda e, p: None)

    response = client.post(
        "/api/v1/admin/auth", json={"email": "admin@jokko.sn", "password": "wrong"}
    )
    assert response.status_code == 401
    assert monitoring.security_event_count() == 1


def test_admin_token_check(client, admin_headers):
    response = client.get("/api/v1/admin/auth", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "valid": True,
        "user": {"email": "admin@jokko.sn", "role": "admin"},
    }

    assert client.get("/api/v1/admin/auth").status_code == 401


def test_admin_login_auth_outage_is_not_reported_as_bad_password(client, monitoring, monkeypatch):
    def unreachable(email, password):
        raise ConnectionError("auth service unreachable")

    monkeypatch.setattr(admin_auth, "sign_in_with_password", unreachable)

    no_raise = TestClient(client.app, raise_server_exceptions=False)
    response = no_raise.post(
        "/api/v1/admin/auth", json={"email": "admin@jokko.sn", "password": "secret"}
    )
    assert response.status_code == 500
    assert monitoring.security_event_count() == 0
