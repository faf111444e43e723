import uuid

import pytest
from sqlmodel import select

from conftest import add_provider, add_recommendation, add_user, ago

from jokko.core.supabase_client import AuthUserNotFound
from jokko.models.connection import Connection, ConnectionRequest
from jokko.models.provider import ProviderAttributeVote
from jokko.models.recommendation import Recommendation
from jokko.models.user import User
from jokko.services import user_service

URL = "/api/v1/admin/users"


@pytest.fixture
def deleted_auth_ids(monkeypatch):
    deleted: list[str] = []
    monkeypatch.setattr(user_service, "delete_auth_user", deleted.append)
    return deleted


@pytest.fixture
def people(session):
    awa_old = add_user(session, "Awa", phone_e164="+221770000001", created_at=ago(days=10))
    awa_new = add_user(session, "Awa B", phone_e164="+221770000001", created_at=ago(days=2))
    moussa = add_user(session, "Moussa", phone_e164="+221770000002", created_at=ago(days=5))
    fatou = add_user(session, "Fatou", email="fatou@example.com", created_at=ago(days=3))
    ibou = add_user(session, "Ibou", user_type="provider", created_at=ago(days=1))

    provider = add_provider(session, "Ibou Plomberie")
    add_recommendation(session, provider, fatou.id, "Liked: Fast")

    return {
        "awa_old": awa_old,
        "awa_new": awa_new,
        "moussa": moussa,
        "fatou": fatou,
        "ibou": ibou,
    }


def test_list_dedupes_and_resolves_roles(client, people, admin_headers):
    body = client.get(URL, headers=admin_headers).json()

    names = [u["name"] for u in body["users"]]
    assert names == ["Ibou", "Awa B", "Fatou", "Moussa"]

    roles = {u["name"]: u["role"] for u in body["users"]}
    assert roles == {"Ibou": "provider", "Awa B": "seeker", "Fatou": "provider", "Moussa": "seeker"}

    assert body["total"] == 4
    assert body["seekersCount"] == 2
    assert body["providersCount"] == 1
    assert body["totalPages"] == 1


def test_list_role_filter_and_search(client, people, admin_headers):
    seekers = client.get(URL, params={"role": "seeker"}, headers=admin_headers).json()
    assert [u["name"] for u in seekers["users"]] == ["Awa B", "Moussa"]

    providers = client.get(URL, params={"role": "provider"}, headers=admin_headers).json()
    assert [u["name"] for u in providers["users"]] == ["Ibou", "Fatou"]

    by_email = client.get(URL, params={"search": "FATOU@"}, headers=admin_headers).json()
    assert [u["name"] for u in by_email["users"]] == ["Fatou"]

    by_phone = client.get(URL, params={"search": "0000002"}, headers=admin_headers).json()
    assert [u["name"] for u in by_phone["users"]] == ["Moussa"]


def test_list_pagination(client, people, admin_headers):
    body = client.get(URL, params={"limit": 3, "page": 2}, headers=admin_headers).json()
    assert [u["name"] for u in body["users"]] == ["Moussa"]
    assert body["totalPages"] == 2


def test_list_rejects_unknown_role(client, admin_headers):
    assert client.get(URL, params={"role": "admin"}, headers=admin_headers).status_code == 422


def test_toggle_status(client, people, admin_headers):
    moussa = people["moussa"]
    response = client.patch(
        f"{URL}/{moussa.id}",
        json={"action": "toggle_status", "is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is False

    flipped = client.patch(
        f"{URL}/{moussa.id}", json={"action": "toggle_status"}, headers=admin_headers
    )
    assert flipped.json()["user"]["is_active"] is True


def test_partial_update(client, people, admin_headers):
    fatou = people["fatou"]
    response = client.patch(
        f"{URL}/{fatou.id}",
        json={"name": "Fatou Diop", "language": "fr", "user_type": "seeker"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Fatou Diop"
    assert user["language"] == "fr"
    assert user["email"] == "fatou@example.com"
    assert user["role"] == "seeker"


def test_update_validation_and_missing(client, people, admin_headers):
    fatou = people["fatou"]
    bad = client.patch(f"{URL}/{fatou.id}", json={"user_type": "admin"}, headers=admin_headers)
    assert bad.status_code == 422

    missing = client.patch(f"{URL}/{uuid.uuid4()}", json={"name": "X Y"}, headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "User not found"


def test_delete_user_cleans_up(client, session, people, admin_headers, deleted_auth_ids):
    fatou = people["fatou"]
    moussa = people["moussa"]
    provider = add_provider(session, "Awa Menage", service_type="cleaner")
    session.add(Connection(user_a_id=fatou.id, user_b_id=moussa.id))
    session.add(ConnectionRequest(requester_user_id=moussa.id, recipient_user_id=fatou.id))
    session.add(ProviderAttributeVote(provider_id=provider.id, user_id=fatou.id, attribute="kind"))
    session.commit()

    response = client.delete(f"{URL}/{fatou.id}", headers=admin_headers)
    assert response.status_code == 200
    assert deleted_auth_ids == [str(fatou.id)]

    assert session.get(User, fatou.id) is None
    assert session.exec(select(Recommendation)).all() == []
    assert session.exec(select(Connection)).all() == []
    assert session.exec(select(ConnectionRequest)).all() == []
    assert session.exec(select(ProviderAttributeVote)).all() == []
    assert session.get(User, moussa.id) is not None


def test_delete_tolerates_missing_auth_user(client, session, people, admin_headers, monkeypatch):
    def already_gone(user_id):
        raise AuthUserNotFound(user_id)

    monkeypatch.setattr(user_service, "delete_auth_user", already_gone)
    moussa = people["moussa"]

    assert client.delete(f"{URL}/{moussa.id}", headers=admin_headers).status_code == 200
    assert session.get(User, moussa.id) is None


def test_delete_aborts_on_auth_failure(client, session, people, admin_headers, monkeypatch):
    def boom(user_id):
        raise RuntimeError("supabase unavailable")

    monkeypatch.setattr(user_service, "delete_auth_user", boom)
    moussa = people["moussa"]

    response = client.delete(f"{URL}/{moussa.id}", headers=admin_headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to delete user from auth"
    assert session.get(User, moussa.id) is not None


def test_delete_missing_user(client, admin_headers, deleted_auth_ids):
    assert client.delete(f"{URL}/{uuid.uuid4()}", headers=admin_headers).status_code == 404
    assert deleted_auth_ids == []
