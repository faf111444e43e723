import uuid

from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import add_provider, add_recommendation, add_user, ago, auth_headers

from jokko.core.phone_codec import BYTEA_PREFIX
from jokko.models.connection import Connection
from jokko.models.provider import Provider, ProviderCitySighting, ProviderNameAlias, ProviderNeighborhood
from jokko.routers import providers
from jokko.services.provider_service import network_rank_key, normalize_service_slug
from jokko.schemas.provider import ProviderView

URL = "/api/v1/providers"


def connect(session, a, b):
    session.add(Connection(user_a_id=a.id, user_b_id=b.id))
    session.commit()


def test_guest_listing_is_newest_first(client, session):
    add_provider(session, "Oldest", created_at=ago(days=3))
    add_provider(session, "Middle", created_at=ago(days=2))
    add_provider(session, "Newest", created_at=ago(days=1))

    response = client.get(URL)
    assert response.status_code == 200
    body = response.json()

    assert [p["name"] for p in body["items"]] == ["Newest", "Middle", "Oldest"]
    assert body["page"] == 1
    assert body["pageSize"] == 20
    assert body["total"] == 3
    assert body["hasMore"] is False
    assert all(p["isNetworkRecommended"] is False for p in body["items"])


def test_network_scenario(client, session):
    me = add_user(session, "Me")
    u1 = add_user(session, "Ousmane")
    u2 = add_user(session, "Binta")
    u3 = add_user(session, "Stranger")
    connect(session, me, u1)
    connect(session, u2, me)

    provider = add_provider(session, "Modou Plomberie")
    add_recommendation(session, provider, u1.id, "Liked: Fast, Cheap", created_at=ago(hours=2))
    add_recommendation(session, provider, u3.id, "Liked: Fast", created_at=ago(hours=1))

    response = client.get(URL, headers=auth_headers(me.id, "me@example.com"))
    assert response.status_code == 200
    item = response.json()["items"][0]

    assert item["networkRecommendationCount"] == 1
    assert item["isNetworkRecommended"] is True
    assert item["top_likes"] == ["Fast", "Cheap"]
    assert item["networkRecommenders"] == [{"id": str(u1.id), "name": "Ousmane"}]
    assert {r["name"] for r in item["recommenders"]} == {"Ousmane", "Stranger"}


def test_network_ranking_is_partial_and_stable(client, session):
    me = add_user(session, "Me")
    friends = [add_user(session, f"Friend {c}") for c in "abc"]
    for friend in friends:
        connect(session, me, friend)

    # baseline order (newest first): z1, one, z2, two, z3
    add_provider(session, "Zero Three", created_at=ago(days=5))
    two = add_provider(session, "Two", created_at=ago(days=4))
    add_provider(session, "Zero Two", created_at=ago(days=3))
    one = add_provider(session, "One", created_at=ago(days=2))
    add_provider(session, "Zero One", created_at=ago(days=1))

    add_recommendation(session, one, friends[0].id)
    add_recommendation(session, two, friends[1].id)
    add_recommendation(session, two, friends[2].id)

    response = client.get(URL, headers=auth_headers(me.id))
    names = [p["name"] for p in response.json()["items"]]

    assert names == ["Two", "One", "Zero One", "Zero Two", "Zero Three"]


def test_unknown_recommenders_are_hidden(client, session):
    provider = add_provider(session, "Ndiaye Services")
    add_recommendation(session, provider, uuid.uuid4(), "Liked: Honest")
    add_recommendation(session, provider, None, "Watch: Slow")

    item = client.get(URL).json()["items"][0]
    assert item["recommenders"] == []
    assert item["top_likes"] == ["Honest"]
    assert item["top_watch"] == ["Slow"]


def test_filters(client, session):
    add_provider(session, "Awa Menage", service_type="cleaner", city="Thies")
    add_provider(session, "Ibou Plomberie", service_type="plumber", city="Dakar")

    assert [p["name"] for p in client.get(URL, params={"q": "plomb"}).json()["items"]] == [
        "Ibou Plomberie"
    ]
    assert [p["name"] for p in client.get(URL, params={"service": "Cleaner"}).json()["items"]] == [
        "Awa Menage"
    ]
    assert [p["name"] for p in client.get(URL, params={"city": "Dakar"}).json()["items"]] == [
        "Ibou Plomberie"
    ]
    # unknown slug is ignored
    assert client.get(URL, params={"service": "astronaut"}).json()["total"] == 2


def test_pagination(client, session):
    for i in range(25):
        add_provider(session, f"Provider {i}", created_at=ago(minutes=i))

    first = client.get(URL).json()
    second = client.get(URL, params={"page": 2}).json()

    assert len(first["items"]) == 20 and first["hasMore"] is True
    assert len(second["items"]) == 5 and second["hasMore"] is False
    assert first["total"] == second["total"] == 25


def test_neighborhoods_attached(client, session):
    provider = add_provider(session, "Fatou Coiffure", service_type="hair")
    session.add(ProviderNeighborhood(provider_id=provider.id, neighborhood="Plateau", city="Dakar"))
    session.add(ProviderNeighborhood(provider_id=provider.id, neighborhood="Medina", city="Dakar"))
    session.commit()

    item = client.get(URL).json()["items"][0]
    assert item["neighborhoods"] == ["Plateau", "Medina"]
    assert item["specialties"] == []


def test_invalid_token_is_rejected(client):
    response = client.get(URL, headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


# -------- Referral --------


def test_referral_creates_then_dedupes(client, session):
    body = {
        "name": "Cheikh Electricite",
        "service_type": "electrician",
        "city": "Dakar",
        "phone_hash": "abc123",
        "phone_enc": "\\x" + "+221771234567".encode().hex().upper(),
    }

    created = client.post(URL, json=body)
    assert created.status_code == 201
    assert created.json()["deduped"] is False
    provider_id = uuid.UUID(created.json()["id"])

    again = client.post(URL, json={**body, "name": "Other Name"})
    assert again.status_code == 200
    assert again.json() == {"id": str(provider_id), "deduped": True}

    sightings = session.exec(select(ProviderCitySighting)).all()
    aliases = session.exec(select(ProviderNameAlias)).all()
    assert [s.city for s in sightings] == ["Dakar"]
    assert [a.alias for a in aliases] == ["Cheikh Electricite"]

    listed = client.get(URL).json()["items"][0]
    assert listed["name"] == "Cheikh Electricite"


def test_referral_stores_lowercase_envelope(client, session):
    client.post(
        URL,
        json={"name": "X", "service_type": "plumber", "phone_hash": "h1", "phone_enc": "ABCDEF"},
    )
    provider = session.exec(select(Provider)).one()
    assert provider.phone_enc == BYTEA_PREFIX + "abcdef"


def test_referral_requires_fields(client):
    response = client.post(URL, json={"name": "No Hash", "service_type": "plumber"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid body"


def test_referral_rejects_non_hex_envelope(client):
    response = client.post(
        URL,
        json={"name": "X", "service_type": "plumber", "phone_hash": "h", "phone_enc": "xyz"},
    )
    assert response.status_code == 400


# -------- Pure helpers --------


def test_normalize_service_slug():
    assert normalize_service_slug("Hair ") == "hair"
    assert normalize_service_slug("HVAC") == "hvac"
    assert normalize_service_slug("space cowboy") is None
    assert normalize_service_slug(None) is None


def test_rank_key_keeps_zero_count_ties():
    def view(name, count):
        return ProviderView(
            id=uuid.uuid4(),
            name=name,
            service_type="plumber",
            city="Dakar",
            network_recommendation_count=count,
        )

    views = [view("a", 0), view("b", 2), view("c", 0), view("d", 1), view("e", 2)]
    ordered = [v.name for v in sorted(views, key=network_rank_key)]
    assert ordered == ["b", "e", "d", "a", "c"]


def db_down(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("server closed the connection"))


def test_listing_survives_recommendation_fetch_failure(client, session, monkeypatch):
    me = add_user(session, "Me")
    friend = add_user(session, "Ousmane")
    connect(session, me, friend)
    provider = add_provider(session, "Modou Plomberie")
    add_recommendation(session, provider, friend.id, "Liked: Fast | Watch: Late")

    monkeypatch.setattr(providers.service.recommendation_repo, "list_for_providers", db_down)

    response = client.get(URL, headers=auth_headers(me.id, "me@example.com"))
    assert response.status_code == 200
    [item] = response.json()["items"]
    assert item["name"] == "Modou Plomberie"
    assert item["top_likes"] == []
    assert item["top_watch"] == []
    assert item["recommenders"] == []
    assert item["networkRecommendationCount"] == 0
    assert item["isNetworkRecommended"] is False


def test_listing_fails_when_provider_fetch_fails(client, session, monkeypatch):
    add_provider(session, "Modou Plomberie")
    monkeypatch.setattr(providers.service.repo, "search", db_down)

    response = client.get(URL)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch providers"
