"""Shared test fixtures and configuration.

Sets up fake environment variables so jokko.core.config can load without
a .env file, and provides an in-memory database, an API client and
token helpers.
"""

import os

# Patch env vars BEFORE any jokko imports
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "fake-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "fake-service-role-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-test-jwt-secret-123")
os.environ.setdefault("ADMIN_EMAILS", "admin@jokko.sn, Boss@Jokko.sn")
os.environ.setdefault(
    "ENCRYPTION_KEY_HEX",
    "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f",
)

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from jokko.core.config import get_settings
from jokko.core.monitoring import MonitoringService
from jokko.database import get_session
from jokko.main import app
from jokko.models.provider import Provider, ServiceCategory
from jokko.models.recommendation import Recommendation
from jokko.models.user import User
from jokko.repositories.connection_repo import ConnectionSchema

ADMIN_EMAIL = "admin@jokko.sn"

CATEGORIES = [
    ("plumber", "Plumber"),
    ("cleaner", "Cleaner"),
    ("nanny", "Nanny"),
    ("electrician", "Electrician"),
    ("hair", "Hair"),
]


def make_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def engine():
    engine = make_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        for slug, name in CATEGORIES:
            session.add(ServiceCategory(slug=slug, name=name))
        session.commit()
        yield session


@pytest.fixture
def monitoring():
    return MonitoringService(max_events=200)


@pytest.fixture
def client(session, monitoring):
    def override_session():
        yield session

    app.dependency_overrides[get_session] = override_session
    app.state.monitoring = monitoring
    app.state.connection_schema = ConnectionSchema.SYMMETRIC
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.connection_schema = None


# -------- Tokens --------


def make_token(sub: uuid.UUID | str, email: str | None = None, **claims) -> str:
    payload = {
        "sub": str(sub),
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, get_settings().SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(sub: uuid.UUID | str, email: str | None = None, **claims) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub, email, **claims)}"}


@pytest.fixture
def admin_headers():
    return auth_headers(uuid.uuid4(), ADMIN_EMAIL)


# -------- Seed helpers --------


def add_user(session: Session, name: str = "Awa", **fields) -> User:
    user = User(name=name, **fields)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add_provider(session: Session, name: str, service_type: str = "plumber", **fields) -> Provider:
    fields.setdefault("city", "Dakar")
    provider = Provider(name=name, service_type=service_type, **fields)
    session.add(provider)
    session.commit()
    session.refresh(provider)
    return provider


def add_recommendation(
    session: Session,
    provider: Provider,
    recommender_id: uuid.UUID | None,
    note: str | None = None,
    **fields,
) -> Recommendation:
    rec = Recommendation(
        provider_id=provider.id,
        recommender_user_id=recommender_id,
        note=note,
        **fields,
    )
    session.add(rec)
    session.commit()
    session.refresh(rec)
    return rec


def ago(**delta) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**delta)
