# jokko/models/provider.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class ServiceCategory(SQLModel, table=True):
    """
    Recognized service categories (plumber, cleaner, nanny, ...).
    """

    __tablename__ = "service_categories"

    id: int | None = Field(default=None, primary_key=True)

    slug: str = Field(
        unique=True,
        index=True,
        max_length=50,
    )

    name: str = Field(max_length=100)


class Provider(SQLModel, table=True):
    """
    A listed service professional.

    No is_active column: provider status cannot be toggled.

    phone_enc holds the phone envelope as text: either "\\x" + hex of
    (nonce || tag || ciphertext), or legacy plain hex of the UTF-8 phone.
    """

    __tablename__ = "provider"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
    )

    service_type: str = Field(
        max_length=50,
        index=True,
        description="Service category slug",
    )

    service_category_id: int | None = Field(
        default=None,
        foreign_key="service_categories.id",
    )

    city: str = Field(
        default="",
        max_length=100,
        index=True,
    )

    photo_url: str | None = Field(default=None)

    phone_hash: str | None = Field(
        default=None,
        index=True,
        description="SHA-256 of key/salt + normalized phone, used for dedupe",
    )

    phone_enc: str | None = Field(
        default=None,
        description="Phone envelope (see jokko.core.phone_codec)",
    )

    owner_user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class ProviderNeighborhood(SQLModel, table=True):
    __tablename__ = "provider_neighborhoods"

    id: int | None = Field(default=None, primary_key=True)
    provider_id: uuid.UUID = Field(foreign_key="provider.id", index=True)
    neighborhood: str = Field(max_length=100)
    city: str | None = Field(default=None, max_length=100)


class ProviderSpecialty(SQLModel, table=True):
    __tablename__ = "provider_specialties"

    id: int | None = Field(default=None, primary_key=True)
    provider_id: uuid.UUID = Field(foreign_key="provider.id", index=True)
    specialty: str = Field(max_length=100)


class ProviderCitySighting(SQLModel, table=True):
    """
    Cities a provider has been reported in, and by whom (source).
    """

    __tablename__ = "provider_city_sighting"

    id: int | None = Field(default=None, primary_key=True)
    provider_id: uuid.UUID = Field(foreign_key="provider.id", index=True)
    city: str = Field(max_length=100)
    source: str = Field(default="provider", max_length=30)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ProviderNameAlias(SQLModel, table=True):
    __tablename__ = "provider_name_alias"
    __table_args__ = (UniqueConstraint("provider_id", "alias"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: uuid.UUID = Field(foreign_key="provider.id", index=True)
    alias: str = Field(max_length=100)
    source: str = Field(default="provider", max_length=30)


class ProviderAttributeVote(SQLModel, table=True):
    __tablename__ = "provider_attribute_vote"

    id: int | None = Field(default=None, primary_key=True)
    provider_id: uuid.UUID = Field(foreign_key="provider.id", index=True)
    user_id: uuid.UUID | None = Field(default=None, index=True)
    attribute: str = Field(max_length=50)
