# jokko/schemas/provider.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as PydanticField
from sqlmodel import SQLModel, Field

from jokko.core.validation import (
    normalize_phone,
    validate_location,
    validate_person_name,
    validate_service_type,
)


# -------- Public listing --------


class RecommenderRead(BaseModel):
    id: uuid.UUID
    name: str


class ProviderView(BaseModel):
    """
    One provider in the network-ranked listing.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    name: str
    service_type: str
    city: str
    photo_url: str | None = None
    neighborhoods: list[str] = []
    specialties: list[str] = []
    top_likes: list[str] = []
    top_watch: list[str] = []
    recommenders: list[RecommenderRead] = []
    is_network_recommended: bool = PydanticField(False, alias="isNetworkRecommended")
    network_recommenders: list[RecommenderRead] = PydanticField(
        default_factory=list, alias="networkRecommenders"
    )
    network_recommendation_count: int = PydanticField(0, alias="networkRecommendationCount")


class ProviderListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[ProviderView]
    page: int
    page_size: int = PydanticField(alias="pageSize")
    total: int
    has_more: bool = PydanticField(alias="hasMore")


# -------- Public referral --------


class ProviderReferralCreate(SQLModel):
    """
    Payload sent when a user refers a provider.

    Required fields are checked by the service so that an incomplete body
    yields 400 "Invalid body".
    """

    name: str | None = None
    service_type: str | None = None
    city: str = ""
    phone_hash: str | None = None
    # hex of the phone envelope produced client-side
    phone_enc: str | None = None


class ProviderReferralResult(SQLModel):
    id: uuid.UUID
    deduped: bool


# -------- Admin --------


class AdminProviderRead(SQLModel):
    """
    Admin view: phone decoded, recommendation count attached.
    """

    id: uuid.UUID
    name: str
    service_type: str
    service_category_id: int | None = None
    city: str
    photo_url: str | None = None
    owner_user_id: uuid.UUID | None = None
    created_at: datetime
    phone_e164: str = ""
    recommendation_count: int = 0
    neighborhoods: list[str] = []
    specialties: list[str] = []


class AdminProviderList(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    providers: list[AdminProviderRead]
    total: int
    page: int
    total_pages: int = PydanticField(alias="totalPages")
    limit: int


class AdminProviderCreate(SQLModel):
    """
    Admin-created provider. City and owner are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    service_type: str
    phone: str
    city: str | None = None
    owner_user_id: uuid.UUID | None = None
    neighborhoods: list[str] = Field(default_factory=list)
    specialties: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_person_name(v)

    @field_validator("service_type")
    @classmethod
    def check_service_type(cls, v: str) -> str:
        return validate_service_type(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return normalize_phone(v)

    @field_validator("city")
    @classmethod
    def check_city(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_location(v) or None

    @field_validator("neighborhoods", "specialties")
    @classmethod
    def drop_blank(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item and item.strip()]


class AdminProviderUpdate(SQLModel):
    """
    Full update (name, service_type and city required by the service) or
    an action such as "toggle_status".
    """

    model_config = ConfigDict(extra="forbid")

    action: Literal["toggle_status"] | None = None
    name: str | None = None
    service_type: str | None = None
    city: str | None = None
    phone: str | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return v if v is None else validate_person_name(v)

    @field_validator("service_type")
    @classmethod
    def check_service_type(cls, v: str | None) -> str | None:
        return v if v is None else validate_service_type(v)

    @field_validator("city")
    @classmethod
    def check_city(cls, v: str | None) -> str | None:
        return v if v is None else validate_location(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return normalize_phone(v)


class AdminProviderEnvelope(SQLModel):
    provider: AdminProviderRead
