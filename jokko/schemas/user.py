# jokko/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic import Field as PydanticField
from sqlmodel import SQLModel, Field

Role = Literal["seeker", "provider"]
RoleFilter = Literal["all", "seeker", "provider"]


class AdminUserRead(SQLModel):
    """
    Admin view of a user with the resolved role.
    """

    id: uuid.UUID
    name: str | None = None
    email: str | None = None
    phone_e164: str | None = None
    language: str | None = None
    user_type: str | None = None
    role: Role
    is_active: bool = True
    created_at: datetime


class AdminUserList(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: list[AdminUserRead]
    total: int
    seekers_count: int = PydanticField(alias="seekersCount")
    providers_count: int = PydanticField(alias="providersCount")
    page: int
    total_pages: int = PydanticField(alias="totalPages")
    limit: int


class AdminUserUpdate(SQLModel):
    """
    Partial update, or action="toggle_status" with the new is_active.
    """

    model_config = ConfigDict(extra="forbid")

    action: Literal["toggle_status"] | None = None
    is_active: bool | None = None
    name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone_e164: str | None = None
    language: str | None = Field(default=None, max_length=10)
    user_type: Role | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class AdminUserEnvelope(SQLModel):
    user: AdminUserRead
