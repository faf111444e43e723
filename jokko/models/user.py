# jokko/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile (seekers and provider-side users).

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Repeated sign-ups can leave several rows with the same phone_e164;
    readers treat the most recently created one as canonical.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    name: str | None = Field(
        default=None,
        max_length=100,
        description="Display name",
    )

    email: str | None = Field(
        default=None,
        index=True,
        description="Email from Supabase auth.users (optional for phone sign-ups)",
    )

    phone_e164: str | None = Field(
        default=None,
        index=True,
        description="Phone number in E.164 format; not unique",
    )

    language: str | None = Field(
        default=None,
        max_length=10,
    )

    # seeker | provider | NULL (unknown, resolved from activity)
    user_type: str | None = Field(
        default=None,
        index=True,
    )

    is_active: bool = Field(
        default=True,
        description="Admin-controlled account status",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
