# jokko/models/recommendation.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Recommendation(SQLModel, table=True):
    """
    Referral edge from a recommending user to a provider.

    recommender_user_id has no FK: it may dangle after the user is deleted
    (shown as an "Unknown" recommender).

    note is free text and may embed "Liked: a, b" / "Watch: c" segments,
    see jokko.services.recommendation_notes.
    """

    __tablename__ = "recommendation"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    provider_id: uuid.UUID = Field(
        foreign_key="provider.id",
        index=True,
    )

    recommender_user_id: uuid.UUID | None = Field(
        default=None,
        index=True,
    )

    note: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
