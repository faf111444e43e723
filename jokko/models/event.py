# jokko/models/event.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Event(SQLModel, table=True):
    """
    Product analytics event (contact_click, provider_view, admin_login, ...).

    event_payload is schemaless; contact clicks carry provider_id,
    provider_name, service_type and sometimes user_id / user_name.
    """

    __tablename__ = "events"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    event_type: str = Field(
        max_length=50,
        index=True,
    )

    event_payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    user_id: uuid.UUID | None = Field(
        default=None,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
