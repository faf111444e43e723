# jokko/models/connection.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Uuid
from sqlmodel import SQLModel, Field


class Connection(SQLModel, table=True):
    """
    Accepted mutual connection between two users (symmetric shape).

    A row (a, b) links both users; there is no status column, rows only
    exist once a request has been accepted.
    """

    __tablename__ = "connection"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    user_a_id: uuid.UUID = Field(index=True)
    user_b_id: uuid.UUID = Field(index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


# Older deployments store the same table directed, with a status column.
# It lives in its own MetaData so create_all() never emits it.
legacy_metadata = MetaData()

legacy_connection = Table(
    "connection",
    legacy_metadata,
    Column("id", Uuid, primary_key=True),
    Column("user_id", Uuid, index=True),
    Column("connected_user_id", Uuid),
    # pending | accepted | declined
    Column("status", String(20)),
)


class ConnectionRequest(SQLModel, table=True):
    """
    Pending/answered request that precedes a Connection.
    """

    __tablename__ = "connection_request"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    requester_user_id: uuid.UUID = Field(index=True)
    recipient_user_id: uuid.UUID = Field(index=True)

    # pending | accepted | declined
    status: str = Field(default="pending")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
