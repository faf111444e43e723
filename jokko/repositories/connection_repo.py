# jokko/repositories/connection_repo.py
import enum
import uuid

from sqlalchemy import inspect, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError
from sqlmodel import Session, select, delete

from jokko.models.connection import Connection, ConnectionRequest, legacy_connection


class ConnectionSchema(str, enum.Enum):
    """Which shape the `connection` table has in this database."""

    SYMMETRIC = "symmetric"   # user_a_id, user_b_id (always accepted)
    LEGACY = "legacy"         # user_id -> connected_user_id + status


def detect_connection_schema(engine: Engine) -> ConnectionSchema | None:
    """
    Inspect the `connection` table once (at startup).

    Returns:
        The detected shape, or None if the table is missing or unrecognized.
    """
    try:
        columns = {c["name"] for c in inspect(engine).get_columns("connection")}
    except NoSuchTableError:
        return None

    if {"user_a_id", "user_b_id"} <= columns:
        return ConnectionSchema.SYMMETRIC
    if {"user_id", "connected_user_id"} <= columns:
        return ConnectionSchema.LEGACY
    return None


def is_missing_column_error(exc: Exception) -> bool:
    """
    True for "column does not exist" (Postgres) / "no such column" (SQLite).
    """
    message = str(exc).lower()
    return ("column" in message and "does not exist" in message) or "no such column" in message


class ConnectionRepository:
    """
    Read access to the `connection` table in either shape.

    - Pure DB operations.
    - Errors propagate; the caller decides how to degrade.
    """

    def symmetric_rows(self, session: Session, user_id: uuid.UUID) -> list[tuple[uuid.UUID, uuid.UUID]]:
        stmt = select(Connection.user_a_id, Connection.user_b_id).where(
            or_(Connection.user_a_id == user_id, Connection.user_b_id == user_id)
        )
        return [tuple(row) for row in session.exec(stmt).all()]

    def legacy_accepted_ids(self, session: Session, user_id: uuid.UUID) -> list[uuid.UUID | None]:
        stmt = select(legacy_connection.c.connected_user_id).where(
            legacy_connection.c.user_id == user_id,
            legacy_connection.c.status == "accepted",
        )
        return list(session.exec(stmt).all())

    def delete_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        schema: ConnectionSchema | None,
    ) -> None:
        """
        Remove every connection / request touching `user_id`. No commit.
        """
        if schema == ConnectionSchema.LEGACY:
            session.exec(
                delete(legacy_connection).where(
                    or_(
                        legacy_connection.c.user_id == user_id,
                        legacy_connection.c.connected_user_id == user_id,
                    )
                )
            )
        elif schema == ConnectionSchema.SYMMETRIC:
            session.exec(
                delete(Connection).where(
                    or_(Connection.user_a_id == user_id, Connection.user_b_id == user_id)
                )
            )

        session.exec(
            delete(ConnectionRequest).where(
                or_(
                    ConnectionRequest.requester_user_id == user_id,
                    ConnectionRequest.recipient_user_id == user_id,
                )
            )
        )
