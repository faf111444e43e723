# jokko/services/network_service.py
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from jokko.repositories.connection_repo import (
    ConnectionRepository,
    ConnectionSchema,
    is_missing_column_error,
)

logger = logging.getLogger(__name__)


class NetworkService:
    """
    Resolves a user's network: ids of accepted mutual connections.

    Failures never reach the caller; an unreadable network is empty.
    """

    def __init__(self, repo: ConnectionRepository):
        self.repo = repo

    def resolve_network(
        self,
        session: Session,
        user_id: uuid.UUID | None,
        schema: ConnectionSchema | None = None,
    ) -> set[uuid.UUID]:
        """
        Network of `user_id`.

        - user_id None (guest) => empty set.
        - schema known => only that shape is queried.
        - schema None => symmetric query first, legacy on a missing-column
          error. Results of the two shapes are never merged.

        The result never contains `user_id` itself or null ids.
        """
        if user_id is None:
            return set()

        try:
            if schema == ConnectionSchema.LEGACY:
                ids = self._legacy(session, user_id)
            elif schema == ConnectionSchema.SYMMETRIC:
                ids = self._symmetric(session, user_id)
            else:
                ids = self._probe(session, user_id)
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("Network lookup failed for %s: %s", user_id, e)
            return set()

        return {i for i in ids if i is not None and i != user_id}

    def _symmetric(self, session: Session, user_id: uuid.UUID) -> list[uuid.UUID | None]:
        rows = self.repo.symmetric_rows(session, user_id)
        return [b if a == user_id else a for a, b in rows]

    def _legacy(self, session: Session, user_id: uuid.UUID) -> list[uuid.UUID | None]:
        return self.repo.legacy_accepted_ids(session, user_id)

    def _probe(self, session: Session, user_id: uuid.UUID) -> list[uuid.UUID | None]:
        try:
            return self._symmetric(session, user_id)
        except SQLAlchemyError as e:
            if not is_missing_column_error(e):
                raise
            # Postgres aborts the transaction on error; clear it first
            session.rollback()
            logger.info("connection table has legacy shape, falling back")
            return self._legacy(session, user_id)
