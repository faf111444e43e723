# jokko/repositories/stats_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from jokko.models.event import Event
from jokko.models.provider import Provider
from jokko.models.recommendation import Recommendation
from jokko.models.user import User


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.
    """

    # ----- Users -----

    def count_users(self, session: Session, user_type: str | None = None) -> int:
        stmt = select(func.count()).select_from(User)
        if user_type is not None:
            stmt = stmt.where(User.user_type == user_type)
        return int(session.exec(stmt).one() or 0)

    def count_users_created_since(self, session: Session, since: datetime) -> int:
        stmt = select(func.count()).select_from(User).where(User.created_at >= since)
        return int(session.exec(stmt).one() or 0)

    def count_users_created_between(self, session: Session, start: datetime, end: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(User)
            .where(User.created_at >= start, User.created_at < end)
        )
        return int(session.exec(stmt).one() or 0)

    def users_created_until(self, session: Session, up_to: datetime | None = None) -> list[User]:
        """
        All users created at or before `up_to`, newest first.
        """
        stmt = select(User).order_by(User.created_at.desc())
        if up_to is not None:
            stmt = stmt.where(User.created_at <= up_to)
        return list(session.exec(stmt).all())

    def user_signups_since(self, session: Session, since: datetime) -> list[tuple]:
        """
        (phone_e164, user_type, created_at) for users created since `since`.
        """
        stmt = (
            select(User.phone_e164, User.user_type, User.created_at)
            .where(User.created_at >= since)
            .order_by(User.created_at)
        )
        return list(session.exec(stmt).all())

    def earliest_user_created_at(self, session: Session) -> datetime | None:
        stmt = select(func.min(User.created_at))
        return session.exec(stmt).one()

    def user_names(self, session: Session, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, str | None]:
        if not user_ids:
            return {}
        stmt = select(User.id, User.name).where(User.id.in_(user_ids))
        return {uid: name for uid, name in session.exec(stmt).all()}

    # ----- Providers -----

    def count_providers(self, session: Session, up_to: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(Provider)
        if up_to is not None:
            stmt = stmt.where(Provider.created_at <= up_to)
        return int(session.exec(stmt).one() or 0)

    def count_providers_created_since(self, session: Session, since: datetime) -> int:
        stmt = select(func.count()).select_from(Provider).where(Provider.created_at >= since)
        return int(session.exec(stmt).one() or 0)

    def providers_by_ids(self, session: Session, provider_ids: list[uuid.UUID]) -> dict[uuid.UUID, Provider]:
        if not provider_ids:
            return {}
        stmt = select(Provider).where(Provider.id.in_(provider_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    # ----- Recommendations -----

    def count_recommendations(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Recommendation)
        return int(session.exec(stmt).one() or 0)

    def recommendation_activity_since(self, session: Session, since: datetime) -> list[tuple]:
        """
        (recommender_user_id, created_at) of recommendations since `since`.
        """
        stmt = (
            select(Recommendation.recommender_user_id, Recommendation.created_at)
            .where(
                Recommendation.created_at >= since,
                Recommendation.recommender_user_id.is_not(None),
            )
        )
        return list(session.exec(stmt).all())

    def recommender_ids_among(self, session: Session, user_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        """
        Subset of `user_ids` that authored at least one recommendation.
        """
        if not user_ids:
            return set()
        stmt = (
            select(Recommendation.recommender_user_id)
            .where(Recommendation.recommender_user_id.in_(user_ids))
            .distinct()
        )
        return set(session.exec(stmt).all())

    # ----- Events -----

    def count_events(
        self,
        session: Session,
        event_type: str,
        start: datetime,
        end: datetime | None = None,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(Event)
            .where(Event.event_type == event_type, Event.created_at >= start)
        )
        if end is not None:
            stmt = stmt.where(Event.created_at < end)
        return int(session.exec(stmt).one() or 0)

    def events(
        self,
        session: Session,
        event_type: str,
        since: datetime | None = None,
        newest_first: bool = True,
    ) -> list[Event]:
        stmt = select(Event).where(Event.event_type == event_type)
        if since is not None:
            stmt = stmt.where(Event.created_at >= since)
        order = Event.created_at.desc() if newest_first else Event.created_at.asc()
        return list(session.exec(stmt.order_by(order)).all())
