# jokko/repositories/user_repo.py
import uuid

from sqlalchemy import or_
from sqlmodel import Session, select, delete

from jokko.models.provider import ProviderAttributeVote
from jokko.models.recommendation import Recommendation
from jokko.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def search(self, session: Session, search: str | None = None) -> list[User]:
        """
        All users, newest first, optionally filtered by a case-insensitive
        substring of name, email or phone.

        Not paginated: callers dedupe by phone before paging.
        """
        stmt = select(User).order_by(User.created_at.desc())
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                    User.phone_e164.ilike(pattern),
                )
            )
        return list(session.exec(stmt).all())

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def delete_with_related(self, session: Session, user: User) -> None:
        """
        Delete the user's recommendations and attribute votes, then the
        user. Connections are removed by ConnectionRepository beforehand.
        """
        session.exec(delete(Recommendation).where(Recommendation.recommender_user_id == user.id))
        session.exec(delete(ProviderAttributeVote).where(ProviderAttributeVote.user_id == user.id))
        session.delete(user)
        session.commit()
