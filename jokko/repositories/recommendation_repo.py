# jokko/repositories/recommendation_repo.py
import uuid
from dataclasses import dataclass

from sqlmodel import Session, select

from jokko.models.recommendation import Recommendation
from jokko.models.user import User


@dataclass
class RecommendationRow:
    provider_id: uuid.UUID
    recommender_user_id: uuid.UUID | None
    recommender_name: str | None
    note: str | None


class RecommendationRepository:
    """
    Read-side queries over recommendations.
    """

    def list_for_providers(
        self,
        session: Session,
        provider_ids: list[uuid.UUID],
    ) -> list[RecommendationRow]:
        """
        All recommendations of the given providers, oldest first, with the
        recommender's display name (None when the user no longer exists).
        """
        if not provider_ids:
            return []

        stmt = (
            select(
                Recommendation.provider_id,
                Recommendation.recommender_user_id,
                User.name,
                Recommendation.note,
            )
            .join(User, User.id == Recommendation.recommender_user_id, isouter=True)
            .where(Recommendation.provider_id.in_(provider_ids))
            .order_by(Recommendation.created_at, Recommendation.id)
        )
        return [RecommendationRow(*row) for row in session.exec(stmt).all()]
