# jokko/services/user_service.py
import logging
import math
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from jokko.core.supabase_client import AuthUserNotFound, delete_auth_user
from jokko.models.user import User
from jokko.repositories.connection_repo import ConnectionRepository, ConnectionSchema
from jokko.repositories.stats_repo import StatsRepository
from jokko.repositories.user_repo import UserRepository
from jokko.schemas.user import AdminUserList, AdminUserRead, AdminUserUpdate, RoleFilter
from jokko.services.user_counting import dedupe_users_by_phone, get_user_counts, resolve_roles

logger = logging.getLogger(__name__)


class AdminUserService:
    """
    Admin dashboard operations on users.

    Responsibilities:
      - listing with phone dedupe and role detection
      - status toggle / partial profile update
      - deletion across Supabase Auth and every table referencing the user
    """

    def __init__(
        self,
        repo: UserRepository,
        stats_repo: StatsRepository,
        connection_repo: ConnectionRepository,
    ):
        self.repo = repo
        self.stats_repo = stats_repo
        self.connection_repo = connection_repo

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    @staticmethod
    def _to_read(user: User, role: str) -> AdminUserRead:
        return AdminUserRead(
            id=user.id,
            name=user.name,
            email=user.email,
            phone_e164=user.phone_e164,
            language=user.language,
            user_type=user.user_type,
            role=role,
            is_active=user.is_active,
            created_at=user.created_at,
        )

    def _role_of(self, session: Session, user: User) -> str:
        recommender_ids = set()
        if user.user_type not in ("seeker", "provider"):
            recommender_ids = self.stats_repo.recommender_ids_among(session, [user.id])
        return resolve_roles([user], recommender_ids)[user.id]

    # ----- Operations -----

    def list_users(
        self,
        session: Session,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
        role: RoleFilter = "all",
    ) -> AdminUserList:
        """
        Deduped, role-annotated users, newest first.

        seekersCount / providersCount are global (not affected by search or
        role filter) so they match the KPI cards.
        """
        page = max(page, 1)
        limit = max(limit, 1)

        users = dedupe_users_by_phone(self.repo.search(session, search or None))
        untyped = [u.id for u in users if u.user_type not in ("seeker", "provider")]
        roles = resolve_roles(users, self.stats_repo.recommender_ids_among(session, untyped))

        if role != "all":
            users = [u for u in users if roles[u.id] == role]
        users.sort(key=lambda u: u.created_at, reverse=True)

        total = len(users)
        start = (page - 1) * limit
        counts = get_user_counts(session, self.stats_repo)

        return AdminUserList(
            users=[self._to_read(u, roles[u.id]) for u in users[start:start + limit]],
            total=total,
            seekers_count=counts.seekers,
            providers_count=counts.providers,
            page=page,
            total_pages=math.ceil(total / limit),
            limit=limit,
        )

    def update_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: AdminUserUpdate,
    ) -> AdminUserRead:
        """
        - action="toggle_status": set is_active (flip it when not given).
        - otherwise: apply the fields that were sent.
        """
        user = self.get_user(session, user_id)

        if payload.action == "toggle_status":
            user.is_active = (
                payload.is_active if payload.is_active is not None else not user.is_active
            )
        else:
            data = payload.model_dump(exclude_unset=True, exclude={"action"})
            for key, value in data.items():
                setattr(user, key, value)

        user = self.repo.update(session, user)
        return self._to_read(user, self._role_of(session, user))

    def delete_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        connection_schema: ConnectionSchema | None = None,
    ) -> None:
        """
        Delete the Supabase auth user, then the profile and its references.

        An auth user that is already gone is not an error; any other auth
        failure aborts before touching the database.
        """
        user = self.get_user(session, user_id)

        try:
            delete_auth_user(str(user.id))
        except AuthUserNotFound:
            logger.info("Auth user %s already absent, deleting profile only", user.id)
        except Exception as e:
            logger.error("Supabase auth delete failed for %s: %s", user.id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete user from auth",
            )

        self.connection_repo.delete_for_user(session, user.id, connection_schema)
        self.repo.delete_with_related(session, user)
