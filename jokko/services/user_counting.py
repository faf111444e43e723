# jokko/services/user_counting.py
"""
Shared user counting so KPI cards, charts and the users table agree.

- dedupe_users_by_phone: one canonical row per phone number.
- resolve_roles: seeker / provider per user.
- get_user_counts: seekers (deduped users) + providers (provider table).
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlmodel import Session

from jokko.models.user import User
from jokko.repositories.stats_repo import StatsRepository


@dataclass
class UserCounts:
    total_users: int
    seekers: int
    providers: int


def dedupe_users_by_phone(users: Iterable[User]) -> list[User]:
    """
    Collapse users sharing a phone number to the most recently created one.

    Users without a phone number are keyed by id and always kept. A later
    row replaces the kept one only if its created_at is strictly greater,
    so on equal timestamps the first row seen stays.

    Output order follows first appearance of each key; callers that need a
    specific order must sort afterwards.
    """
    by_key: dict[object, User] = {}
    for user in users:
        if user.phone_e164:
            current = by_key.get(user.phone_e164)
            if current is None or user.created_at > current.created_at:
                by_key[user.phone_e164] = user
        else:
            by_key[user.id] = user
    return list(by_key.values())


def resolve_roles(
    users: Iterable[User],
    recommender_ids: set[uuid.UUID],
) -> dict[uuid.UUID, str]:
    """
    Role per user id.

    Explicit user_type wins. Users with no user_type count as providers if
    they ever authored a recommendation, otherwise as seekers.
    """
    roles: dict[uuid.UUID, str] = {}
    for user in users:
        if user.user_type in ("seeker", "provider"):
            roles[user.id] = user.user_type
        elif user.id in recommender_ids:
            roles[user.id] = "provider"
        else:
            roles[user.id] = "seeker"
    return roles


def get_user_counts(
    session: Session,
    repo: StatsRepository,
    up_to: datetime | None = None,
) -> UserCounts:
    """
    Counts as of `up_to` (inclusive), or now if omitted.

    totalUsers is seekers + providers, where providers come from the
    provider table rather than from user roles.
    """
    users = dedupe_users_by_phone(repo.users_created_until(session, up_to))
    untyped = [u.id for u in users if u.user_type not in ("seeker", "provider")]
    recommender_ids = repo.recommender_ids_among(session, untyped)
    roles = resolve_roles(users, recommender_ids)

    seekers = sum(1 for role in roles.values() if role == "seeker")
    providers = repo.count_providers(session, up_to)

    return UserCounts(
        total_users=seekers + providers,
        seekers=seekers,
        providers=providers,
    )
