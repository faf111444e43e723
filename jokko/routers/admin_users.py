# jokko/routers/admin_users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from jokko.core.auth import require_admin
from jokko.core.dependencies import get_connection_schema
from jokko.database import get_session
from jokko.repositories.connection_repo import ConnectionRepository, ConnectionSchema
from jokko.repositories.stats_repo import StatsRepository
from jokko.repositories.user_repo import UserRepository
from jokko.schemas.user import AdminUserEnvelope, AdminUserList, AdminUserUpdate, RoleFilter
from jokko.services.user_service import AdminUserService

router = APIRouter(
    prefix="/admin/users",
    tags=["Admin Users"],
    dependencies=[Depends(require_admin)],
)

repo = UserRepository()
service = AdminUserService(repo, StatsRepository(), ConnectionRepository())


@router.get("", response_model=AdminUserList)
def list_users(
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    role: RoleFilter = "all",
    session: Session = Depends(get_session),
):
    """
    Users deduplicated by phone number, with resolved seeker/provider role.

    Query params:
      - search: name, email or phone substring
      - role: all | seeker | provider
    """
    return service.list_users(session, page=page, limit=limit, search=search, role=role)


@router.patch("/{user_id}", response_model=AdminUserEnvelope)
def update_user(
    user_id: uuid.UUID,
    payload: AdminUserUpdate,
    session: Session = Depends(get_session),
):
    """
    Toggle a user's status or update profile fields (admin only).
    """
    return AdminUserEnvelope(user=service.update_user(session, user_id, payload))


@router.delete("/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    connection_schema: ConnectionSchema | None = Depends(get_connection_schema),
):
    """
    Delete a user from Supabase Auth and the database (admin only).
    """
    service.delete_user(session, user_id, connection_schema)
    return {"success": True}
