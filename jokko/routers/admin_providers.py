# jokko/routers/admin_providers.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from jokko.core.auth import require_admin
from jokko.database import get_session
from jokko.repositories.provider_repo import ProviderRepository
from jokko.schemas.provider import (
    AdminProviderCreate,
    AdminProviderEnvelope,
    AdminProviderList,
    AdminProviderUpdate,
)
from jokko.services.admin_provider_service import AdminProviderService

router = APIRouter(
    prefix="/admin/providers",
    tags=["Admin Providers"],
    dependencies=[Depends(require_admin)],
)

repo = ProviderRepository()
service = AdminProviderService(repo)


@router.get("", response_model=AdminProviderList)
def list_providers(
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    session: Session = Depends(get_session),
):
    """
    Paginated providers, newest first, with decoded phone numbers.

    `search` matches name, service type or city (case-insensitive).
    """
    return service.list_providers(session, page=page, limit=limit, search=search)


@router.post(
    "",
    response_model=AdminProviderEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_provider(
    payload: AdminProviderCreate,
    session: Session = Depends(get_session),
):
    """
    Create a provider (admin only).
    """
    return AdminProviderEnvelope(provider=service.create_provider(session, payload))


@router.patch("/{provider_id}", response_model=AdminProviderEnvelope)
def update_provider(
    provider_id: uuid.UUID,
    payload: AdminProviderUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a provider (admin only).
    """
    return AdminProviderEnvelope(provider=service.update_provider(session, provider_id, payload))


@router.delete("/{provider_id}")
def delete_provider(
    provider_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a provider and everything attached to it (admin only).
    """
    service.delete_provider(session, provider_id)
    return {"success": True}
