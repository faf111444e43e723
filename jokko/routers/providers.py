# jokko/routers/providers.py
import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from jokko.core.auth import get_current_user_id
from jokko.core.dependencies import get_connection_schema
from jokko.database import get_session
from jokko.repositories.connection_repo import ConnectionRepository, ConnectionSchema
from jokko.repositories.provider_repo import ProviderRepository
from jokko.repositories.recommendation_repo import RecommendationRepository
from jokko.schemas.provider import (
    ProviderListResponse,
    ProviderReferralCreate,
    ProviderReferralResult,
)
from jokko.services.network_service import NetworkService
from jokko.services.provider_service import ProviderService

router = APIRouter(prefix="/providers", tags=["Providers"])

repo = ProviderRepository()
service = ProviderService(
    repo,
    RecommendationRepository(),
    NetworkService(ConnectionRepository()),
)


@router.get("", response_model=ProviderListResponse)
def list_providers(
    q: str | None = None,
    service_slug: str | None = Query(default=None, alias="service"),
    city: str | None = None,
    page: int = 1,
    session: Session = Depends(get_session),
    caller_id: uuid.UUID | None = Depends(get_current_user_id),
    connection_schema: ConnectionSchema | None = Depends(get_connection_schema),
):
    """
    Provider search, ranked by the caller's network.

    - Public endpoint; guests get the baseline (newest first) order.
    - `service` must be a known category slug, otherwise ignored.
    - 20 providers per page.
    """
    return service.list_providers(
        session,
        q=q,
        service=service_slug,
        city=city,
        page=page,
        caller_id=caller_id,
        connection_schema=connection_schema,
    )


@router.post("", response_model=ProviderReferralResult)
def refer_provider(
    payload: ProviderReferralCreate,
    response: Response,
    session: Session = Depends(get_session),
):
    """
    Refer a provider.

    - 201 when a new provider was created.
    - 200 with deduped=true when the phone hash is already known.
    """
    provider_id, deduped = service.refer_provider(session, payload)
    response.status_code = status.HTTP_200_OK if deduped else status.HTTP_201_CREATED
    return ProviderReferralResult(id=provider_id, deduped=deduped)
