# jokko/services/provider_service.py
import logging
import re
import uuid
from collections import defaultdict

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from jokko.core.phone_codec import BYTEA_PREFIX
from jokko.models.provider import Provider
from jokko.repositories.connection_repo import ConnectionSchema
from jokko.repositories.provider_repo import ProviderRepository
from jokko.repositories.recommendation_repo import RecommendationRepository, RecommendationRow
from jokko.schemas.provider import (
    ProviderListResponse,
    ProviderReferralCreate,
    ProviderView,
    RecommenderRead,
)
from jokko.services.network_service import NetworkService
from jokko.services.recommendation_notes import aggregate_tags

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

# Category slugs accepted by the `service` filter; anything else is ignored.
SERVICE_SLUGS: frozenset[str] = frozenset(
    {
        "plumber",
        "cleaner",
        "nanny",
        "electrician",
        "carpenter",
        "hair",
        "henna",
        "chef",
        "hvac",
        "handyman",
    }
)

UNKNOWN_RECOMMENDER = "Unknown"

_HEX = re.compile(r"^[0-9a-fA-F]*$")


def normalize_service_slug(service: str | None) -> str | None:
    """
    "Hair " -> "hair"; unrecognized values -> None (filter not applied).
    """
    if not service:
        return None
    slug = re.sub(r"[^a-z]+", "_", service.strip().lower())
    return slug if slug in SERVICE_SLUGS else None


def network_rank_key(view: ProviderView) -> tuple[bool, int]:
    """
    Sort key: network-recommended first, higher count first among them.

    Every zero-count provider maps to the same key, and so do equal
    non-zero counts, so a stable sort keeps their baseline order.
    """
    count = view.network_recommendation_count
    return (count == 0, -count)


class ProviderService:
    """
    Public provider discovery.

    Responsibilities:
      - network-ranked listing with recommendation aggregates
      - provider referral with phone-hash dedupe
    """

    def __init__(
        self,
        repo: ProviderRepository,
        recommendation_repo: RecommendationRepository,
        network_service: NetworkService,
    ):
        self.repo = repo
        self.recommendation_repo = recommendation_repo
        self.network_service = network_service

    # ----- Helpers -----

    def _recommendations(
        self,
        session: Session,
        provider_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, list[RecommendationRow]]:
        """
        Recommendations grouped by provider; empty on read failure.
        """
        grouped: dict[uuid.UUID, list[RecommendationRow]] = defaultdict(list)
        try:
            rows = self.recommendation_repo.list_for_providers(session, provider_ids)
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("Recommendation fetch failed, listing without aggregates: %s", e)
            return grouped

        for row in rows:
            grouped[row.provider_id].append(row)
        return grouped

    def _satellites(
        self,
        session: Session,
        provider_ids: list[uuid.UUID],
    ) -> tuple[dict[uuid.UUID, list[str]], dict[uuid.UUID, list[str]]]:
        try:
            return (
                self.repo.neighborhoods_for(session, provider_ids),
                self.repo.specialties_for(session, provider_ids),
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("Neighborhood/specialty fetch failed: %s", e)
            return {}, {}

    @staticmethod
    def _build_view(
        provider: Provider,
        recs: list[RecommendationRow],
        network: set[uuid.UUID],
        neighborhoods: list[str],
        specialties: list[str],
    ) -> ProviderView:
        network_count = sum(1 for r in recs if r.recommender_user_id in network)

        recommenders: list[RecommenderRead] = []
        for r in recs:
            name = r.recommender_name or UNKNOWN_RECOMMENDER
            if name == UNKNOWN_RECOMMENDER or r.recommender_user_id is None:
                continue
            recommenders.append(RecommenderRead(id=r.recommender_user_id, name=name))

        top_likes, top_watch = aggregate_tags(r.note for r in recs)

        return ProviderView(
            id=provider.id,
            name=provider.name,
            service_type=provider.service_type,
            city=provider.city,
            photo_url=provider.photo_url,
            neighborhoods=neighborhoods,
            specialties=specialties,
            top_likes=top_likes,
            top_watch=top_watch,
            recommenders=recommenders,
            is_network_recommended=network_count > 0,
            network_recommenders=[r for r in recommenders if r.id in network],
            network_recommendation_count=network_count,
        )

    # ----- Listing -----

    def list_providers(
        self,
        session: Session,
        q: str | None = None,
        service: str | None = None,
        city: str | None = None,
        page: int = 1,
        caller_id: uuid.UUID | None = None,
        connection_schema: ConnectionSchema | None = None,
    ) -> ProviderListResponse:
        """
        Network-ranked provider listing.

        Steps:
          1. Fetch one page of matching providers, newest first.
          2. Resolve the caller's network (empty for guests).
          3. Fetch recommendations of the page's providers.
          4. Per provider: network count, recommenders, like/watch tags.
          5. Stable re-sort by network_rank_key.

        Only a failure of step 1 fails the request; later reads degrade to
        empty aggregates.
        """
        page = max(page, 1)
        skip = (page - 1) * PAGE_SIZE

        try:
            providers, total = self.repo.search(
                session,
                q=q or None,
                service_type=normalize_service_slug(service),
                city=city or None,
                skip=skip,
                limit=PAGE_SIZE,
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Provider listing query failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch providers",
            )

        network = self.network_service.resolve_network(session, caller_id, connection_schema)

        provider_ids = [p.id for p in providers]
        recs_by_provider = self._recommendations(session, provider_ids)
        neighborhoods, specialties = self._satellites(session, provider_ids)

        views = [
            self._build_view(
                p,
                recs_by_provider.get(p.id, []),
                network,
                neighborhoods.get(p.id, []),
                specialties.get(p.id, []),
            )
            for p in providers
        ]
        views.sort(key=network_rank_key)

        return ProviderListResponse(
            items=views,
            page=page,
            page_size=PAGE_SIZE,
            total=total,
            has_more=skip + len(views) < total,
        )

    # ----- Referral -----

    def refer_provider(
        self,
        session: Session,
        payload: ProviderReferralCreate,
    ) -> tuple[uuid.UUID, bool]:
        """
        Create a provider from a referral, or return the existing one with
        the same phone hash.

        Returns:
            (provider id, deduped)
        """
        if not payload.name or not payload.service_type or not payload.phone_hash:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid body",
            )

        existing = self.repo.get_by_phone_hash(session, payload.phone_hash)
        if existing is not None:
            return existing.id, True

        phone_enc = None
        if payload.phone_enc:
            hex_part = payload.phone_enc.removeprefix(BYTEA_PREFIX)
            if len(hex_part) % 2 or not _HEX.match(hex_part):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid body",
                )
            phone_enc = BYTEA_PREFIX + hex_part.lower()

        provider = self.repo.create(
            session,
            Provider(
                name=payload.name,
                service_type=payload.service_type,
                city=payload.city or "",
                phone_hash=payload.phone_hash,
                phone_enc=phone_enc,
            ),
        )

        # Best-effort bookkeeping; the referral itself already succeeded
        try:
            self.repo.record_sighting_and_alias(
                session,
                provider.id,
                city=payload.city or None,
                alias=payload.name,
            )
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("Could not record sighting/alias for %s: %s", provider.id, e)

        return provider.id, False
