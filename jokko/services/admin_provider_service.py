# jokko/services/admin_provider_service.py
import logging
import math
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from jokko.core.config import get_settings
from jokko.core.phone_codec import InvalidKeyError, decode_phone, encode_phone, hash_phone
from jokko.models.provider import Provider
from jokko.repositories.provider_repo import ProviderRepository
from jokko.schemas.provider import (
    AdminProviderCreate,
    AdminProviderList,
    AdminProviderRead,
    AdminProviderUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Dakar"


class AdminProviderService:
    """
    Admin dashboard operations on providers.

    Responsibilities:
      - listing with decoded phone numbers and recommendation counts
      - create/update with validation, owner+service dedupe and phone
        hashing/encryption
      - cascading delete
    """

    def __init__(self, repo: ProviderRepository, key_hex: str | None = None):
        self.repo = repo
        self._key_hex = key_hex

    @property
    def key_hex(self) -> str | None:
        return self._key_hex if self._key_hex is not None else get_settings().ENCRYPTION_KEY_HEX

    # ----- Helpers -----

    def _encrypt(self, phone: str) -> str | None:
        """
        Envelope for storage; None (stored unencrypted-absent) without a key.
        """
        try:
            return encode_phone(phone, self.key_hex)
        except InvalidKeyError:
            logger.warning("ENCRYPTION_KEY_HEX is invalid, skipping phone encryption")
            return None

    def _to_read(
        self,
        provider: Provider,
        recommendation_count: int = 0,
        neighborhoods: list[str] | None = None,
        specialties: list[str] | None = None,
    ) -> AdminProviderRead:
        return AdminProviderRead(
            id=provider.id,
            name=provider.name,
            service_type=provider.service_type,
            service_category_id=provider.service_category_id,
            city=provider.city,
            photo_url=provider.photo_url,
            owner_user_id=provider.owner_user_id,
            created_at=provider.created_at,
            phone_e164=decode_phone(provider.phone_enc, self.key_hex) or "",
            recommendation_count=recommendation_count,
            neighborhoods=neighborhoods or [],
            specialties=specialties or [],
        )

    def _require_category(self, session: Session, service_type: str) -> int:
        category = self.repo.get_category_by_slug(session, service_type)
        if category is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid service type",
            )
        return category.id

    def _ensure_no_owner_duplicate(
        self,
        session: Session,
        owner_user_id: uuid.UUID | None,
        service_type: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        if self.repo.find_owner_duplicate(session, owner_user_id, service_type, exclude_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Provider already exists for this user and service type",
            )

    def get_provider(self, session: Session, provider_id: uuid.UUID) -> Provider:
        provider = self.repo.get_by_id(session, provider_id)
        if not provider:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Provider not found",
            )
        return provider

    # ----- Operations -----

    def list_providers(
        self,
        session: Session,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
    ) -> AdminProviderList:
        page = max(page, 1)
        limit = max(limit, 1)
        rows, total = self.repo.admin_search(
            session,
            search=search or None,
            skip=(page - 1) * limit,
            limit=limit,
        )

        ids = [provider.id for provider, _ in rows]
        neighborhoods = self.repo.neighborhoods_for(session, ids)
        specialties = self.repo.specialties_for(session, ids)

        return AdminProviderList(
            providers=[
                self._to_read(
                    provider,
                    count,
                    neighborhoods.get(provider.id),
                    specialties.get(provider.id),
                )
                for provider, count in rows
            ],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            limit=limit,
        )

    def create_provider(self, session: Session, payload: AdminProviderCreate) -> AdminProviderRead:
        """
        Create a provider.

        - 409 if the owner already has a provider for this service type.
        - 400 if the service type is not a known category.
        """
        self._ensure_no_owner_duplicate(session, payload.owner_user_id, payload.service_type)
        category_id = self._require_category(session, payload.service_type)

        city = payload.city or DEFAULT_CITY
        provider = self.repo.create(
            session,
            Provider(
                name=payload.name,
                service_type=payload.service_type,
                service_category_id=category_id,
                city=city,
                phone_hash=hash_phone(payload.phone, self.key_hex),
                phone_enc=self._encrypt(payload.phone),
                owner_user_id=payload.owner_user_id,
            ),
        )

        if payload.neighborhoods:
            self.repo.add_neighborhoods(session, provider.id, payload.neighborhoods, city)
        if payload.specialties:
            self.repo.add_specialties(session, provider.id, payload.specialties)

        return self._to_read(
            provider,
            neighborhoods=payload.neighborhoods,
            specialties=payload.specialties,
        )

    def update_provider(
        self,
        session: Session,
        provider_id: uuid.UUID,
        payload: AdminProviderUpdate,
    ) -> AdminProviderRead:
        """
        Full update of a provider.

        Providers have no status column, so action="toggle_status" is
        rejected with 400.
        """
        provider = self.get_provider(session, provider_id)

        if payload.action == "toggle_status":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Status toggle not supported for providers",
            )

        if not payload.name or not payload.service_type or not payload.city:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing required fields",
            )

        self._ensure_no_owner_duplicate(
            session,
            provider.owner_user_id,
            payload.service_type,
            exclude_id=provider.id,
        )
        category_id = self._require_category(session, payload.service_type)

        provider.name = payload.name
        provider.service_type = payload.service_type
        provider.service_category_id = category_id
        provider.city = payload.city

        # Only re-hash / re-encrypt when a new phone was given
        if payload.phone:
            provider.phone_hash = hash_phone(payload.phone, self.key_hex)
            provider.phone_enc = self._encrypt(payload.phone)

        provider = self.repo.update(session, provider)
        return self._to_read(
            provider,
            self.repo.recommendation_count(session, provider.id),
            self.repo.neighborhoods_for(session, [provider.id]).get(provider.id),
            self.repo.specialties_for(session, [provider.id]).get(provider.id),
        )

    def delete_provider(self, session: Session, provider_id: uuid.UUID) -> None:
        """
        Delete a provider together with its recommendations, votes and
        satellite rows.
        """
        provider = self.get_provider(session, provider_id)
        logger.info("Deleting provider %s (%s)", provider.name, provider.service_type)
        self.repo.delete_with_related(session, provider)
