# jokko/repositories/provider_repo.py
import uuid
from collections import defaultdict

from sqlalchemy import func, or_
from sqlmodel import Session, select, delete

from jokko.models.provider import (
    Provider,
    ProviderAttributeVote,
    ProviderCitySighting,
    ProviderNameAlias,
    ProviderNeighborhood,
    ProviderSpecialty,
    ServiceCategory,
)
from jokko.models.recommendation import Recommendation


class ProviderRepository:
    """
    Data access layer for Provider and its satellite tables.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Providers -----

    def get_by_id(self, session: Session, provider_id: uuid.UUID) -> Provider | None:
        return session.get(Provider, provider_id)

    def get_by_phone_hash(self, session: Session, phone_hash: str) -> Provider | None:
        stmt = select(Provider).where(Provider.phone_hash == phone_hash)
        return session.exec(stmt).first()

    def find_owner_duplicate(
        self,
        session: Session,
        owner_user_id: uuid.UUID | None,
        service_type: str,
        exclude_id: uuid.UUID | None = None,
    ) -> Provider | None:
        """
        Another provider owned by `owner_user_id` with the same service_type.
        """
        if owner_user_id is None:
            return None
        stmt = select(Provider).where(
            Provider.owner_user_id == owner_user_id,
            Provider.service_type == service_type,
        )
        if exclude_id is not None:
            stmt = stmt.where(Provider.id != exclude_id)
        return session.exec(stmt).first()

    def search(
        self,
        session: Session,
        q: str | None = None,
        service_type: str | None = None,
        city: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Provider], int]:
        """
        Public listing query, newest first.

        Returns:
            (page of providers, total matching rows)
        """
        conditions = []
        if q:
            conditions.append(Provider.name.ilike(f"%{q}%"))
        if service_type:
            conditions.append(Provider.service_type == service_type)
        if city:
            conditions.append(Provider.city == city)

        stmt = (
            select(Provider)
            .where(*conditions)
            .order_by(Provider.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Provider).where(*conditions)

        providers = list(session.exec(stmt).all())
        total = int(session.exec(count_stmt).one() or 0)
        return providers, total

    def admin_search(
        self,
        session: Session,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[tuple[Provider, int]], int]:
        """
        Admin listing: substring search over name / service_type / city,
        each provider paired with its recommendation count.
        """
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Provider.name.ilike(pattern),
                    Provider.service_type.ilike(pattern),
                    Provider.city.ilike(pattern),
                )
            )

        rec_count = (
            select(func.count(Recommendation.id))
            .where(Recommendation.provider_id == Provider.id)
            .correlate(Provider)
            .scalar_subquery()
        )

        stmt = (
            select(Provider, rec_count.label("recommendation_count"))
            .where(*conditions)
            .order_by(Provider.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Provider).where(*conditions)

        rows = [(provider, int(count or 0)) for provider, count in session.exec(stmt).all()]
        total = int(session.exec(count_stmt).one() or 0)
        return rows, total

    def recommendation_count(self, session: Session, provider_id: uuid.UUID) -> int:
        stmt = select(func.count(Recommendation.id)).where(Recommendation.provider_id == provider_id)
        return int(session.exec(stmt).one() or 0)

    def create(self, session: Session, provider: Provider) -> Provider:
        session.add(provider)
        session.commit()
        session.refresh(provider)
        return provider

    def update(self, session: Session, provider: Provider) -> Provider:
        session.add(provider)
        session.commit()
        session.refresh(provider)
        return provider

    def delete_with_related(self, session: Session, provider: Provider) -> None:
        """
        Delete a provider after every row that references it.
        """
        for model in (
            Recommendation,
            ProviderAttributeVote,
            ProviderNeighborhood,
            ProviderSpecialty,
            ProviderCitySighting,
            ProviderNameAlias,
        ):
            session.exec(delete(model).where(model.provider_id == provider.id))
        session.delete(provider)
        session.commit()

    # ----- Categories -----

    def get_category_by_slug(self, session: Session, slug: str) -> ServiceCategory | None:
        stmt = select(ServiceCategory).where(ServiceCategory.slug == slug)
        return session.exec(stmt).first()

    # ----- Satellite rows -----

    def add_neighborhoods(
        self,
        session: Session,
        provider_id: uuid.UUID,
        neighborhoods: list[str],
        city: str | None,
    ) -> None:
        for name in neighborhoods:
            session.add(ProviderNeighborhood(provider_id=provider_id, neighborhood=name, city=city))
        session.commit()

    def add_specialties(
        self,
        session: Session,
        provider_id: uuid.UUID,
        specialties: list[str],
    ) -> None:
        for name in specialties:
            session.add(ProviderSpecialty(provider_id=provider_id, specialty=name))
        session.commit()

    def record_sighting_and_alias(
        self,
        session: Session,
        provider_id: uuid.UUID,
        city: str | None,
        alias: str | None,
        source: str = "provider",
    ) -> None:
        if city:
            session.add(ProviderCitySighting(provider_id=provider_id, city=city, source=source))
        if alias:
            exists = session.exec(
                select(ProviderNameAlias).where(
                    ProviderNameAlias.provider_id == provider_id,
                    ProviderNameAlias.alias == alias,
                )
            ).first()
            if exists is None:
                session.add(ProviderNameAlias(provider_id=provider_id, alias=alias, source=source))
        session.commit()

    def neighborhoods_for(self, session: Session, provider_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        out: dict[uuid.UUID, list[str]] = defaultdict(list)
        if not provider_ids:
            return out
        stmt = (
            select(ProviderNeighborhood)
            .where(ProviderNeighborhood.provider_id.in_(provider_ids))
            .order_by(ProviderNeighborhood.id)
        )
        for row in session.exec(stmt).all():
            out[row.provider_id].append(row.neighborhood)
        return out

    def specialties_for(self, session: Session, provider_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        out: dict[uuid.UUID, list[str]] = defaultdict(list)
        if not provider_ids:
            return out
        stmt = (
            select(ProviderSpecialty)
            .where(ProviderSpecialty.provider_id.in_(provider_ids))
            .order_by(ProviderSpecialty.id)
        )
        for row in session.exec(stmt).all():
            out[row.provider_id].append(row.specialty)
        return out
