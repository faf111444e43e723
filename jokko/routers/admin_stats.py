# jokko/routers/admin_stats.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from jokko.core.auth import require_admin
from jokko.database import get_session
from jokko.repositories.stats_repo import StatsRepository
from jokko.schemas.stats import (
    AdminKPIs,
    ContactClickChart,
    ContactClickList,
    UserGrowthPoint,
)
from jokko.services.stats_service import ClickFilter, StatsService

router = APIRouter(
    prefix="/admin",
    tags=["Admin Stats"],
    dependencies=[Depends(require_admin)],
)

repo = StatsRepository()
service = StatsService(repo)


@router.get("/kpis", response_model=AdminKPIs)
def get_kpis(session: Session = Depends(get_session)):
    """
    Dashboard KPI cards and growth series.
    """
    return service.get_kpis(session)


@router.get("/user-growth", response_model=list[UserGrowthPoint])
def get_user_growth(session: Session = Depends(get_session)):
    """
    Weekly cumulative seekers / providers since the first sign-up.
    """
    return service.get_user_growth(session)


@router.get("/contact-clicks", response_model=ContactClickList)
def get_contact_clicks(
    filter: ClickFilter = "all",
    session: Session = Depends(get_session),
):
    """
    Contact clicks, newest first, with provider and user names.

    Query params:
      - filter: 7d | 30d | all
    """
    return service.get_contact_clicks(session, filter=filter)


@router.get("/contact-clicks-chart", response_model=ContactClickChart)
def get_contact_clicks_chart(
    filter: str = "all",
    session: Session = Depends(get_session),
):
    """
    Weekly contact clicks for the last 8 weeks.

    Query params:
      - filter: all, or a service type
    """
    return service.get_contact_clicks_chart(session, filter=filter)
