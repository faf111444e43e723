# jokko/services/stats_service.py
import uuid
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Literal

from sqlmodel import Session

from jokko.models.event import Event
from jokko.models.provider import Provider
from jokko.repositories.stats_repo import StatsRepository
from jokko.schemas.stats import (
    ActivityPoint,
    AdminKPIs,
    ContactClickChart,
    ContactClickList,
    ContactClickRead,
    ContactClickWeek,
    DailyCount,
    UserGrowthPoint,
)
from jokko.services.user_counting import get_user_counts

ClickFilter = Literal["7d", "30d", "all"]

CONTACT_CLICK = "contact_click"
PROVIDER_VIEW = "provider_view"

GROWTH_WEEKS = 8
CHART_WEEKS = 8


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def pct_change(current: int | float, previous: int | float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def short_date(d: date) -> str:
    """date(2025, 1, 5) -> "Jan 5" """
    return f"{d:%b} {d.day}"


def week_start_sunday(d: date) -> date:
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_start_monday(d: date) -> date:
    return d - timedelta(days=d.weekday())


def parse_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def payload_text(payload: dict[str, Any], key: str) -> str | None:
    """Payload values are client-supplied JSON; render them as display text."""
    value = payload.get(key)
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def daily_distinct_phones(
    signups: Iterable[tuple],
    today: date,
    days: int,
    user_type: str | None = None,
) -> list[DailyCount]:
    """
    Distinct non-empty phones of users created per day, for the `days`
    days ending `today` (oldest first, zero-filled).
    """
    phones_by_day: dict[date, set[str]] = defaultdict(set)
    for phone, kind, created_at in signups:
        if not phone:
            continue
        if user_type is not None and kind != user_type:
            continue
        phones_by_day[as_utc(created_at).date()].add(phone)

    first = today - timedelta(days=days - 1)
    return [
        DailyCount(date=d, count=len(phones_by_day.get(d, ())))
        for d in (first + timedelta(days=i) for i in range(days))
    ]


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    # ----- KPIs -----

    def _active_users(
        self,
        activity: list[tuple],
        start: datetime,
        end: datetime,
    ) -> int:
        return len({uid for uid, created_at in activity if start <= as_utc(created_at) < end})

    def _activity_series(self, activity: list[tuple], today: date) -> list[ActivityPoint]:
        ids_by_day: dict[date, set[uuid.UUID]] = defaultdict(set)
        for uid, created_at in activity:
            ids_by_day[as_utc(created_at).date()].add(uid)

        points: list[ActivityPoint] = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            week: set[uuid.UUID] = set()
            for back in range(7):
                week |= ids_by_day.get(day - timedelta(days=back), set())
            points.append(
                ActivityPoint(date=day, dau=len(ids_by_day.get(day, ())), wau=len(week))
            )
        return points

    def get_kpis(self, session: Session, now: datetime | None = None) -> AdminKPIs:
        """
        KPI cards, growth series and period-over-period changes.

        Active users are distinct recommendation authors in the window.
        """
        now = as_utc(now) if now else datetime.now(timezone.utc)
        today = now.date()

        def days(n: int) -> datetime:
            return now - timedelta(days=n)

        total_users = self.repo.count_users(session)
        total_providers = self.repo.count_providers(session)
        new_users_7d = self.repo.count_users_created_since(session, days(7))
        new_users_prev = self.repo.count_users_created_between(session, days(14), days(7))
        new_providers_7d = self.repo.count_providers_created_since(session, days(7))

        activity = self.repo.recommendation_activity_since(session, days(30))
        dau = self._active_users(activity, days(1), now)
        dau_prev = self._active_users(activity, days(2), days(1))

        views_7d = self.repo.count_events(session, PROVIDER_VIEW, days(7))
        views_prev = self.repo.count_events(session, PROVIDER_VIEW, days(14), days(7))
        clicks_7d = self.repo.count_events(session, CONTACT_CLICK, days(7))
        clicks_prev = self.repo.count_events(session, CONTACT_CLICK, days(14), days(7))

        total_recs = self.repo.count_recommendations(session)
        avg_recs = round(total_recs / total_providers, 1) if total_providers else 0.0

        signups = self.repo.user_signups_since(
            session,
            datetime.combine(today - timedelta(days=89), time.min, tzinfo=timezone.utc),
        )

        return AdminKPIs(
            total_users=total_users,
            seekers=self.repo.count_users(session, "seeker"),
            providers=self.repo.count_users(session, "provider"),
            total_providers=total_providers,
            new_users_7d=new_users_7d,
            active_users_dau=dau,
            active_users_wau=self._active_users(activity, days(7), now),
            active_users_mau=self._active_users(activity, days(30), now),
            provider_views_7d=views_7d,
            contact_clicks_7d=clicks_7d,
            avg_recommendations_per_provider=avg_recs,
            user_growth_7d=daily_distinct_phones(signups, today, 7),
            user_growth_30d=daily_distinct_phones(signups, today, 30),
            user_growth_90d=daily_distinct_phones(signups, today, 90),
            seeker_growth_30d=daily_distinct_phones(signups, today, 30, "seeker"),
            provider_growth_30d=daily_distinct_phones(signups, today, 30, "provider"),
            activity_data=self._activity_series(activity, today),
            total_users_change=pct_change(total_users, total_users - new_users_7d),
            total_providers_change=pct_change(total_providers, total_providers - new_providers_7d),
            new_users_7d_change=pct_change(new_users_7d, new_users_prev),
            active_users_dau_change=pct_change(dau, dau_prev),
            provider_views_7d_change=pct_change(views_7d, views_prev),
            contact_clicks_7d_change=pct_change(clicks_7d, clicks_prev),
        )

    # ----- User growth -----

    def get_user_growth(self, session: Session, now: datetime | None = None) -> list[UserGrowthPoint]:
        """
        Weekly cumulative counts starting at the Sunday of the earliest
        user, for at most GROWTH_WEEKS weeks and never past the current one.
        """
        earliest = self.repo.earliest_user_created_at(session)
        if earliest is None:
            return []

        today = (as_utc(now) if now else datetime.now(timezone.utc)).date()
        first = week_start_sunday(as_utc(earliest).date())

        points: list[UserGrowthPoint] = []
        for i in range(GROWTH_WEEKS):
            start = first + timedelta(weeks=i)
            if start > today:
                break
            end = start + timedelta(days=6)
            counts = get_user_counts(
                session,
                self.repo,
                up_to=datetime.combine(end, time.max, tzinfo=timezone.utc),
            )
            points.append(
                UserGrowthPoint(
                    week=f"Week {i + 1} ({short_date(start)} - {short_date(end)})",
                    week_start=start,
                    total_users=counts.total_users,
                    seekers=counts.seekers,
                    providers=counts.providers,
                )
            )
        return points

    # ----- Contact clicks -----

    def _click_rows(self, session: Session, events: list[Event]) -> list[ContactClickRead]:
        def user_of(event: Event) -> uuid.UUID | None:
            return event.user_id or parse_uuid((event.event_payload or {}).get("user_id"))

        user_names = self.repo.user_names(
            session, list({uid for uid in map(user_of, events) if uid})
        )
        providers = self.repo.providers_by_ids(
            session,
            list({
                pid
                for pid in (parse_uuid((e.event_payload or {}).get("provider_id")) for e in events)
                if pid
            }),
        )

        rows: list[ContactClickRead] = []
        for event in events:
            payload = event.event_payload or {}
            raw_provider_id = payload.get("provider_id")
            provider_id = parse_uuid(raw_provider_id)
            provider: Provider | None = providers.get(provider_id) if provider_id else None
            user_id = user_of(event)

            rows.append(
                ContactClickRead(
                    id=event.id,
                    created_at=event.created_at,
                    provider_id=str(raw_provider_id) if raw_provider_id is not None else None,
                    provider_name=(
                        payload_text(payload, "provider_name")
                        or (provider.name if provider else None)
                        or "Unknown Provider"
                    ),
                    service_type=(
                        payload_text(payload, "service_type")
                        or (provider.service_type if provider else None)
                        or "unknown"
                    ),
                    user_id=str(user_id) if user_id else None,
                    user_name=(
                        payload_text(payload, "user_name")
                        or user_names.get(user_id)
                        or ("Unknown User" if user_id else "Guest User")
                    ),
                )
            )
        return rows

    def get_contact_clicks(
        self,
        session: Session,
        filter: ClickFilter = "all",
        now: datetime | None = None,
    ) -> ContactClickList:
        now = as_utc(now) if now else datetime.now(timezone.utc)
        since = {"7d": now - timedelta(days=7), "30d": now - timedelta(days=30)}.get(filter)

        events = self.repo.events(session, CONTACT_CLICK, since=since, newest_first=True)
        clicks = self._click_rows(session, events)
        return ContactClickList(clicks=clicks, total=len(clicks))

    def get_contact_clicks_chart(
        self,
        session: Session,
        filter: str = "all",
        now: datetime | None = None,
    ) -> ContactClickChart:
        """
        Clicks per Monday-start week for the CHART_WEEKS weeks ending with
        the current one. `filter` is "all" or a service type.
        """
        today = (as_utc(now) if now else datetime.now(timezone.utc)).date()

        events = self.repo.events(session, CONTACT_CLICK, newest_first=False)
        clicks = self._click_rows(session, events)
        if filter != "all":
            clicks = [c for c in clicks if c.service_type == filter]

        per_week: dict[date, int] = defaultdict(int)
        for click in clicks:
            per_week[week_start_monday(as_utc(click.created_at).date())] += 1

        current = week_start_monday(today)
        weeks = [current - timedelta(weeks=n) for n in range(CHART_WEEKS - 1, -1, -1)]

        return ContactClickChart(
            chart_data=[
                ContactClickWeek(week=short_date(w), week_start=w, clicks=per_week.get(w, 0))
                for w in weeks
            ],
            total_clicks=len(clicks),
        )
