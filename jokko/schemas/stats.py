# jokko/schemas/stats.py
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DailyCount(_CamelModel):
    """
    Distinct phone numbers of users created on a given UTC day.
    """

    date: date
    count: int


class ActivityPoint(_CamelModel):
    date: date
    dau: int
    wau: int


class AdminKPIs(_CamelModel):
    """
    Dashboard KPI cards and series.

    *_change fields are percentages against the previous window of the
    same length, 0 when that window is empty.
    """

    total_users: int = PydanticField(alias="totalUsers")
    seekers: int
    providers: int
    total_providers: int = PydanticField(alias="totalProviders")
    new_users_7d: int = PydanticField(alias="newUsers7d")
    active_users_dau: int = PydanticField(alias="activeUsersDAU")
    active_users_wau: int = PydanticField(alias="activeUsersWAU")
    active_users_mau: int = PydanticField(alias="activeUsersMAU")
    provider_views_7d: int = PydanticField(alias="providerViews7d")
    contact_clicks_7d: int = PydanticField(alias="contactClicks7d")
    avg_recommendations_per_provider: float = PydanticField(alias="avgRecommendationsPerProvider")

    user_growth_7d: list[DailyCount] = PydanticField(alias="userGrowth7d")
    user_growth_30d: list[DailyCount] = PydanticField(alias="userGrowth30d")
    user_growth_90d: list[DailyCount] = PydanticField(alias="userGrowth90d")
    seeker_growth_30d: list[DailyCount] = PydanticField(alias="seekerGrowth30d")
    provider_growth_30d: list[DailyCount] = PydanticField(alias="providerGrowth30d")
    activity_data: list[ActivityPoint] = PydanticField(alias="activityData")

    total_users_change: float = PydanticField(alias="totalUsersChange")
    total_providers_change: float = PydanticField(alias="totalProvidersChange")
    new_users_7d_change: float = PydanticField(alias="newUsers7dChange")
    active_users_dau_change: float = PydanticField(alias="activeUsersDAUChange")
    provider_views_7d_change: float = PydanticField(alias="providerViews7dChange")
    contact_clicks_7d_change: float = PydanticField(alias="contactClicks7dChange")


class UserGrowthPoint(_CamelModel):
    week: str
    week_start: date = PydanticField(alias="weekStart")
    total_users: int = PydanticField(alias="totalUsers")
    seekers: int
    providers: int


class ContactClickRead(_CamelModel):
    id: uuid.UUID
    created_at: datetime
    provider_id: str | None = None
    provider_name: str
    service_type: str
    user_id: str | None = None
    user_name: str


class ContactClickList(_CamelModel):
    clicks: list[ContactClickRead]
    total: int


class ContactClickWeek(_CamelModel):
    week: str
    week_start: date = PydanticField(alias="weekStart")
    clicks: int


class ContactClickChart(_CamelModel):
    chart_data: list[ContactClickWeek] = PydanticField(alias="chartData")
    total_clicks: int = PydanticField(alias="totalClicks")
