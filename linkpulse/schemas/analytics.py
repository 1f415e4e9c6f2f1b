"""Pydantic schemas for analytics reports.

Reports serialize with camelCase field names (``totalClicks``,
``clicksOverTime``...) since dashboards consume them verbatim.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    """Base for report models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyticsSummary(ReportModel):
    """Dashboard summary across all of an owner's links."""

    total_urls: int = Field(description="Number of links owned")
    total_clicks: int = Field(description="Lifetime clicks across all links")
    unique_clicks: int = Field(description="Distinct IPs in the current period")
    clicks_in_period: int = Field(description="Clicks in the current period")
    avg_clicks_per_url: float
    click_rate: float = Field(description="avgClicksPerUrl expressed as a percentage")


class PeriodComparison(ReportModel):
    """Current vs. previous period for one metric."""

    current: int
    previous: int
    change: int
    change_percentage: float


class DashboardComparison(ReportModel):
    clicks: PeriodComparison
    unique_clicks: PeriodComparison
    urls: PeriodComparison


class ClicksOverTime(ReportModel):
    """A single bucket of the clicks time series."""

    date: str = Field(description="Bucket date (YYYY-MM-DD); week buckets use the Sunday")
    clicks: int
    unique_clicks: int


class TopUrl(ReportModel):
    id: UUID
    short_code: str
    title: str
    original_url: str
    clicks: int
    unique_clicks: int = 0
    created_at: datetime


class CountryStats(ReportModel):
    country: str
    clicks: int
    percentage: float = Field(description="Percentage of clicks with a known country")


class CityStats(ReportModel):
    country: str
    city: str
    clicks: int
    percentage: float


class DeviceStats(ReportModel):
    device: str
    clicks: int
    percentage: float


class BrowserStats(ReportModel):
    browser: str
    clicks: int
    percentage: float


class ReferrerStats(ReportModel):
    referrer: str
    domain: str
    clicks: int
    percentage: float


class DashboardCharts(ReportModel):
    clicks_over_time: list[ClicksOverTime]
    top_urls: list[TopUrl]
    top_countries: list[CountryStats]
    top_cities: list[CityStats]
    top_referrers: list[ReferrerStats]
    top_devices: list[DeviceStats]
    top_browsers: list[BrowserStats]


class DashboardAnalytics(ReportModel):
    """Owner-wide analytics report."""

    summary: AnalyticsSummary
    comparison: DashboardComparison
    charts: DashboardCharts


class UrlInfo(ReportModel):
    id: UUID
    short_code: str
    original_url: str
    title: str | None
    created_at: datetime


class PeakDay(ReportModel):
    date: str
    clicks: int


class UrlSummary(ReportModel):
    total_clicks: int
    unique_clicks: int
    avg_clicks_per_day: float
    peak_day: PeakDay
    first_click: str = Field(description="ISO timestamp of the first click, '' if none")
    last_click: str = Field(description="ISO timestamp of the last click, '' if none")


class HourlyClicks(ReportModel):
    hour: int
    clicks: int


class WeekdayClicks(ReportModel):
    day: str
    clicks: int


class UrlCharts(ReportModel):
    clicks_over_time: list[ClicksOverTime]
    top_countries: list[CountryStats]
    top_cities: list[CityStats]
    top_referrers: list[ReferrerStats]
    top_devices: list[DeviceStats]
    top_browsers: list[BrowserStats]
    hourly_distribution: list[HourlyClicks]
    weekly_distribution: list[WeekdayClicks]


class UrlAnalytics(ReportModel):
    """Analytics report for a single link."""

    url: UrlInfo
    summary: UrlSummary
    charts: UrlCharts
