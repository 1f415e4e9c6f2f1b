"""Pydantic schemas."""

from linkpulse.schemas.analytics import (
    AnalyticsSummary,
    BrowserStats,
    CityStats,
    ClicksOverTime,
    CountryStats,
    DashboardAnalytics,
    DeviceStats,
    PeriodComparison,
    ReferrerStats,
    TopUrl,
    UrlAnalytics,
)
from linkpulse.schemas.click import Visitor
from linkpulse.schemas.link import (
    LinkBase,
    LinkCreate,
    LinkListResponse,
    LinkResponse,
    LinkUpdate,
)

__all__ = [
    "AnalyticsSummary",
    "BrowserStats",
    "CityStats",
    "ClicksOverTime",
    "CountryStats",
    "DashboardAnalytics",
    "DeviceStats",
    "PeriodComparison",
    "ReferrerStats",
    "TopUrl",
    "UrlAnalytics",
    "Visitor",
    "LinkBase",
    "LinkCreate",
    "LinkListResponse",
    "LinkResponse",
    "LinkUpdate",
]
