"""Analytics report endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request, status

from linkpulse.aggregators import AnalyticsAggregator
from linkpulse.core.config import get_settings
from linkpulse.core.database import AsyncSessionDep
from linkpulse.core.deps import CurrentUser
from linkpulse.core.rate_limit import RATE_LIMIT_ANALYTICS, limiter
from linkpulse.schemas.analytics import DashboardAnalytics, UrlAnalytics

router = APIRouter(prefix="/analytics", tags=["analytics"])

PeriodQuery = Annotated[
    str,
    Query(description="Lookback period: 7d, 30d, 90d or 1y (unknown values use 30d)"),
]


@router.get("/dashboard", response_model=DashboardAnalytics, response_model_by_alias=True)
@limiter.limit(RATE_LIMIT_ANALYTICS)
async def get_dashboard(
    request: Request,
    user: CurrentUser,
    session: AsyncSessionDep,
    period: PeriodQuery = "30d",
) -> DashboardAnalytics:
    """Analytics across all of the current user's links."""
    aggregator = AnalyticsAggregator(session, top_n=get_settings().analytics_top_n)
    return await aggregator.get_dashboard_analytics(user.id, period)


@router.get("/links/{link_id}", response_model=UrlAnalytics, response_model_by_alias=True)
@limiter.limit(RATE_LIMIT_ANALYTICS)
async def get_link_analytics(
    request: Request,
    link_id: UUID,
    user: CurrentUser,
    session: AsyncSessionDep,
    period: PeriodQuery = "30d",
) -> UrlAnalytics:
    """Analytics for one of the current user's links."""
    aggregator = AnalyticsAggregator(session, top_n=get_settings().analytics_top_n)
    report = await aggregator.get_url_analytics(link_id, user.id, period)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )
    return report
