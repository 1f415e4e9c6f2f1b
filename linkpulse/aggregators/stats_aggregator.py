"""Analytics reports and the daily statistics rollup."""

import time
from collections.abc import Sequence
from datetime import date, datetime, time as day_time
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from linkpulse.aggregators import breakdowns
from linkpulse.aggregators.breakdowns import BreakdownField
from linkpulse.aggregators.periods import Period, resolve_period
from linkpulse.core.errors import translate_storage_errors
from linkpulse.core.observability import record_report, record_rollup
from linkpulse.core.timeutils import utcnow
from linkpulse.models.click import Click
from linkpulse.models.link import Link
from linkpulse.models.stats import LinkStatsDaily
from linkpulse.schemas.analytics import (
    AnalyticsSummary,
    DashboardAnalytics,
    DashboardCharts,
    DashboardComparison,
    PeriodComparison,
    TopUrl,
    UrlAnalytics,
    UrlCharts,
    UrlInfo,
    UrlSummary,
)

logger = structlog.get_logger()

# Dialect-specific INSERT constructs supporting ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def compare(current: int, previous: int) -> PeriodComparison:
    """Build a current vs. previous comparison for one metric."""
    change = current - previous
    return PeriodComparison(
        current=current,
        previous=previous,
        change=change,
        change_percentage=change / previous * 100 if previous > 0 else 0,
    )


class AnalyticsAggregator:
    """Builds analytics reports from raw clicks.

    The aggregator works inside the caller's session and never commits
    on its own; the request dependency (or the rollup command) owns the
    transaction. Every query failure surfaces as StorageError.

    Usage:
        aggregator = AnalyticsAggregator(session)
        report = await aggregator.get_dashboard_analytics(user.id, "30d")
    """

    def __init__(self, session: AsyncSession, top_n: int = 10):
        """Initialize the aggregator.

        Args:
            session: Session used for every query.
            top_n: Number of entries kept in each top-N chart.
        """
        self._session = session
        self._top_n = top_n

    async def _clicks_since(
        self,
        owner_id: UUID,
        period: Period,
    ) -> Sequence[Click]:
        result = await self._session.execute(
            select(Click)
            .join(Link, Click.link_id == Link.id)
            .where(Link.user_id == owner_id)
            .where(Click.clicked_at >= period.start_date)
            .order_by(Click.clicked_at.asc())
        )
        return result.scalars().all()

    async def _previous_window_counts(
        self,
        owner_id: UUID,
        period: Period,
    ) -> tuple[int, int]:
        result = await self._session.execute(
            select(
                func.count(Click.id).label("clicks"),
                func.count(func.distinct(Click.ip_address)).label("unique_clicks"),
            )
            .join(Link, Click.link_id == Link.id)
            .where(Link.user_id == owner_id)
            .where(Click.clicked_at >= period.previous_start_date)
            .where(Click.clicked_at < period.start_date)
        )
        row = result.one()
        return row.clicks, row.unique_clicks

    @translate_storage_errors
    async def get_dashboard_analytics(
        self,
        owner_id: UUID,
        period: str | None = None,
        now: datetime | None = None,
    ) -> DashboardAnalytics:
        """Build the owner-wide dashboard report.

        ``totalClicks`` is lifetime, every other click figure is windowed.
        Dashboard city and referrer charts are intentionally left empty, the
        URL comparison always reports zero change, and top URLs carry no
        unique click counts.
        """
        started = time.perf_counter()
        window = resolve_period(period, now)

        links_result = await self._session.execute(
            select(Link, func.count(Click.id).label("clicks"))
            .outerjoin(Click, Click.link_id == Link.id)
            .where(Link.user_id == owner_id)
            .group_by(Link.id)
            .order_by(Link.created_at.desc())
        )
        links = links_result.all()

        if links:
            current = await self._clicks_since(owner_id, window)
            previous_clicks, previous_unique = await self._previous_window_counts(
                owner_id, window
            )
        else:
            current, previous_clicks, previous_unique = [], 0, 0

        total_urls = len(links)
        total_clicks = sum(row.clicks for row in links)
        unique_clicks = breakdowns.unique_ips(current)
        avg_clicks_per_url = total_clicks / total_urls if total_urls else 0

        top_urls = [
            TopUrl(
                id=row.Link.id,
                short_code=row.Link.short_code,
                title=row.Link.title or row.Link.original_url,
                original_url=row.Link.original_url,
                clicks=row.clicks,
                created_at=row.Link.created_at,
            )
            for row in sorted(links, key=lambda row: row.clicks, reverse=True)[: self._top_n]
        ]

        report = DashboardAnalytics(
            summary=AnalyticsSummary(
                total_urls=total_urls,
                total_clicks=total_clicks,
                unique_clicks=unique_clicks,
                clicks_in_period=len(current),
                avg_clicks_per_url=avg_clicks_per_url,
                click_rate=avg_clicks_per_url * 100,
            ),
            comparison=DashboardComparison(
                clicks=compare(len(current), previous_clicks),
                unique_clicks=compare(unique_clicks, previous_unique),
                urls=compare(total_urls, total_urls),
            ),
            charts=DashboardCharts(
                clicks_over_time=breakdowns.clicks_over_time(
                    current, weekly=window.weekly_buckets
                ),
                top_urls=top_urls,
                top_countries=breakdowns.top_countries(current, self._top_n),
                top_cities=[],
                top_referrers=[],
                top_devices=breakdowns.top_devices(current, self._top_n),
                top_browsers=breakdowns.top_browsers(current, self._top_n),
            ),
        )

        duration = time.perf_counter() - started
        record_report("dashboard", duration)
        logger.info(
            "Dashboard analytics built",
            owner_id=str(owner_id),
            period=window.token,
            total_urls=total_urls,
            clicks_in_period=len(current),
            duration_ms=round(duration * 1000, 2),
        )
        return report

    @translate_storage_errors
    async def get_url_analytics(
        self,
        link_id: UUID,
        owner_id: UUID,
        period: str | None = None,
        now: datetime | None = None,
    ) -> UrlAnalytics | None:
        """Build the report for one link.

        Returns None when the link does not exist or belongs to someone
        else; no click is read in that case.
        """
        started = time.perf_counter()
        window = resolve_period(period, now)

        link_result = await self._session.execute(
            select(Link).where(Link.id == link_id, Link.user_id == owner_id)
        )
        link = link_result.scalar_one_or_none()
        if link is None:
            logger.info("Link not found for analytics", link_id=str(link_id), owner_id=str(owner_id))
            return None

        clicks_result = await self._session.execute(
            select(Click)
            .where(Click.link_id == link.id)
            .where(Click.clicked_at >= window.start_date)
            .order_by(Click.clicked_at.asc())
        )
        clicks = clicks_result.scalars().all()

        report = UrlAnalytics(
            url=UrlInfo(
                id=link.id,
                short_code=link.short_code,
                original_url=link.original_url,
                title=link.title,
                created_at=link.created_at,
            ),
            summary=UrlSummary(
                total_clicks=len(clicks),
                unique_clicks=breakdowns.unique_ips(clicks),
                avg_clicks_per_day=len(clicks) / window.days if window.days else 0,
                peak_day=breakdowns.peak_day(clicks),
                first_click=clicks[0].clicked_at.isoformat() if clicks else "",
                last_click=clicks[-1].clicked_at.isoformat() if clicks else "",
            ),
            charts=UrlCharts(
                clicks_over_time=breakdowns.clicks_over_time(clicks),
                top_countries=breakdowns.top_countries(clicks, self._top_n),
                top_cities=breakdowns.top_cities(clicks, self._top_n),
                top_referrers=breakdowns.top_referrers(clicks, self._top_n),
                top_devices=breakdowns.top_devices(clicks, self._top_n),
                top_browsers=breakdowns.top_browsers(clicks, self._top_n),
                hourly_distribution=breakdowns.hourly_distribution(clicks),
                weekly_distribution=breakdowns.weekly_distribution(clicks),
            ),
        )

        duration = time.perf_counter() - started
        record_report("link", duration)
        logger.info(
            "Link analytics built",
            link_id=str(link_id),
            period=window.token,
            total_clicks=len(clicks),
            duration_ms=round(duration * 1000, 2),
        )
        return report

    @translate_storage_errors
    async def create_daily_analytics(self, day: date | None = None) -> int:
        """Roll up one calendar day of clicks into ``link_stats_daily``.

        Reruns for the same day overwrite the existing rows.

        Args:
            day: Day to roll up (defaults to today, UTC).

        Returns:
            Number of links with at least one click that day.
        """
        started = time.perf_counter()
        day = day or utcnow().date()
        start_of_day = datetime.combine(day, day_time.min)
        end_of_day = datetime.combine(day, day_time.max)

        logger.debug("Running daily rollup", date=day.isoformat())

        links_result = await self._session.execute(
            select(func.distinct(Click.link_id))
            .where(Click.clicked_at >= start_of_day)
            .where(Click.clicked_at <= end_of_day)
        )
        link_ids = [row[0] for row in links_result.all()]

        for link_id in link_ids:
            await self._rollup_link(link_id, day, start_of_day, end_of_day)

        duration = time.perf_counter() - started
        record_rollup(duration, len(link_ids))
        logger.info(
            "Daily rollup complete",
            date=day.isoformat(),
            links=len(link_ids),
            duration_ms=round(duration * 1000, 2),
        )
        return len(link_ids)

    async def _rollup_link(
        self,
        link_id: UUID,
        day: date,
        start_of_day: datetime,
        end_of_day: datetime,
    ) -> None:
        """Upsert the daily summary row for one link."""
        clicks_result = await self._session.execute(
            select(Click)
            .where(Click.link_id == link_id)
            .where(Click.clicked_at >= start_of_day)
            .where(Click.clicked_at <= end_of_day)
        )
        clicks = clicks_result.scalars().all()

        dialect = self._session.get_bind().dialect.name
        insert = UPSERT_INSERTS[dialect]

        stmt = insert(LinkStatsDaily).values(
            link_id=link_id,
            date=day,
            click_count=len(clicks),
            unique_visitors=breakdowns.unique_ips(clicks),
            countries=breakdowns.frequency_table(clicks, BreakdownField.COUNTRY),
            referrers=breakdowns.frequency_table(clicks, BreakdownField.REFERRER),
            devices=breakdowns.frequency_table(clicks, BreakdownField.DEVICE),
            browsers=breakdowns.frequency_table(clicks, BreakdownField.BROWSER),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["link_id", "date"],
            set_={
                "click_count": stmt.excluded.click_count,
                "unique_visitors": stmt.excluded.unique_visitors,
                "countries": stmt.excluded.countries,
                "referrers": stmt.excluded.referrers,
                "devices": stmt.excluded.devices,
                "browsers": stmt.excluded.browsers,
            },
        )
        await self._session.execute(stmt)
