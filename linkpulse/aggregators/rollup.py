"""Command line entry point for the daily statistics rollup.

Intended to run once a day from cron or a scheduled job:

    linkpulse-rollup             # today (UTC)
    linkpulse-rollup 2025-07-01  # a specific day
"""

import argparse
import asyncio
from datetime import date

import structlog

from linkpulse.aggregators.stats_aggregator import AnalyticsAggregator
from linkpulse.core.config import get_settings
from linkpulse.core.database import Database
from linkpulse.core.observability import configure_structlog

logger = structlog.get_logger()


async def run_daily_rollup(day: date | None = None, db: Database | None = None) -> int:
    """Roll up one day of clicks and commit the result.

    Returns the number of links rolled up.
    """
    settings = get_settings()
    owns_db = db is None
    db = db or Database.from_settings(settings)
    try:
        async with db.session_factory() as session:
            aggregator = AnalyticsAggregator(session, top_n=settings.analytics_top_n)
            count = await aggregator.create_daily_analytics(day)
            await session.commit()
            return count
    finally:
        if owns_db:
            await db.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Roll up one day of link clicks.")
    parser.add_argument(
        "date",
        nargs="?",
        type=date.fromisoformat,
        help="Day to roll up as YYYY-MM-DD (default: today, UTC)",
    )
    args = parser.parse_args(argv)

    configure_structlog()
    count = asyncio.run(run_daily_rollup(args.date))
    logger.info("Rollup finished", links=count)


if __name__ == "__main__":
    main()
