"""Daily statistics rollup."""

from datetime import date, datetime

from sqlalchemy import select

from linkpulse.aggregators import AnalyticsAggregator
from linkpulse.aggregators.rollup import run_daily_rollup
from linkpulse.models import LinkStatsDaily

DAY = date(2025, 7, 1)


async def load_stats(session) -> dict:
    result = await session.execute(
        select(LinkStatsDaily)
        .where(LinkStatsDaily.date == DAY)
        .execution_options(populate_existing=True)
    )
    return {row.link_id: row for row in result.scalars().all()}


async def test_rollup_summarizes_each_link_for_the_day(session, make_link, add_click):
    first = await make_link()
    second = await make_link()
    idle = await make_link()
    await add_click(
        first,
        datetime(2025, 7, 1, 0, 0),
        ip_address="1.1.1.1",
        country="Norway",
        device="Mobile",
        browser="Safari",
        referrer="https://www.google.com/",
    )
    await add_click(first, datetime(2025, 7, 1, 23, 59, 59), ip_address="1.1.1.1", country="Norway")
    await add_click(second, datetime(2025, 7, 1, 12, 0), ip_address="2.2.2.2")
    # Outside the day
    await add_click(first, datetime(2025, 6, 30, 23, 59, 59))
    await add_click(second, datetime(2025, 7, 2, 0, 0))

    rolled_up = await AnalyticsAggregator(session).create_daily_analytics(DAY)

    assert rolled_up == 2
    stats = await load_stats(session)
    assert set(stats) == {first.id, second.id}
    assert idle.id not in stats

    first_stats = stats[first.id]
    assert first_stats.click_count == 2
    assert first_stats.unique_visitors == 1
    assert first_stats.countries == {"Norway": 2}
    assert first_stats.referrers == {"google.com": 1, "Direct": 1}
    assert first_stats.devices == {"Mobile": 1}
    assert first_stats.browsers == {"Safari": 1}

    second_stats = stats[second.id]
    assert second_stats.click_count == 1
    assert second_stats.countries == {}
    assert second_stats.referrers == {"Direct": 1}


async def test_rerunning_the_rollup_overwrites(session, make_link, add_click):
    link = await make_link()
    await add_click(link, datetime(2025, 7, 1, 9), ip_address="1.1.1.1")
    await add_click(link, datetime(2025, 7, 1, 10), ip_address="2.2.2.2")
    aggregator = AnalyticsAggregator(session)

    await aggregator.create_daily_analytics(DAY)
    await aggregator.create_daily_analytics(DAY)
    assert (await load_stats(session))[link.id].click_count == 2

    await add_click(link, datetime(2025, 7, 1, 11), ip_address="2.2.2.2")
    await aggregator.create_daily_analytics(DAY)

    stats = await load_stats(session)
    assert len(stats) == 1
    assert stats[link.id].click_count == 3
    assert stats[link.id].unique_visitors == 2


async def test_rollup_of_a_quiet_day(session):
    assert await AnalyticsAggregator(session).create_daily_analytics(DAY) == 0


async def test_run_daily_rollup_commits(db, session, make_link, add_click):
    link = await make_link()
    await add_click(link, datetime(2025, 7, 1, 9))
    await session.commit()

    assert await run_daily_rollup(DAY, db=db) == 1

    async with db.session_factory() as fresh:
        assert link.id in await load_stats(fresh)
