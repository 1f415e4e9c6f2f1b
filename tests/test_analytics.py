"""Dashboard and per-link reports built from stored clicks."""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from linkpulse.aggregators import AnalyticsAggregator
from linkpulse.core.errors import StorageError
from linkpulse.schemas.analytics import PeriodComparison

NOW = datetime(2025, 7, 15, 12, 0)


@pytest.fixture
def aggregator(session):
    return AnalyticsAggregator(session)


async def test_dashboard_for_owner_without_links(aggregator, user):
    report = await aggregator.get_dashboard_analytics(user.id, "30d", now=NOW)

    assert report.summary.total_urls == 0
    assert report.summary.total_clicks == 0
    assert report.summary.avg_clicks_per_url == 0
    assert report.charts.top_urls == []
    assert report.charts.clicks_over_time == []
    assert report.comparison.clicks.change_percentage == 0


async def test_dashboard_summary_and_comparison(aggregator, user, make_link, add_click):
    busy = await make_link(title="Launch post")
    quiet = await make_link(original_url="https://example.com/quiet")

    # current 7d window: [2025-07-08 12:00, now]
    await add_click(busy, NOW - timedelta(days=1), ip_address="1.1.1.1", country="Norway")
    await add_click(busy, NOW - timedelta(days=2), ip_address="1.1.1.1", country="Norway")
    await add_click(busy, NOW - timedelta(days=3), ip_address="2.2.2.2", country="Sweden")
    # previous window: [2025-07-01 12:00, 2025-07-08 12:00)
    await add_click(busy, NOW - timedelta(days=8), ip_address="3.3.3.3")
    await add_click(busy, NOW - timedelta(days=7, seconds=1), ip_address="4.4.4.4")
    # older than both windows, still counts toward lifetime totals
    await add_click(busy, NOW - timedelta(days=60), ip_address="5.5.5.5")

    report = await aggregator.get_dashboard_analytics(user.id, "7d", now=NOW)

    summary = report.summary
    assert summary.total_urls == 2
    assert summary.total_clicks == 6
    assert summary.clicks_in_period == 3
    assert summary.unique_clicks == 2
    assert summary.avg_clicks_per_url == 3.0
    assert summary.click_rate == 300.0

    clicks = report.comparison.clicks
    assert (clicks.current, clicks.previous, clicks.change, clicks.change_percentage) == (3, 2, 1, 50.0)
    unique = report.comparison.unique_clicks
    assert (unique.current, unique.previous, unique.change) == (2, 2, 0)
    urls = report.comparison.urls
    assert (urls.current, urls.previous, urls.change, urls.change_percentage) == (2, 2, 0, 0)

    top_urls = report.charts.top_urls
    assert [(u.id, u.clicks) for u in top_urls] == [(busy.id, 6), (quiet.id, 0)]
    assert top_urls[0].title == "Launch post"
    assert top_urls[1].title == "https://example.com/quiet"
    assert all(u.unique_clicks == 0 for u in top_urls)

    assert {c.country: c.clicks for c in report.charts.top_countries} == {"Norway": 2, "Sweden": 1}
    assert report.charts.top_cities == []
    assert report.charts.top_referrers == []


async def test_dashboard_ignores_other_owners(aggregator, user, other_user, make_link, add_click):
    mine = await make_link()
    theirs = await make_link(owner=other_user)
    await add_click(mine, NOW - timedelta(hours=1))
    await add_click(theirs, NOW - timedelta(hours=1))
    await add_click(theirs, NOW - timedelta(hours=2))

    report = await aggregator.get_dashboard_analytics(user.id, "30d", now=NOW)

    assert report.summary.total_urls == 1
    assert report.summary.total_clicks == 1
    assert report.summary.clicks_in_period == 1


async def test_dashboard_uses_weekly_buckets_for_long_periods(aggregator, make_link, add_click, user):
    link = await make_link()
    await add_click(link, datetime(2025, 7, 1, 9))  # Tuesday
    await add_click(link, datetime(2025, 7, 3, 9))  # Thursday
    await add_click(link, datetime(2025, 7, 7, 9))  # Monday

    report = await aggregator.get_dashboard_analytics(user.id, "90d", now=NOW)

    assert [(p.date, p.clicks) for p in report.charts.clicks_over_time] == [
        ("2025-06-29", 2),
        ("2025-07-06", 1),
    ]


async def test_dashboard_with_unknown_period_uses_30_days(aggregator, make_link, add_click, user):
    link = await make_link()
    await add_click(link, NOW - timedelta(days=20))
    await add_click(link, NOW - timedelta(days=40))

    report = await aggregator.get_dashboard_analytics(user.id, "forever", now=NOW)

    assert report.summary.clicks_in_period == 1
    assert report.comparison.clicks.previous == 1


async def test_url_analytics_example_day(aggregator, user, make_link, add_click):
    link = await make_link(title="Example")
    await add_click(
        link,
        datetime(2025, 7, 1, 10, 0),
        ip_address="198.51.100.1",
        country="United States",
        city="Boston",
        device="Desktop",
        browser="Chrome",
    )
    await add_click(
        link,
        datetime(2025, 7, 1, 15, 0),
        ip_address="198.51.100.2",
        country="United States",
        city="Boston",
        device="Mobile",
        browser="Safari",
        referrer="https://www.twitter.com/some/post",
    )

    report = await aggregator.get_url_analytics(link.id, user.id, "30d", now=NOW)

    assert report.url.id == link.id
    assert report.url.short_code == link.short_code

    summary = report.summary
    assert summary.total_clicks == 2
    assert summary.unique_clicks == 2
    assert summary.avg_clicks_per_day == pytest.approx(2 / 30)
    assert (summary.peak_day.date, summary.peak_day.clicks) == ("2025-07-01", 2)
    assert summary.first_click == "2025-07-01T10:00:00"
    assert summary.last_click == "2025-07-01T15:00:00"

    charts = report.charts
    assert len(charts.hourly_distribution) == 24
    assert charts.hourly_distribution[10].clicks == 1
    assert charts.hourly_distribution[15].clicks == 1
    assert len(charts.weekly_distribution) == 7
    weekly = {d.day: d.clicks for d in charts.weekly_distribution}
    assert weekly["Tuesday"] == 2
    assert sum(weekly.values()) == 2

    [country] = charts.top_countries
    assert (country.country, country.clicks, country.percentage) == ("United States", 2, 100.0)
    [city] = charts.top_cities
    assert (city.city, city.clicks) == ("Boston", 2)
    assert {d.device: d.percentage for d in charts.top_devices} == {"Desktop": 50.0, "Mobile": 50.0}
    assert {r.referrer: r.clicks for r in charts.top_referrers} == {"twitter.com": 1, "Direct": 1}
    assert [(p.date, p.clicks) for p in charts.clicks_over_time] == [("2025-07-01", 2)]


async def test_url_analytics_without_clicks(aggregator, user, make_link):
    link = await make_link()

    report = await aggregator.get_url_analytics(link.id, user.id, "7d", now=NOW)

    assert report.summary.total_clicks == 0
    assert report.summary.first_click == ""
    assert report.summary.last_click == ""
    assert (report.summary.peak_day.date, report.summary.peak_day.clicks) == ("", 0)
    assert all(h.clicks == 0 for h in report.charts.hourly_distribution)
    assert report.charts.top_countries == []


async def test_url_analytics_excludes_clicks_before_period(aggregator, user, make_link, add_click):
    link = await make_link()
    await add_click(link, NOW - timedelta(days=6))
    await add_click(link, NOW - timedelta(days=8))

    report = await aggregator.get_url_analytics(link.id, user.id, "7d", now=NOW)

    assert report.summary.total_clicks == 1
    assert report.summary.avg_clicks_per_day == pytest.approx(1 / 7)


async def test_url_analytics_requires_ownership(aggregator, other_user, make_link, add_click):
    link = await make_link()
    await add_click(link, NOW - timedelta(days=1))

    assert await aggregator.get_url_analytics(link.id, other_user.id, "30d", now=NOW) is None


async def test_url_analytics_for_unknown_link(aggregator, user):
    assert await aggregator.get_url_analytics(uuid4(), user.id, now=NOW) is None


def test_report_serializes_with_camel_case_names():
    payload = PeriodComparison(current=3, previous=2, change=1, change_percentage=50.0).model_dump(
        by_alias=True
    )

    assert payload == {"current": 3, "previous": 2, "change": 1, "changePercentage": 50.0}


@pytest.mark.parametrize(
    "build",
    [
        lambda aggregator, owner_id: aggregator.get_dashboard_analytics(owner_id, "7d", now=NOW),
        lambda aggregator, owner_id: aggregator.get_url_analytics(uuid4(), owner_id, "7d", now=NOW),
        lambda aggregator, owner_id: aggregator.create_daily_analytics(date(2025, 7, 1)),
    ],
    ids=["dashboard", "link", "rollup"],
)
async def test_store_failures_surface_as_storage_error(aggregator, session, user, monkeypatch, build):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(session, "execute", broken)

    with pytest.raises(StorageError) as exc_info:
        await build(aggregator, user.id)

    assert isinstance(exc_info.value.__cause__, OperationalError)
