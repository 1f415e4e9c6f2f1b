"""Grouping helpers that turn click rows into report sections.

Each categorical breakdown is keyed by a ``BreakdownField``. Clicks with
no value for the field (including an ``Unknown`` device or browser) are left
out of both the counts and the total the percentages are computed against.
"""

from collections import Counter
from collections.abc import Callable, Hashable, Iterable, Sequence
from datetime import date, datetime, timedelta
from enum import Enum
from urllib.parse import urlsplit

from linkpulse.models.click import Click
from linkpulse.schemas.analytics import (
    BrowserStats,
    CityStats,
    ClicksOverTime,
    CountryStats,
    DeviceStats,
    HourlyClicks,
    PeakDay,
    ReferrerStats,
    WeekdayClicks,
)
from linkpulse.services.user_agent import UNKNOWN, parse_user_agent

DIRECT = "Direct"
UNKNOWN_REFERRER = "Unknown"
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class BreakdownField(str, Enum):
    COUNTRY = "country"
    CITY = "city"
    DEVICE = "device"
    BROWSER = "browser"
    REFERRER = "referrer"


def referrer_domain(referrer: str | None) -> str:
    """Hostname of a Referer header without a leading ``www.``.

    Missing referrers are ``Direct``; unparseable ones are ``Unknown``.
    """
    if not referrer or referrer == DIRECT:
        return DIRECT
    try:
        hostname = urlsplit(referrer).hostname
    except ValueError:
        return UNKNOWN_REFERRER
    if not hostname:
        return UNKNOWN_REFERRER
    return hostname.removeprefix("www.")


def _known(value: str | None) -> str | None:
    return None if value == UNKNOWN else value


def _device(click: Click) -> str | None:
    if click.device:
        return _known(click.device)
    return _known(parse_user_agent(click.user_agent).device) if click.user_agent else None


def _browser(click: Click) -> str | None:
    if click.browser:
        return _known(click.browser)
    return _known(parse_user_agent(click.user_agent).browser) if click.user_agent else None


def _city(click: Click) -> tuple[str, str] | None:
    if click.city and click.country:
        return click.country, click.city
    return None


_EXTRACTORS: dict[BreakdownField, Callable[[Click], Hashable | None]] = {
    BreakdownField.COUNTRY: lambda click: click.country,
    BreakdownField.CITY: _city,
    BreakdownField.DEVICE: _device,
    BreakdownField.BROWSER: _browser,
    BreakdownField.REFERRER: lambda click: referrer_domain(click.referrer),
}


def count_by(clicks: Iterable[Click], field: BreakdownField) -> Counter:
    """Count clicks per value of a field, skipping empty values."""
    extract = _EXTRACTORS[field]
    counts: Counter = Counter()
    for click in clicks:
        value = extract(click)
        if value:
            counts[value] += 1
    return counts


def _ranked(counts: Counter, limit: int) -> list[tuple[Hashable, int, float]]:
    total = sum(counts.values())
    if total == 0:
        return []
    return [
        (value, clicks, round(clicks / total * 100, 2))
        for value, clicks in counts.most_common(limit)
    ]


def top_countries(clicks: Iterable[Click], limit: int = 10) -> list[CountryStats]:
    return [
        CountryStats(country=value, clicks=n, percentage=pct)
        for value, n, pct in _ranked(count_by(clicks, BreakdownField.COUNTRY), limit)
    ]


def top_cities(clicks: Iterable[Click], limit: int = 10) -> list[CityStats]:
    return [
        CityStats(country=country, city=city, clicks=n, percentage=pct)
        for (country, city), n, pct in _ranked(count_by(clicks, BreakdownField.CITY), limit)
    ]


def top_devices(clicks: Iterable[Click], limit: int = 10) -> list[DeviceStats]:
    return [
        DeviceStats(device=value, clicks=n, percentage=pct)
        for value, n, pct in _ranked(count_by(clicks, BreakdownField.DEVICE), limit)
    ]


def top_browsers(clicks: Iterable[Click], limit: int = 10) -> list[BrowserStats]:
    return [
        BrowserStats(browser=value, clicks=n, percentage=pct)
        for value, n, pct in _ranked(count_by(clicks, BreakdownField.BROWSER), limit)
    ]


def top_referrers(clicks: Iterable[Click], limit: int = 10) -> list[ReferrerStats]:
    return [
        ReferrerStats(referrer=value, domain=value, clicks=n, percentage=pct)
        for value, n, pct in _ranked(count_by(clicks, BreakdownField.REFERRER), limit)
    ]


_BREAKDOWNS = {
    BreakdownField.COUNTRY: top_countries,
    BreakdownField.CITY: top_cities,
    BreakdownField.DEVICE: top_devices,
    BreakdownField.BROWSER: top_browsers,
    BreakdownField.REFERRER: top_referrers,
}


def breakdown(clicks: Sequence[Click], field: BreakdownField, limit: int = 10) -> list:
    """Top ``limit`` values of ``field`` with counts and percentages."""
    return _BREAKDOWNS[field](clicks, limit)


def frequency_table(clicks: Iterable[Click], field: BreakdownField) -> dict[str, int]:
    """Full value -> count mapping for a field (used by the daily rollup)."""
    if field is BreakdownField.CITY:
        raise ValueError("City frequencies are not keyed by a single string")
    return dict(count_by(clicks, field))


def unique_ips(clicks: Iterable[Click]) -> int:
    """Number of distinct, known client IPs."""
    return len({click.ip_address for click in clicks if click.ip_address})


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def clicks_over_time(clicks: Iterable[Click], weekly: bool = False) -> list[ClicksOverTime]:
    """Clicks and unique IPs per day (or per Sunday-aligned week).

    Only buckets with at least one click are returned, oldest first.
    """
    buckets: dict[date, list[Click]] = {}
    for click in clicks:
        day = click.clicked_at.date()
        key = week_start(day) if weekly else day
        buckets.setdefault(key, []).append(click)

    return [
        ClicksOverTime(
            date=key.isoformat(),
            clicks=len(bucket),
            unique_clicks=unique_ips(bucket),
        )
        for key, bucket in sorted(buckets.items())
    ]


def peak_day(clicks: Iterable[Click]) -> PeakDay:
    """Day with the most clicks; ties go to the earliest day."""
    per_day = Counter(click.clicked_at.date() for click in clicks)
    if not per_day:
        return PeakDay(date="", clicks=0)
    best = max(sorted(per_day), key=lambda day: per_day[day])
    return PeakDay(date=best.isoformat(), clicks=per_day[best])


def hourly_distribution(clicks: Iterable[Click]) -> list[HourlyClicks]:
    """Clicks per hour of day; always 24 entries."""
    per_hour = Counter(click.clicked_at.hour for click in clicks)
    return [HourlyClicks(hour=hour, clicks=per_hour[hour]) for hour in range(24)]


def sunday_first_weekday(moment: datetime) -> int:
    """Weekday index with Sunday = 0."""
    return (moment.weekday() + 1) % 7


def weekly_distribution(clicks: Iterable[Click]) -> list[WeekdayClicks]:
    """Clicks per weekday; always 7 entries, Sunday first."""
    per_day = Counter(sunday_first_weekday(click.clicked_at) for click in clicks)
    return [WeekdayClicks(day=name, clicks=per_day[index]) for index, name in enumerate(WEEKDAYS)]
