"""Reporting period resolution."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from linkpulse.core.timeutils import utcnow

logger = structlog.get_logger()

DEFAULT_PERIOD = "30d"
PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
VALID_PERIODS = frozenset({*PERIOD_DAYS, "1y"})

# Periods whose time series is bucketed by week instead of by day
WEEKLY_PERIODS = frozenset({"90d", "1y"})


def _one_year_back(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:  # Feb 29
        return moment.replace(year=moment.year - 1, day=28)


def _shift_back(moment: datetime, token: str) -> datetime:
    if token == "1y":
        return _one_year_back(moment)
    return moment - timedelta(days=PERIOD_DAYS[token])


@dataclass(frozen=True)
class Period:
    """A rolling lookback window and the equal-length window before it.

    The current window is ``[start_date, end_date]``; the comparison window
    is ``[previous_start_date, start_date)``.
    """

    token: str
    start_date: datetime
    previous_start_date: datetime
    end_date: datetime

    @property
    def weekly_buckets(self) -> bool:
        return self.token in WEEKLY_PERIODS

    @property
    def days(self) -> int:
        """Length of the current window in days, rounded up."""
        return math.ceil((self.end_date - self.start_date) / timedelta(days=1))


def resolve_period(token: str | None, now: datetime | None = None) -> Period:
    """Resolve a period token (7d, 30d, 90d, 1y) into concrete dates.

    Unrecognized tokens fall back to 30d instead of raising.
    """
    if token not in VALID_PERIODS:
        logger.debug("Unknown period, using default", period=token, default=DEFAULT_PERIOD)
        token = DEFAULT_PERIOD

    end_date = now or utcnow()
    start_date = _shift_back(end_date, token)
    return Period(
        token=token,
        start_date=start_date,
        previous_start_date=_shift_back(start_date, token),
        end_date=end_date,
    )
