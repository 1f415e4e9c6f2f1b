"""Data aggregation logic for analytics."""

from linkpulse.aggregators.breakdowns import BreakdownField, breakdown
from linkpulse.aggregators.periods import Period, resolve_period
from linkpulse.aggregators.stats_aggregator import AnalyticsAggregator

__all__ = [
    "AnalyticsAggregator",
    "BreakdownField",
    "Period",
    "breakdown",
    "resolve_period",
]
