"""
Goal progress snapshot produced by the goal calculator.
"""
from dataclasses import dataclass
from typing import NamedTuple, Tuple, Union


ON_TRACK = 'On Track'
SLIGHTLY_BEHIND = 'Slightly Behind'
BEHIND = 'Behind'

METRIC_WEIGHT = 'weight'
METRIC_MINUTES = 'minutes'
METRIC_SESSIONS = 'sessions'
METRICS = (METRIC_WEIGHT, METRIC_MINUTES, METRIC_SESSIONS)

PERIOD_QUARTER = 'quarter'
PERIOD_YEAR = 'year'
PERIODS = (PERIOD_QUARTER, PERIOD_YEAR)


class PeriodValues(NamedTuple):
    """A metric's quarter-to-date and year-to-date values."""

    quarter_to_date: Union[int, float]
    year_to_date: Union[int, float]

    def for_period(self, period: str) -> Union[int, float]:
        if period == PERIOD_QUARTER:
            return self.quarter_to_date
        if period == PERIOD_YEAR:
            return self.year_to_date
        raise ValueError(f"Period must be one of {PERIODS}, got: {period}")


@dataclass(frozen=True)
class GoalProgress:
    """Actual versus expected progress for the current quarter and year."""

    current_quarter: int
    current_year: int

    actual_weight_lifted: PeriodValues
    actual_minutes: PeriodValues
    actual_sessions: PeriodValues

    expected_weight_lifted: PeriodValues
    expected_minutes: PeriodValues
    expected_sessions: PeriodValues

    sessions_needed_for_quarter: int
    sessions_needed_for_year: int

    days_remaining_in_quarter: int

    def values_for(self, metric: str, period: str) -> Tuple[Union[int, float], Union[int, float]]:
        """Return ``(actual, expected)`` for one metric and period."""
        if metric == METRIC_WEIGHT:
            actual, expected = self.actual_weight_lifted, self.expected_weight_lifted
        elif metric == METRIC_MINUTES:
            actual, expected = self.actual_minutes, self.expected_minutes
        elif metric == METRIC_SESSIONS:
            actual, expected = self.actual_sessions, self.expected_sessions
        else:
            raise ValueError(f"Metric must be one of {METRICS}, got: {metric}")
        return actual.for_period(period), expected.for_period(period)
