"""
Goal progress engine computing actual, expected and remaining work for a goal.
"""
import logging
import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple

from models.goal import Goal
from models.goal_progress import (
    BEHIND, ON_TRACK, SLIGHTLY_BEHIND, GoalProgress, PeriodValues,
)
from models.workout import WorkoutRecord


logger = logging.getLogger(__name__)

SLIGHTLY_BEHIND_RATIO = 0.8


def get_progress_status(actual: float, expected: float) -> str:
    """
    Classify progress for one metric and period.

    Returns:
        'On Track', 'Slightly Behind' (within 80% of expected) or 'Behind'
    """
    if actual >= expected:
        return ON_TRACK
    if actual >= expected * SLIGHTLY_BEHIND_RATIO:
        return SLIGHTLY_BEHIND
    return BEHIND


def _localize(tz: Optional[tzinfo], naive: datetime) -> datetime:
    """Attach a time zone to a naive datetime, using pytz's localize when available."""
    if tz is None:
        return naive
    if hasattr(tz, 'localize'):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def _start_of_day(day: date, tz: Optional[tzinfo]) -> datetime:
    return _localize(tz, datetime(day.year, day.month, day.day))


def _elapsed_seconds(later: datetime, earlier: datetime) -> float:
    """Real elapsed seconds, independent of DST wall-clock shifts."""
    if later.tzinfo is not None and earlier.tzinfo is not None:
        return (later.astimezone(timezone.utc) - earlier.astimezone(timezone.utc)).total_seconds()
    return (later - earlier).total_seconds()


def _local_date(moment: datetime, tz: Optional[tzinfo]) -> date:
    if tz is not None and moment.tzinfo is not None:
        return moment.astimezone(tz).date()
    return moment.date()


def _calendar_days_until(day: date, moment: datetime, tz: Optional[tzinfo]) -> int:
    """Whole local calendar days from 'moment' to the start of 'day'."""
    if tz is not None and moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    wall_clock = moment.replace(tzinfo=None)
    return (datetime(day.year, day.month, day.day) - wall_clock).days


def _quarter_bounds(year: int, quarter: int) -> Tuple[date, date, date]:
    """Return (first day, last day, first day of next quarter)."""
    start_month = (quarter - 1) * 3 + 1
    start = date(year, start_month, 1)
    if quarter == 4:
        next_start = date(year + 1, 1, 1)
    else:
        next_start = date(year, start_month + 3, 1)
    return start, next_start - timedelta(days=1), next_start


class GoalCalculator:
    """
    Computes goal progress from a goal, a workout collection and an explicit 'now'.

    Stateless: every call depends only on its arguments, so it can be invoked
    repeatedly and concurrently.
    """

    def calculate_progress(self, goal: Goal, workouts: Iterable[WorkoutRecord],
                           now: datetime) -> GoalProgress:
        """
        Calculate quarter-to-date and year-to-date progress for a goal.

        Args:
            goal: Validated goal definition
            workouts: Canonical workout records (any date range)
            now: Current moment; boundaries are built in its time zone

        Returns:
            GoalProgress: Actual, expected and remaining metrics
        """
        tz = now.tzinfo
        current_quarter = (now.month - 1) // 3 + 1
        current_year = now.year

        quarter_start, quarter_end, next_quarter_start = _quarter_bounds(current_year, current_quarter)
        year_start = date(current_year, 1, 1)
        year_end = date(current_year, 12, 31)
        next_year_start = date(current_year + 1, 1, 1)

        workouts = list(workouts)
        quarter_workouts = self._filter_by_dates(workouts, quarter_start, quarter_end, tz)
        year_workouts = self._filter_by_dates(workouts, year_start, year_end, tz)

        actual_weight = PeriodValues(self._total_weight(quarter_workouts), self._total_weight(year_workouts))
        actual_minutes = PeriodValues(self._total_minutes(quarter_workouts), self._total_minutes(year_workouts))
        actual_sessions = PeriodValues(len(quarter_workouts), len(year_workouts))

        quarter_start_dt = _start_of_day(quarter_start, tz)
        year_start_dt = _start_of_day(year_start, tz)
        quarter_progress = self._period_fraction(now, quarter_start_dt, _start_of_day(next_quarter_start, tz))
        year_progress = self._period_fraction(now, year_start_dt, _start_of_day(next_year_start, tz))

        expected_weight = PeriodValues(
            goal.quarterly_weight_target * quarter_progress,
            goal.annual_weight_target * year_progress,
        )
        expected_minutes = PeriodValues(
            int(goal.quarterly_minutes_target * quarter_progress),
            int(goal.annual_minutes_target * year_progress),
        )
        expected_sessions = PeriodValues(
            int(goal.quarterly_sessions_target * quarter_progress),
            int(goal.annual_sessions_target * year_progress),
        )

        sessions_needed_quarter = self._sessions_needed(
            goal.quarterly_minutes_target, actual_minutes.quarter_to_date, goal.minutes_per_session
        )
        sessions_needed_year = self._sessions_needed(
            goal.annual_minutes_target, actual_minutes.year_to_date, goal.minutes_per_session
        )

        days_remaining = max(0, _calendar_days_until(quarter_end, now, tz))

        logger.debug(
            f"Goal {goal.id} Q{current_quarter} {current_year}: "
            f"{actual_sessions.quarter_to_date} sessions this quarter, "
            f"{quarter_progress:.1%} of quarter elapsed"
        )

        return GoalProgress(
            current_quarter=current_quarter,
            current_year=current_year,
            actual_weight_lifted=actual_weight,
            actual_minutes=actual_minutes,
            actual_sessions=actual_sessions,
            expected_weight_lifted=expected_weight,
            expected_minutes=expected_minutes,
            expected_sessions=expected_sessions,
            sessions_needed_for_quarter=sessions_needed_quarter,
            sessions_needed_for_year=sessions_needed_year,
            days_remaining_in_quarter=days_remaining,
        )

    def get_status(self, progress: GoalProgress, metric: str, period: str) -> str:
        """Status for a single metric ('weight', 'minutes', 'sessions') and period ('quarter', 'year')."""
        actual, expected = progress.values_for(metric, period)
        return get_progress_status(actual, expected)

    def _filter_by_dates(self, workouts: List[WorkoutRecord], start: date, end: date,
                         tz: Optional[tzinfo]) -> List[WorkoutRecord]:
        return [
            workout for workout in workouts
            if start <= _local_date(workout.date, tz) <= end
        ]

    def _total_weight(self, workouts: List[WorkoutRecord]) -> float:
        return sum((workout.weight or 0.0) for workout in workouts)

    def _total_minutes(self, workouts: List[WorkoutRecord]) -> int:
        return sum(int(workout.minutes) for workout in workouts)

    def _period_fraction(self, now: datetime, start: datetime, next_start: datetime) -> float:
        """Fraction of the period elapsed at 'now', capped at 1."""
        period_seconds = _elapsed_seconds(next_start, start)
        elapsed = _elapsed_seconds(now, start)
        return min(1.0, max(0.0, elapsed / period_seconds))

    def _sessions_needed(self, target_minutes: int, actual_minutes: int, minutes_per_session: int) -> int:
        remaining_minutes = max(0, target_minutes - actual_minutes)
        return max(0, math.ceil(remaining_minutes / minutes_per_session))
