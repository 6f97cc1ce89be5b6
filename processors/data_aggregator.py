"""
Data aggregation processor rolling up workout collections for dashboard reporting.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from models.workout import WorkoutRecord
from models.workout_summary import ActivityBreakdown, WorkoutSummary


logger = logging.getLogger(__name__)


class DataAggregator:
    """Processor summarizing canonical workout records."""

    def summarize(self, workouts: Iterable[WorkoutRecord]) -> WorkoutSummary:
        """
        Roll up a workout collection into summary statistics.

        Args:
            workouts: Canonical workout records

        Returns:
            WorkoutSummary: Totals, single-session records and activity breakdown
        """
        workouts = list(workouts)

        summary = WorkoutSummary(
            total_sessions=len(workouts),
            total_minutes=self._calculate_total_minutes(workouts),
            total_miles=sum((w.miles for w in workouts if w.miles is not None), 0.0),
            total_weight=sum((w.weight for w in workouts if w.weight is not None), 0.0),
            longest_distance=self._find_record(workouts, 'miles'),
            most_weight=self._find_record(workouts, 'weight'),
            activity_breakdown=self._build_activity_breakdown(workouts),
        )

        logger.info(f"Summarized {summary.total_sessions} workouts: "
                    f"{summary.total_minutes} minutes, {summary.total_miles:.2f} miles")
        return summary

    def filter_by_period(self, workouts: Iterable[WorkoutRecord],
                         start: datetime, end: datetime) -> List[WorkoutRecord]:
        """
        Filter workouts whose date lies within [start, end].

        Args:
            workouts: Workout records to filter
            start: Inclusive period start
            end: Inclusive period end

        Returns:
            List[WorkoutRecord]: Workouts in the period, in input order
        """
        filtered = [workout for workout in workouts if start <= workout.date <= end]
        logger.debug(f"Filtered to {len(filtered)} workouts between {start} and {end}")
        return filtered

    def sort_recent(self, workouts: Iterable[WorkoutRecord], limit: Optional[int] = None) -> List[WorkoutRecord]:
        """Newest workouts first, optionally truncated to 'limit' records."""
        ordered = sorted(workouts, key=lambda workout: workout.date, reverse=True)
        if limit is not None:
            return ordered[:limit]
        return ordered

    def _calculate_total_minutes(self, workouts: List[WorkoutRecord]) -> int:
        return sum(int(workout.minutes) for workout in workouts)

    def _find_record(self, workouts: List[WorkoutRecord], attribute: str) -> Optional[WorkoutRecord]:
        """
        Find the workout with the largest value for an optional attribute.

        Only workouts with the attribute set compete; ties keep the first
        workout encountered.
        """
        best = None
        for workout in workouts:
            value = getattr(workout, attribute)
            if value is None:
                continue
            if best is None or value > getattr(best, attribute):
                best = workout
        return best

    def _build_activity_breakdown(self, workouts: List[WorkoutRecord]) -> List[ActivityBreakdown]:
        """Group workouts by activity, sorted by total minutes descending."""
        totals: Dict[str, List[int]] = {}
        for workout in workouts:
            counts = totals.setdefault(workout.activity, [0, 0])
            counts[0] += 1
            counts[1] += int(workout.minutes)

        breakdown = [
            ActivityBreakdown(activity=activity, count=count, total_minutes=minutes)
            for activity, (count, minutes) in totals.items()
        ]
        return sorted(breakdown, key=lambda item: item.total_minutes, reverse=True)
