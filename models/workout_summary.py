"""
Summary statistics over a workout collection for dashboard reporting.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from .workout import WorkoutRecord


class ActivityBreakdown(NamedTuple):
    """Session count and minutes for one activity category."""

    activity: str
    count: int
    total_minutes: int


@dataclass(frozen=True)
class WorkoutSummary:
    """Totals, single-session records and per-activity breakdown."""

    total_sessions: int
    total_minutes: int
    total_miles: float
    total_weight: float
    longest_distance: Optional[WorkoutRecord] = None
    most_weight: Optional[WorkoutRecord] = None
    activity_breakdown: List[ActivityBreakdown] = field(default_factory=list)

    @property
    def top_activity(self) -> Optional[str]:
        if not self.activity_breakdown:
            return None
        return self.activity_breakdown[0].activity

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to a JSON-serializable dictionary."""
        return {
            'total_sessions': self.total_sessions,
            'total_minutes': self.total_minutes,
            'total_miles': round(self.total_miles, 2),
            'total_weight': round(self.total_weight, 2),
            'longest_distance': self.longest_distance.to_api_dict() if self.longest_distance else None,
            'most_weight': self.most_weight.to_api_dict() if self.most_weight else None,
            'activity_breakdown': [item._asdict() for item in self.activity_breakdown],
            'top_activity': self.top_activity,
        }
