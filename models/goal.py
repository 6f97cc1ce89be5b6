"""
Annual fitness goal model with derived weekly, quarterly and annual targets.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .validation_utils import ValidationUtils


WEEKS_PER_YEAR = 52
WEEKS_PER_QUARTER = 13
QUARTERS_PER_YEAR = 4

DERIVED_API_FIELDS = {
    'weeklyMinutesTarget': 'weekly_minutes_target',
    'annualMinutesTarget': 'annual_minutes_target',
    'quarterlyWeightTarget': 'quarterly_weight_target',
    'quarterlyMinutesTarget': 'quarterly_minutes_target',
    'quarterlySessionsTarget': 'quarterly_sessions_target',
}


class InvalidGoalInputError(ValueError):
    """Raised when goal inputs would produce unusable targets."""
    pass


def _validate_goal_inputs(year: Any, annual_weight_target: Any,
                          minutes_per_session: Any, weekly_sessions_target: Any) -> None:
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidGoalInputError(f"Year must be an integer, got: {year!r}")

    if isinstance(minutes_per_session, bool) or not isinstance(minutes_per_session, int) \
            or minutes_per_session <= 0:
        raise InvalidGoalInputError(
            f"Minutes per session must be a positive integer, got: {minutes_per_session!r}"
        )

    if isinstance(weekly_sessions_target, bool) or not isinstance(weekly_sessions_target, int) \
            or weekly_sessions_target < 0:
        raise InvalidGoalInputError(
            f"Weekly sessions target must be a non-negative integer, got: {weekly_sessions_target!r}"
        )

    try:
        ValidationUtils.validate_non_negative(annual_weight_target, "Annual weight target")
    except ValueError as e:
        raise InvalidGoalInputError(str(e)) from e


@dataclass(frozen=True)
class Goal:
    """
    A user's fitness goal for one calendar year.

    Only the base inputs are accepted by the constructor. The derived
    targets are computed once in ``__post_init__`` so they always agree
    with the inputs; ``updated_with`` is the only way to change a goal.
    """

    id: str
    name: str
    year: int
    annual_weight_target: float
    minutes_per_session: int
    weekly_sessions_target: int
    created_at: datetime
    updated_at: datetime

    weekly_minutes_target: int = field(init=False)
    annual_minutes_target: int = field(init=False)
    quarterly_weight_target: float = field(init=False)
    quarterly_minutes_target: int = field(init=False)
    quarterly_sessions_target: int = field(init=False)

    def __post_init__(self):
        """Validate base inputs and compute derived targets."""
        _validate_goal_inputs(self.year, self.annual_weight_target,
                              self.minutes_per_session, self.weekly_sessions_target)

        weekly_minutes = self.minutes_per_session * self.weekly_sessions_target
        annual_minutes = weekly_minutes * WEEKS_PER_YEAR
        object.__setattr__(self, 'weekly_minutes_target', weekly_minutes)
        object.__setattr__(self, 'annual_minutes_target', annual_minutes)
        object.__setattr__(self, 'quarterly_weight_target', self.annual_weight_target / QUARTERS_PER_YEAR)
        object.__setattr__(self, 'quarterly_minutes_target', annual_minutes // QUARTERS_PER_YEAR)
        object.__setattr__(self, 'quarterly_sessions_target', self.weekly_sessions_target * WEEKS_PER_QUARTER)

    @property
    def annual_sessions_target(self) -> int:
        return self.weekly_sessions_target * WEEKS_PER_YEAR

    def updated_with(self, goal_input: 'GoalInput', now: Optional[datetime] = None) -> 'Goal':
        """Return a replacement goal built wholesale from new inputs, keeping identity."""
        return Goal(
            id=self.id,
            name=goal_input.name,
            year=goal_input.year,
            annual_weight_target=goal_input.annual_weight_target,
            minutes_per_session=goal_input.minutes_per_session,
            weekly_sessions_target=goal_input.weekly_sessions_target,
            created_at=self.created_at,
            updated_at=now or datetime.now(timezone.utc),
        )

    def to_api_dict(self) -> Dict[str, Any]:
        """Encode the goal in the remote goals API format."""
        return {
            'id': self.id,
            'name': self.name,
            'year': self.year,
            'annualWeightTarget': self.annual_weight_target,
            'minutesPerSession': self.minutes_per_session,
            'weeklySessionsTarget': self.weekly_sessions_target,
            'weeklyMinutesTarget': self.weekly_minutes_target,
            'annualMinutesTarget': self.annual_minutes_target,
            'quarterlyWeightTarget': self.quarterly_weight_target,
            'quarterlyMinutesTarget': self.quarterly_minutes_target,
            'quarterlySessionsTarget': self.quarterly_sessions_target,
            'createdAt': ValidationUtils.format_timestamp(self.created_at),
            'updatedAt': ValidationUtils.format_timestamp(self.updated_at),
        }

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'Goal':
        """
        Create a Goal from a remote goals API payload.

        Derived targets are recomputed from the base inputs; a payload whose
        derived values disagree with them is rejected.

        Raises:
            InvalidGoalInputError: If fields are missing, invalid or inconsistent
        """
        if not isinstance(data, dict):
            raise InvalidGoalInputError(f"Goal payload must be an object, got {type(data).__name__}")

        try:
            goal = cls(
                id=str(data['id']),
                name=data['name'],
                year=data['year'],
                annual_weight_target=data['annualWeightTarget'],
                minutes_per_session=data['minutesPerSession'],
                weekly_sessions_target=data['weeklySessionsTarget'],
                created_at=ValidationUtils.parse_timestamp(data['createdAt']),
                updated_at=ValidationUtils.parse_timestamp(data['updatedAt']),
            )
        except KeyError as e:
            raise InvalidGoalInputError(f"Missing required goal field: {e}") from e
        except InvalidGoalInputError:
            raise
        except ValueError as e:
            raise InvalidGoalInputError(str(e)) from e

        for api_name, attr_name in DERIVED_API_FIELDS.items():
            if api_name in data and data[api_name] is not None:
                try:
                    remote_value = float(data[api_name])
                except (TypeError, ValueError) as e:
                    raise InvalidGoalInputError(
                        f"Goal {goal.id}: {api_name} is not numeric: {data[api_name]!r}"
                    ) from e
                if abs(remote_value - float(getattr(goal, attr_name))) > 1e-6:
                    raise InvalidGoalInputError(
                        f"Goal {goal.id}: {api_name}={data[api_name]} does not match "
                        f"computed value {getattr(goal, attr_name)}"
                    )

        return goal


@dataclass(frozen=True)
class GoalInput:
    """User-entered base inputs for creating or replacing a goal."""

    name: str
    year: int
    annual_weight_target: float
    minutes_per_session: int
    weekly_sessions_target: int

    def __post_init__(self):
        _validate_goal_inputs(self.year, self.annual_weight_target,
                              self.minutes_per_session, self.weekly_sessions_target)

    def create_goal(self, goal_id: Optional[str] = None, now: Optional[datetime] = None) -> Goal:
        """Build a new Goal with its derived targets."""
        timestamp = now or datetime.now(timezone.utc)
        return Goal(
            id=goal_id or str(uuid.uuid4()),
            name=self.name,
            year=self.year,
            annual_weight_target=self.annual_weight_target,
            minutes_per_session=self.minutes_per_session,
            weekly_sessions_target=self.weekly_sessions_target,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'year': self.year,
            'annualWeightTarget': self.annual_weight_target,
            'minutesPerSession': self.minutes_per_session,
            'weeklySessionsTarget': self.weekly_sessions_target,
        }

    def to_update_payload(self, goal_id: str) -> Dict[str, Any]:
        payload = {'id': goal_id}
        payload.update(self.to_payload())
        return payload
