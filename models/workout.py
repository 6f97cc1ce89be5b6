"""
Workout record model with validation and API encoding.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .validation_utils import ValidationUtils


PELOTON = 'Peloton'
TONAL = 'Tonal'
CANNONDALE = 'Cannondale'
GYM = 'Gym'
OTHER_SOURCE = 'Other'

SOURCE_LABELS = (PELOTON, TONAL, CANNONDALE, GYM, OTHER_SOURCE)

CYCLING = 'Cycling'
OUTDOOR_CYCLING = 'Outdoor cycling'
RUNNING = 'Running'
WALKING = 'Walking'
WEIGHT_LIFTING = 'Weight lifting'
YOGA = 'Yoga'
SWIMMING = 'Swimming'
OTHER_ACTIVITY = 'Other'

ACTIVITY_CATEGORIES = (
    CYCLING, OUTDOOR_CYCLING, RUNNING, WALKING,
    WEIGHT_LIFTING, YOGA, SWIMMING, OTHER_ACTIVITY,
)

# Activities each source usually records, matching the web app
SOURCE_ACTIVITY_MAP = {
    PELOTON: (CYCLING, OUTDOOR_CYCLING, WEIGHT_LIFTING, WALKING, RUNNING, YOGA),
    TONAL: (WEIGHT_LIFTING,),
    CANNONDALE: (OUTDOOR_CYCLING,),
    GYM: (WEIGHT_LIFTING, RUNNING, SWIMMING),
    OTHER_SOURCE: (OTHER_ACTIVITY,),
}


class MalformedRecordError(ValueError):
    """Raised when a workout record has missing or out-of-range fields."""
    pass


def is_typical_activity(source: str, activity: str) -> bool:
    """Check whether an activity is one the source normally records."""
    return activity in SOURCE_ACTIVITY_MAP.get(source, ())


@dataclass(frozen=True)
class WorkoutRecord:
    """Canonical record of one completed workout, independent of its origin."""

    id: str
    date: datetime
    source: str
    activity: str
    minutes: float
    miles: Optional[float] = None
    weight: Optional[float] = None
    calories: Optional[float] = None

    def __post_init__(self):
        """Validate workout data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate all workout data fields."""
        self._validate_id()
        self._validate_date()
        self._validate_source()
        self._validate_activity()
        self._validate_numbers()

    def _validate_id(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise MalformedRecordError("Workout ID must be a non-empty string")

    def _validate_date(self) -> None:
        if not isinstance(self.date, datetime):
            raise MalformedRecordError("Date must be a datetime object")

    def _validate_source(self) -> None:
        if self.source not in SOURCE_LABELS:
            raise MalformedRecordError(f"Source must be one of {SOURCE_LABELS}, got: {self.source}")

    def _validate_activity(self) -> None:
        if self.activity not in ACTIVITY_CATEGORIES:
            raise MalformedRecordError(
                f"Activity must be one of {ACTIVITY_CATEGORIES}, got: {self.activity}"
            )

    def _validate_numbers(self) -> None:
        try:
            ValidationUtils.validate_non_negative(self.minutes, "Minutes")
            ValidationUtils.validate_non_negative(self.miles, "Miles", optional=True)
            ValidationUtils.validate_non_negative(self.weight, "Weight", optional=True)
            ValidationUtils.validate_non_negative(self.calories, "Calories", optional=True)
        except ValueError as e:
            raise MalformedRecordError(str(e)) from e

    def to_api_dict(self) -> Dict[str, Any]:
        """Encode the record in the remote workout API format."""
        return {
            'date': ValidationUtils.format_timestamp(self.date),
            'source': self.source,
            'activity': self.activity,
            'minutes': int(self.minutes),
            'miles': self.miles,
            'weightLifted': self.weight,
            'calories': self.calories,
        }

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'WorkoutRecord':
        """
        Create a WorkoutRecord from a remote workout API payload.

        Raises:
            MalformedRecordError: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedRecordError(f"Workout payload must be an object, got {type(data).__name__}")

        try:
            date = ValidationUtils.parse_timestamp(data['date'])
            minutes = ValidationUtils.parse_optional_float(data['minutes'])
            miles = ValidationUtils.parse_optional_float(data.get('miles'))
            weight = ValidationUtils.parse_optional_float(data.get('weightLifted'))
            calories = ValidationUtils.parse_optional_float(data.get('calories'))
        except KeyError as e:
            raise MalformedRecordError(f"Missing required workout field: {e}") from e
        except ValueError as e:
            raise MalformedRecordError(str(e)) from e

        return cls(
            id=str(data.get('id') or uuid.uuid4()),
            date=date,
            source=data.get('source'),
            activity=data.get('activity'),
            minutes=minutes,
            miles=miles,
            weight=weight,
            calories=calories,
        )
