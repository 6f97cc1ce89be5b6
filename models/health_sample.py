"""
Raw workout sample as exported from the platform health-data store.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .validation_utils import ValidationUtils


REQUIRED_EXPORT_FIELDS = {'uuid', 'startDate', 'endDate', 'sourceName', 'activityType'}


def _as_utc_if_naive(moment: datetime) -> datetime:
    # Exports without an offset are recorded in UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class HealthSample:
    """One workout sample before classification."""

    uuid: str
    start_date: datetime
    end_date: datetime
    source_name: str
    activity_type: str
    duration_seconds: Optional[float] = None
    total_distance_meters: Optional[float] = None
    total_energy_kcal: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        """Duration in seconds, falling back to the start/end interval."""
        if self.duration_seconds is not None:
            return self.duration_seconds
        return (self.end_date - self.start_date).total_seconds()

    @classmethod
    def from_export_data(cls, data: Dict[str, Any]) -> 'HealthSample':
        """
        Create a HealthSample from one entry of a health-data export.

        Args:
            data: Export entry with camelCase keys

        Raises:
            ValueError: If required fields are missing or values cannot be parsed
        """
        missing_fields = REQUIRED_EXPORT_FIELDS - set(data.keys())
        if missing_fields:
            raise ValueError(
                f"Missing required fields: {', '.join(sorted(missing_fields))}"
            )

        metadata = data.get('metadata') or {}
        if not isinstance(metadata, dict):
            raise ValueError(f"Metadata must be a mapping, got {type(metadata).__name__}")

        return cls(
            uuid=str(data['uuid']),
            start_date=_as_utc_if_naive(ValidationUtils.parse_timestamp(data['startDate'])),
            end_date=_as_utc_if_naive(ValidationUtils.parse_timestamp(data['endDate'])),
            source_name=str(data['sourceName']),
            activity_type=str(data['activityType']),
            duration_seconds=ValidationUtils.parse_optional_float(data.get('duration')),
            total_distance_meters=ValidationUtils.parse_optional_float(data.get('totalDistance')),
            total_energy_kcal=ValidationUtils.parse_optional_float(data.get('totalEnergyBurned')),
            metadata=metadata,
        )
