"""
Data validation utilities for timestamps, distances and optional numeric fields.
"""
from datetime import datetime, timezone
from typing import Any, Optional, Union


METERS_PER_MILE = 1609.344


class ValidationUtils:
    """Utility class for common data validation operations."""

    @staticmethod
    def parse_timestamp(timestamp_input: Union[str, datetime, int, float]) -> datetime:
        """
        Parse timestamp from various input formats.

        Args:
            timestamp_input: Timestamp as ISO-8601 string, datetime, or Unix timestamp

        Returns:
            Parsed datetime object (UTC-aware for Unix timestamps and 'Z' strings)

        Raises:
            ValueError: If timestamp cannot be parsed
        """
        if timestamp_input is None:
            raise ValueError("Timestamp input cannot be None")

        if isinstance(timestamp_input, datetime):
            return timestamp_input

        # bool is an int subclass, never a timestamp
        if isinstance(timestamp_input, bool):
            raise ValueError(f"Unsupported timestamp type: {type(timestamp_input)}")

        if isinstance(timestamp_input, (int, float)):
            try:
                return datetime.fromtimestamp(timestamp_input, tz=timezone.utc)
            except (ValueError, OSError, OverflowError) as e:
                raise ValueError(f"Cannot parse Unix timestamp: {timestamp_input}") from e

        if isinstance(timestamp_input, str):
            timestamp_str = timestamp_input.strip()
            if timestamp_str.endswith('Z'):
                timestamp_str = timestamp_str[:-1] + '+00:00'
            try:
                return datetime.fromisoformat(timestamp_str)
            except ValueError:
                pass

            try:
                return datetime.strptime(timestamp_str, '%Y-%m-%d %H:%M:%S')
            except ValueError:
                raise ValueError(f"Cannot parse timestamp string: '{timestamp_input}'")

        raise ValueError(f"Unsupported timestamp type: {type(timestamp_input)}")

    @staticmethod
    def format_timestamp(moment: datetime) -> str:
        """
        Format a datetime as an ISO-8601 UTC string with a 'Z' suffix.

        Naive datetimes are taken to already be in UTC.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')

    @staticmethod
    def meters_to_miles(meters: float) -> float:
        """Convert meters to miles."""
        return meters / METERS_PER_MILE

    @staticmethod
    def parse_optional_float(value: Any) -> Optional[float]:
        """
        Parse an optional numeric value.

        Args:
            value: Number, numeric string, or None/empty string

        Returns:
            Float value, or None if input is None or empty

        Raises:
            ValueError: If value is present but not numeric
        """
        if value is None or value == '':
            return None
        if isinstance(value, bool):
            raise ValueError(f"Cannot parse numeric value: {value}")
        try:
            return float(value)
        except (ValueError, TypeError):
            raise ValueError(f"Cannot parse numeric value: {value}")

    @staticmethod
    def validate_non_negative(value: Any, field_name: str, optional: bool = False) -> None:
        """
        Validate a numeric field is a non-negative number.

        Raises:
            ValueError: If the value is missing (and required), not a number, or negative
        """
        if value is None:
            if optional:
                return
            raise ValueError(f"{field_name} is required")

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{field_name} must be a number, got: {value!r}")

        if value != value:  # NaN
            raise ValueError(f"{field_name} must be a number, got: {value!r}")

        if value < 0:
            raise ValueError(f"{field_name} must be non-negative, got: {value}")
