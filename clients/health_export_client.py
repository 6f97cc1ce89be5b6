"""
Health-data export client reading raw workout samples from a JSON export file.
"""
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from models.health_sample import HealthSample

logger = logging.getLogger(__name__)


class HealthExportError(Exception):
    """Raised when the health-data export cannot be read."""
    pass


class HealthExportSource:
    """Workout source backed by a health-data export of the form {"workouts": [...]}."""

    def __init__(self, export_path: str):
        """
        Initialize the source.

        Args:
            export_path: Path to the JSON export file
        """
        self.export_path = Path(export_path)

    def load_samples(self) -> List[HealthSample]:
        """
        Load and parse every workout sample in the export.

        Entries that cannot be parsed are logged and skipped.

        Returns:
            List of HealthSample objects in file order

        Raises:
            FileNotFoundError: If the export file doesn't exist
            HealthExportError: If the file is not valid JSON or lacks a 'workouts' list
        """
        try:
            with open(self.export_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Health export file not found: {self.export_path}")
        except json.JSONDecodeError as e:
            raise HealthExportError(f"Invalid JSON in health export file: {e}")

        if not isinstance(data, dict) or 'workouts' not in data:
            raise HealthExportError("Health export JSON must contain 'workouts' key")

        if not isinstance(data['workouts'], list):
            raise HealthExportError(
                f"'workouts' must be a list, got {type(data['workouts']).__name__}"
            )

        samples = []
        for idx, entry in enumerate(data['workouts']):
            try:
                if not isinstance(entry, dict):
                    raise ValueError(f"expected an object, got {type(entry).__name__}")
                samples.append(HealthSample.from_export_data(entry))
            except ValueError as e:
                logger.warning(f"Skipping health export entry {idx}: {e}")
                continue

        logger.info(f"Loaded {len(samples)} workout samples from {self.export_path}")
        return samples

    def fetch_workouts(self, start_date: datetime, end_date: datetime,
                       limit: Optional[int] = None, newest_first: bool = False) -> List[HealthSample]:
        """
        Retrieve samples that started within [start_date, end_date].

        Args:
            start_date: Inclusive start of the query window
            end_date: Inclusive end of the query window
            limit: Maximum number of samples to return
            newest_first: Sort by start date descending instead of ascending

        Returns:
            List of matching HealthSample objects
        """
        samples = [
            sample for sample in self.load_samples()
            if start_date <= sample.start_date <= end_date
        ]
        samples.sort(key=lambda sample: sample.start_date, reverse=newest_first)

        if limit is not None:
            samples = samples[:limit]

        logger.debug(f"Fetched {len(samples)} samples between {start_date} and {end_date}")
        return samples

    def fetch_recent_workouts(self, now: datetime, days: int = 30, limit: int = 100) -> List[HealthSample]:
        """Samples from the last 'days' days, newest first."""
        return self.fetch_workouts(now - timedelta(days=days), now, limit=limit, newest_first=True)

    def fetch_unsynced_workouts(self, last_sync_date: Optional[datetime], now: datetime,
                                lookback_days: int = 7) -> List[HealthSample]:
        """
        Samples recorded since the last sync, oldest first.

        Without a previous sync the window starts 'lookback_days' before now.
        """
        start_date = last_sync_date or now - timedelta(days=lookback_days)
        return self.fetch_workouts(start_date, now)
