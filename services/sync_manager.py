"""
Workout sync manager uploading newly recorded workouts to the fitness API.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from clients.fitness_api_client import FitnessAPIClient, FitnessAPIError
from clients.health_export_client import HealthExportSource
from models.validation_utils import ValidationUtils
from models.workout import WorkoutRecord
from processors.activity_classifier import ActivityClassifier

logger = logging.getLogger(__name__)


class WorkoutSyncManager:
    """
    Reads unsynced workouts from the health-data source, classifies them and
    uploads each one with timeout, retry logic and per-workout failure isolation.
    """

    LAST_SYNC_KEY = 'last_sync_date'

    def __init__(self, health_source: HealthExportSource, api_client: FitnessAPIClient,
                 store, classifier: Optional[ActivityClassifier] = None,
                 default_timeout: int = 30,
                 max_retries: int = 3,
                 base_retry_delay: float = 1.0,
                 lookback_days: int = 7):
        """
        Initialize the sync manager.

        Args:
            health_source: Source of raw workout samples
            api_client: Fitness API client used for uploads
            store: Key-value store holding the last sync date
            classifier: Activity classifier (defaults to a new instance)
            default_timeout: Timeout per upload in seconds
            max_retries: Maximum number of retry attempts for transient failures
            base_retry_delay: Base delay for exponential backoff in seconds
            lookback_days: Window used when no previous sync is recorded
        """
        self.health_source = health_source
        self.api_client = api_client
        self.store = store
        self.classifier = classifier or ActivityClassifier()
        self.default_timeout = default_timeout
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self.lookback_days = lookback_days

        self.sync_status = {'available': True, 'last_error': None, 'error_count': 0}

    def get_last_sync_date(self) -> Optional[datetime]:
        value = self.store.get(self.LAST_SYNC_KEY)
        if not value:
            return None
        try:
            return ValidationUtils.parse_timestamp(value)
        except ValueError as e:
            logger.warning(f"Ignoring invalid last sync date '{value}': {e}")
            return None

    def set_last_sync_date(self, moment: datetime) -> None:
        self.store.set(self.LAST_SYNC_KEY, moment.isoformat())

    async def sync_workouts(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Upload every workout recorded since the last successful sync.

        The last sync date only advances when no upload failed, so failed
        workouts are offered again on the next run; the API reports the
        already-uploaded ones as duplicates.

        Args:
            now: Current moment (defaults to the current UTC time)

        Returns:
            Dictionary with synced, duplicate, failed and rejected counts and
            the classified workouts, newest first
        """
        now = now or datetime.now(timezone.utc)
        last_sync_date = self.get_last_sync_date()

        logger.info(f"Starting workout sync (last sync: {last_sync_date or 'never'})")

        samples = self.health_source.fetch_unsynced_workouts(last_sync_date, now, self.lookback_days)
        workouts = self.classifier.classify_samples(samples)

        results = {
            'synced': [],
            'duplicates': [],
            'failed': [],
            'rejected': len(samples) - len(workouts),
            'workouts': sorted(workouts, key=lambda workout: workout.date, reverse=True),
            'sync_timestamp': now,
        }

        for workout in workouts:
            outcome = await self._sync_with_retry(workout)
            if outcome is True:
                results['synced'].append(workout.id)
            elif outcome is False:
                results['duplicates'].append(workout.id)
            else:
                results['failed'].append(workout.id)

        if results['failed']:
            logger.warning(f"{len(results['failed'])} workouts failed to sync; "
                           f"last sync date left at {last_sync_date}")
        else:
            self.set_last_sync_date(now)

        logger.info(f"Sync complete: {len(results['synced'])} synced, "
                    f"{len(results['duplicates'])} already present, "
                    f"{len(results['failed'])} failed, {results['rejected']} rejected")
        return results

    async def _sync_with_retry(self, workout: WorkoutRecord) -> Optional[bool]:
        """
        Upload one workout with timeout and retries.

        Returns:
            True if created, False if already present, None if every attempt failed
        """
        for attempt in range(self.max_retries + 1):
            start_time = time.time()
            try:
                created = await asyncio.wait_for(
                    self.api_client.sync_workout(workout),
                    timeout=self.default_timeout
                )

                elapsed_time = time.time() - start_time
                logger.debug(f"Workout {workout.id} uploaded in {elapsed_time:.2f}s")

                self.sync_status['available'] = True
                self.sync_status['last_error'] = None
                return created

            except asyncio.TimeoutError:
                error_msg = f"Upload of workout {workout.id} timed out after {self.default_timeout} seconds"
                logger.warning(f"{error_msg} (attempt {attempt + 1})")
                self._handle_sync_error(error_msg)

            except FitnessAPIError as e:
                error_msg = f"Upload of workout {workout.id} failed: {e}"
                logger.warning(f"{error_msg} (attempt {attempt + 1})")
                self._handle_sync_error(error_msg)

                # Rejected payloads will not succeed on retry
                if e.is_client_error:
                    logger.error(f"Workout {workout.id} rejected by API, not retrying")
                    break

            if attempt < self.max_retries:
                await self._exponential_backoff(attempt)

        self.sync_status['available'] = False
        return None

    async def _exponential_backoff(self, attempt: int) -> None:
        """
        Implement exponential backoff with jitter for retry delays.

        Args:
            attempt: Current attempt number (0-based)
        """
        delay = self.base_retry_delay * (2 ** attempt)
        jitter = (time.time() % 1) * 0.5 if self.base_retry_delay > 0 else 0.0
        total_delay = delay + jitter

        logger.debug(f"Waiting {total_delay:.2f} seconds before retry")
        await asyncio.sleep(total_delay)

    def _handle_sync_error(self, error_message: str) -> None:
        self.sync_status['last_error'] = error_message
        self.sync_status['error_count'] += 1

    def get_sync_status(self) -> Dict[str, Any]:
        """
        Get current sync status.

        Returns:
            Dictionary with availability, error details and the last sync date
        """
        return {
            'sync_status': self.sync_status.copy(),
            'last_sync_date': self.get_last_sync_date(),
        }
