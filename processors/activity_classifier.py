"""
Activity classifier mapping raw health-data samples to canonical workout records.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.health_sample import HealthSample
from models.validation_utils import ValidationUtils
from models.workout import (
    CANNONDALE, CYCLING, GYM, OTHER_ACTIVITY, OTHER_SOURCE, OUTDOOR_CYCLING,
    PELOTON, RUNNING, SWIMMING, TONAL, WALKING, WEIGHT_LIFTING, YOGA,
    MalformedRecordError, WorkoutRecord, is_typical_activity,
)


logger = logging.getLogger(__name__)

# Checked in order, first match wins
SOURCE_KEYWORDS = (
    (('peloton',), PELOTON),
    (('tonal',), TONAL),
    (('cannondale',), CANNONDALE),
    (('gym', 'fitness'), GYM),
)

MIXED_CARDIO = 'mixedcardio'

ACTIVITY_TYPE_MAP = {
    'cycling': CYCLING,
    'running': RUNNING,
    'walking': WALKING,
    'yoga': YOGA,
    'functionalstrengthtraining': WEIGHT_LIFTING,
    'traditionalstrengthtraining': WEIGHT_LIFTING,
    'swimming': SWIMMING,
}

WEIGHT_METADATA_KEYS = ('HKMetadataKeyWeightLifted', 'total_weight')

# Approximations: roughly 100 kcal per 1000 lbs on Tonal, 50 kcal per 1000 lbs elsewhere
TONAL_POUNDS_PER_CALORIE = 10
DEFAULT_POUNDS_PER_CALORIE = 20


class ActivityClassifier:
    """Normalizes source names and activity codes into canonical labels."""

    def determine_source(self, source_name: str) -> str:
        """
        Resolve a canonical source label from a free-form source name.

        Args:
            source_name: Name of the app or device that recorded the workout

        Returns:
            One of Peloton, Tonal, Cannondale, Gym or Other
        """
        lowered = (source_name or '').lower()
        for keywords, label in SOURCE_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return label
        return OTHER_SOURCE

    def map_activity(self, activity_type: str, source: str) -> str:
        """
        Map a platform activity-type code to a canonical activity category.

        Mixed cardio is outdoor cycling when it comes from Cannondale and
        indoor cycling otherwise. Unknown codes fall back to Other.
        """
        code = (activity_type or '').lower()

        if code == MIXED_CARDIO:
            return OUTDOOR_CYCLING if source == CANNONDALE else CYCLING

        activity = ACTIVITY_TYPE_MAP.get(code)
        if activity is None:
            logger.info(f"Unmapped activity type '{activity_type}' from {source}, classified as {OTHER_ACTIVITY}")
            return OTHER_ACTIVITY
        return activity

    def estimate_weight(self, activity: str, source: str, calories: Optional[float],
                        metadata: Optional[Dict[str, Any]] = None) -> Optional[float]:
        """
        Determine total pounds lifted for a strength workout.

        An explicit metadata value wins. Otherwise the weight is estimated
        from calories, with a source-specific multiplier.

        Returns:
            Pounds lifted, or None for non-strength workouts or when no
            metadata value or calorie count is available
        """
        if activity != WEIGHT_LIFTING:
            return None

        for key in WEIGHT_METADATA_KEYS:
            value = (metadata or {}).get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)

        if calories is None:
            return None

        if source == TONAL:
            return calories * TONAL_POUNDS_PER_CALORIE
        return calories * DEFAULT_POUNDS_PER_CALORIE

    def meters_to_miles(self, meters: float) -> float:
        return ValidationUtils.meters_to_miles(meters)

    def classify(self, source_name: str, activity_type: str,
                 metadata: Optional[Dict[str, Any]] = None,
                 calories: Optional[float] = None) -> Tuple[str, str, Optional[float]]:
        """
        Classify a raw source/activity pair.

        Returns:
            Tuple of (source label, activity category, estimated weight)
        """
        source = self.determine_source(source_name)
        activity = self.map_activity(activity_type, source)
        weight = self.estimate_weight(activity, source, calories, metadata)

        if not is_typical_activity(source, activity):
            logger.debug(f"{activity} is not a typical activity for {source}")

        return source, activity, weight

    def classify_sample(self, sample: HealthSample) -> WorkoutRecord:
        """
        Convert a raw health sample into a canonical workout record.

        Raises:
            MalformedRecordError: If the sample carries negative or invalid values
        """
        source, activity, weight = self.classify(
            sample.source_name,
            sample.activity_type,
            metadata=sample.metadata,
            calories=sample.total_energy_kcal,
        )

        miles = None
        if sample.total_distance_meters is not None:
            miles = self.meters_to_miles(sample.total_distance_meters)

        return WorkoutRecord(
            id=sample.uuid,
            date=sample.start_date,
            source=source,
            activity=activity,
            minutes=sample.duration / 60.0,
            miles=miles,
            weight=weight,
            calories=sample.total_energy_kcal,
        )

    def classify_samples(self, samples: Iterable[HealthSample]) -> List[WorkoutRecord]:
        """
        Classify a batch of samples, skipping malformed ones.

        Args:
            samples: Raw health samples

        Returns:
            List[WorkoutRecord]: Records for every valid sample, in input order
        """
        records = []

        for sample in samples:
            try:
                records.append(self.classify_sample(sample))
            except MalformedRecordError as e:
                logger.warning(f"Rejected malformed workout sample {sample.uuid}: {e}")
                continue

        logger.info(f"Classified {len(records)} workout records")
        return records
