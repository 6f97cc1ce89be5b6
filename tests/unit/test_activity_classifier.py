"""
Unit tests for the activity classifier.
"""
import logging
import pytest
from datetime import datetime, timezone

from models.health_sample import HealthSample
from models.workout import (
    CANNONDALE, CYCLING, GYM, OTHER_ACTIVITY, OTHER_SOURCE, OUTDOOR_CYCLING,
    PELOTON, RUNNING, SWIMMING, TONAL, WALKING, WEIGHT_LIFTING, YOGA,
)
from processors.activity_classifier import ActivityClassifier


def make_sample(**overrides):
    fields = {
        'uuid': 'sample-1',
        'start_date': datetime(2025, 5, 3, 7, 0, tzinfo=timezone.utc),
        'end_date': datetime(2025, 5, 3, 7, 45, tzinfo=timezone.utc),
        'source_name': 'My Peloton Bike',
        'activity_type': 'cycling',
        'duration_seconds': 2700,
        'total_distance_meters': 16093.44,
        'total_energy_kcal': 500.0,
        'metadata': {},
    }
    fields.update(overrides)
    return HealthSample(**fields)


class TestActivityClassifier:
    """Test cases for ActivityClassifier."""

    def setup_method(self):
        self.classifier = ActivityClassifier()

    @pytest.mark.parametrize("source_name,expected", [
        ('My Peloton Bike', PELOTON),
        ('PELOTON', PELOTON),
        ('Tonal', TONAL),
        ('Cannondale App', CANNONDALE),
        ('Planet Gym', GYM),
        ('FitnessPlus', GYM),
        ('Strava', OTHER_SOURCE),
        ('', OTHER_SOURCE),
        (None, OTHER_SOURCE),
    ])
    def test_determine_source(self, source_name, expected):
        assert self.classifier.determine_source(source_name) == expected

    def test_determine_source_first_match_wins(self):
        assert self.classifier.determine_source('Peloton Tonal Gym') == PELOTON
        assert self.classifier.determine_source('Tonal Fitness') == TONAL

    def test_determine_source_case_insensitive(self):
        for name in ('cannondale', 'CANNONDALE', 'CaNnOnDaLe'):
            assert self.classifier.determine_source(name) == CANNONDALE

    @pytest.mark.parametrize("activity_type,expected", [
        ('cycling', CYCLING),
        ('running', RUNNING),
        ('walking', WALKING),
        ('yoga', YOGA),
        ('functionalStrengthTraining', WEIGHT_LIFTING),
        ('traditionalStrengthTraining', WEIGHT_LIFTING),
        ('swimming', SWIMMING),
        ('Running', RUNNING),
    ])
    def test_map_activity(self, activity_type, expected):
        assert self.classifier.map_activity(activity_type, PELOTON) == expected

    def test_map_activity_mixed_cardio_depends_on_source(self):
        assert self.classifier.map_activity('mixedCardio', CANNONDALE) == OUTDOOR_CYCLING
        assert self.classifier.map_activity('mixedCardio', GYM) == CYCLING
        assert self.classifier.map_activity('mixedCardio', PELOTON) == CYCLING

    def test_map_activity_unknown_falls_back_to_other(self, caplog):
        with caplog.at_level(logging.INFO):
            assert self.classifier.map_activity('rowing', OTHER_SOURCE) == OTHER_ACTIVITY

        assert "Unmapped activity type 'rowing'" in caplog.text

    def test_classify_peloton_cycling(self):
        source, activity, weight = self.classifier.classify('My Peloton Bike', 'cycling')

        assert source == PELOTON
        assert activity == CYCLING
        assert weight is None

    def test_classify_mixed_cardio(self):
        assert self.classifier.classify('Cannondale App', 'mixedCardio')[1] == OUTDOOR_CYCLING
        assert self.classifier.classify('Other Gym', 'mixedCardio')[1] == CYCLING

    def test_classify_is_case_stable(self):
        lower = self.classifier.classify('tonal', 'traditionalstrengthtraining', calories=100)
        upper = self.classifier.classify('TONAL', 'TRADITIONALSTRENGTHTRAINING', calories=100)

        assert lower == upper

    def test_estimate_weight_from_metadata(self):
        weight = self.classifier.estimate_weight(
            WEIGHT_LIFTING, TONAL, 300, {'HKMetadataKeyWeightLifted': 12500}
        )
        assert weight == 12500.0

    def test_estimate_weight_metadata_key_order(self):
        metadata = {'total_weight': 9000, 'HKMetadataKeyWeightLifted': 12500}

        assert self.classifier.estimate_weight(WEIGHT_LIFTING, GYM, 300, metadata) == 12500.0
        assert self.classifier.estimate_weight(WEIGHT_LIFTING, GYM, 300, {'total_weight': 9000}) == 9000.0

    def test_estimate_weight_ignores_non_numeric_metadata(self):
        weight = self.classifier.estimate_weight(
            WEIGHT_LIFTING, GYM, 100, {'HKMetadataKeyWeightLifted': 'heavy'}
        )
        assert weight == 2000.0

    def test_estimate_weight_from_calories(self):
        assert self.classifier.estimate_weight(WEIGHT_LIFTING, TONAL, 300, {}) == 3000
        assert self.classifier.estimate_weight(WEIGHT_LIFTING, GYM, 300, {}) == 6000
        assert self.classifier.estimate_weight(WEIGHT_LIFTING, PELOTON, 300, None) == 6000

    def test_estimate_weight_without_calories(self):
        assert self.classifier.estimate_weight(WEIGHT_LIFTING, TONAL, None, {}) is None

    def test_estimate_weight_only_for_strength(self):
        assert self.classifier.estimate_weight(CYCLING, PELOTON, 500, {'total_weight': 100}) is None

    def test_meters_to_miles(self):
        assert self.classifier.meters_to_miles(1609.344) == 1.0

    def test_classify_sample(self):
        record = self.classifier.classify_sample(make_sample())

        assert record.id == 'sample-1'
        assert record.date == datetime(2025, 5, 3, 7, 0, tzinfo=timezone.utc)
        assert record.source == PELOTON
        assert record.activity == CYCLING
        assert record.minutes == 45.0
        assert record.miles == pytest.approx(10.0)
        assert record.weight is None
        assert record.calories == 500.0

    def test_classify_sample_strength(self):
        sample = make_sample(
            source_name='Tonal', activity_type='functionalStrengthTraining',
            total_distance_meters=None, total_energy_kcal=250.0,
        )

        record = self.classifier.classify_sample(sample)

        assert record.source == TONAL
        assert record.activity == WEIGHT_LIFTING
        assert record.miles is None
        assert record.weight == 2500.0

    def test_classify_samples_skips_malformed(self, caplog):
        good = make_sample(uuid='good')
        bad = make_sample(uuid='bad', total_energy_kcal=-5.0)

        with caplog.at_level(logging.WARNING):
            records = self.classifier.classify_samples([good, bad])

        assert [record.id for record in records] == ['good']
        assert "Rejected malformed workout sample bad" in caplog.text
