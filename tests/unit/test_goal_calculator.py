"""
Unit tests for the goal progress calculator.
"""
import pytest
import pytz
from datetime import datetime, timezone

from models.goal import GoalInput
from models.goal_progress import BEHIND, ON_TRACK, SLIGHTLY_BEHIND, METRICS
from models.workout import WorkoutRecord, PELOTON, TONAL, CYCLING, WEIGHT_LIFTING
from processors.goal_calculator import GoalCalculator, get_progress_status


def make_workout(workout_id, date, source=PELOTON, activity=CYCLING, minutes=45, weight=None):
    return WorkoutRecord(
        id=workout_id,
        date=date,
        source=source,
        activity=activity,
        minutes=minutes,
        weight=weight,
    )


@pytest.fixture
def goal():
    return GoalInput(
        name='Lift More', year=2025, annual_weight_target=520000,
        minutes_per_session=45, weekly_sessions_target=5,
    ).create_goal(goal_id='goal-1', now=datetime(2025, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def calculator():
    return GoalCalculator()


class TestProgressStatus:
    """Test the status thresholds."""

    @pytest.mark.parametrize("actual,expected,status", [
        (100, 100, ON_TRACK),
        (150, 100, ON_TRACK),
        (0, 0, ON_TRACK),
        (80, 100, SLIGHTLY_BEHIND),
        (99.9, 100, SLIGHTLY_BEHIND),
        (79.9, 100, BEHIND),
        (0, 1, BEHIND),
    ])
    def test_get_progress_status(self, actual, expected, status):
        assert get_progress_status(actual, expected) == status


class TestGoalCalculator:
    """Test cases for GoalCalculator."""

    def test_mid_quarter_expected_values(self, calculator, goal):
        now = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)

        progress = calculator.calculate_progress(goal, [], now)

        # 45.5 of 90 days into Q1, 45.5 of 365 days into the year
        assert progress.current_quarter == 1
        assert progress.current_year == 2025
        assert progress.expected_minutes.quarter_to_date == 1478
        assert progress.expected_sessions.quarter_to_date == 32
        assert progress.expected_weight_lifted.quarter_to_date == pytest.approx(130000 * 45.5 / 90)
        assert progress.expected_minutes.year_to_date == 1458
        assert progress.expected_sessions.year_to_date == 32
        assert progress.expected_weight_lifted.year_to_date == pytest.approx(520000 * 45.5 / 365)
        assert progress.days_remaining_in_quarter == 43

    def test_expected_minutes_and_sessions_are_truncated(self, calculator, goal):
        now = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)

        progress = calculator.calculate_progress(goal, [], now)

        assert isinstance(progress.expected_minutes.quarter_to_date, int)
        assert isinstance(progress.expected_sessions.year_to_date, int)
        assert isinstance(progress.expected_weight_lifted.quarter_to_date, float)

    def test_actuals_from_workouts(self, calculator, goal):
        now = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)
        workouts = [
            make_workout('w1', datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc),
                         source=TONAL, activity=WEIGHT_LIFTING, minutes=45, weight=5000),
            make_workout('w2', datetime(2025, 2, 14, 18, 0, tzinfo=timezone.utc), minutes=30.9),
            make_workout('w3', datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc), minutes=60),
        ]

        progress = calculator.calculate_progress(goal, workouts, now)

        assert progress.actual_sessions.quarter_to_date == 2
        assert progress.actual_sessions.year_to_date == 2
        assert progress.actual_minutes.quarter_to_date == 75
        assert progress.actual_weight_lifted.quarter_to_date == 5000
        # ceil((2925 - 75) / 45) and ceil((11700 - 75) / 45)
        assert progress.sessions_needed_for_quarter == 64
        assert progress.sessions_needed_for_year == 259
        assert calculator.get_status(progress, 'weight', 'quarter') == BEHIND
        assert calculator.get_status(progress, 'minutes', 'year') == BEHIND

    def test_no_workouts_at_quarter_start(self, calculator, goal):
        now = datetime(2025, 4, 1, 0, 0, tzinfo=timezone.utc)

        progress = calculator.calculate_progress(goal, [], now)

        assert progress.current_quarter == 2
        assert progress.actual_weight_lifted.quarter_to_date == 0
        assert progress.actual_minutes.quarter_to_date == 0
        assert progress.actual_sessions.quarter_to_date == 0
        assert progress.expected_minutes.quarter_to_date == 0
        assert progress.expected_weight_lifted.year_to_date > 0
        for metric in METRICS:
            assert calculator.get_status(progress, metric, 'quarter') == ON_TRACK
            assert calculator.get_status(progress, metric, 'year') == BEHIND
        assert progress.sessions_needed_for_quarter == 65
        assert progress.sessions_needed_for_year == 260
        assert progress.days_remaining_in_quarter == 90

    def test_quarter_boundary_is_inclusive(self, calculator, goal):
        now = datetime(2025, 3, 31, 20, 0, tzinfo=timezone.utc)
        workouts = [
            make_workout('first', datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)),
            make_workout('last', datetime(2025, 3, 31, 18, 0, tzinfo=timezone.utc)),
            make_workout('next', datetime(2025, 4, 1, 0, 0, tzinfo=timezone.utc)),
        ]

        progress = calculator.calculate_progress(goal, workouts, now)

        assert progress.actual_sessions.quarter_to_date == 2
        assert progress.actual_sessions.year_to_date == 3
        assert progress.days_remaining_in_quarter == 0

    def test_target_already_met(self, calculator, goal):
        now = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)
        workouts = [
            make_workout(f'w{i}', datetime(2025, 1, 2, tzinfo=timezone.utc), minutes=100)
            for i in range(30)
        ]

        progress = calculator.calculate_progress(goal, workouts, now)

        assert progress.sessions_needed_for_quarter == 0
        assert calculator.get_status(progress, 'minutes', 'quarter') == ON_TRACK
        assert calculator.get_status(progress, 'sessions', 'quarter') == SLIGHTLY_BEHIND

    def test_membership_uses_local_dates(self, calculator, goal):
        eastern = pytz.timezone('America/New_York')
        now = eastern.localize(datetime(2025, 3, 31, 22, 0))
        workouts = [
            # Mar 31 21:00 local
            make_workout('late-q1', datetime(2025, 4, 1, 1, 0, tzinfo=timezone.utc)),
            # Dec 31 22:00 local, previous year
            make_workout('prev-year', datetime(2025, 1, 1, 3, 0, tzinfo=timezone.utc)),
        ]

        progress = calculator.calculate_progress(goal, workouts, now)

        assert progress.current_quarter == 1
        assert progress.actual_sessions.quarter_to_date == 1
        assert progress.actual_sessions.year_to_date == 1
        assert progress.days_remaining_in_quarter == 0

    def test_progress_fraction_uses_real_elapsed_time(self, calculator, goal):
        eastern = pytz.timezone('America/New_York')
        now = eastern.localize(datetime(2025, 3, 31, 22, 0))

        progress = calculator.calculate_progress(goal, [], now)

        # 90 days minus 3 hours elapsed of a quarter 90 days minus 1 hour long (DST)
        fraction = (90 * 24 - 3) / (90 * 24 - 1)
        assert progress.expected_weight_lifted.quarter_to_date == pytest.approx(130000 * fraction)

    def test_days_remaining_counts_calendar_days_across_dst(self, calculator, goal):
        eastern = pytz.timezone('America/New_York')
        # Mar 31 is one hour short of 30 elapsed days away (spring forward)
        now = eastern.localize(datetime(2025, 3, 1, 0, 0))

        progress = calculator.calculate_progress(goal, [], now)

        assert progress.days_remaining_in_quarter == 30

    def test_days_remaining_drops_partial_day(self, calculator, goal):
        now = datetime(2025, 3, 30, 0, 1, tzinfo=timezone.utc)

        progress = calculator.calculate_progress(goal, [], now)

        assert progress.days_remaining_in_quarter == 0

    def test_expected_never_exceeds_target(self, calculator, goal):
        now = datetime(2025, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

        progress = calculator.calculate_progress(goal, [], now)

        assert progress.expected_minutes.quarter_to_date <= goal.quarterly_minutes_target
        assert progress.expected_minutes.year_to_date <= goal.annual_minutes_target
        assert progress.expected_sessions.year_to_date <= goal.annual_sessions_target
        assert progress.days_remaining_in_quarter == 0

    def test_calculation_is_repeatable(self, calculator, goal):
        now = datetime(2025, 8, 20, 9, 30, tzinfo=timezone.utc)
        workouts = [make_workout('w1', datetime(2025, 8, 1, tzinfo=timezone.utc))]

        assert calculator.calculate_progress(goal, workouts, now) == \
            calculator.calculate_progress(goal, workouts, now)

    def test_get_status_invalid_metric(self, calculator, goal):
        progress = calculator.calculate_progress(goal, [], datetime(2025, 5, 1, tzinfo=timezone.utc))

        with pytest.raises(ValueError, match="Metric must be one of"):
            calculator.get_status(progress, 'calories', 'quarter')

        with pytest.raises(ValueError, match="Period must be one of"):
            calculator.get_status(progress, 'minutes', 'month')
