"""
Unit tests for the command line helpers.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import Mock

from main import parse_arguments, build_goal_input, build_report, build_sync_manager
from models.goal import InvalidGoalInputError, GoalInput
from processors.data_aggregator import DataAggregator
from processors.goal_calculator import GoalCalculator
from utils.key_value_store import InMemoryStore


class TestCommandLine:
    """Test argument parsing and report assembly."""

    def test_parse_defaults(self):
        args = parse_arguments([])

        assert args.sync is False
        assert args.set_goal is None
        assert args.year is None
        assert args.output is None

    def test_parse_set_goal(self):
        args = parse_arguments([
            '--set-goal', 'Lift More', '--weight-target', '520000',
            '--minutes-per-session', '45', '--weekly-sessions', '5', '--year', '2026',
        ])

        goal_input = build_goal_input(args, args.year)

        assert goal_input == GoalInput('Lift More', 2026, 520000.0, 45, 5)

    def test_set_goal_requires_targets(self):
        args = parse_arguments(['--set-goal', 'Lift More', '--weight-target', '1000'])

        with pytest.raises(InvalidGoalInputError, match="--minutes-per-session, --weekly-sessions"):
            build_goal_input(args, 2025)

    def test_set_goal_rejects_zero_minutes(self):
        args = parse_arguments([
            '--set-goal', 'Lift More', '--weight-target', '1000',
            '--minutes-per-session', '0', '--weekly-sessions', '3',
        ])

        with pytest.raises(InvalidGoalInputError):
            build_goal_input(args, 2025)

    def test_build_report_without_goal(self):
        summary = DataAggregator().summarize([])

        report = build_report(None, None, summary, GoalCalculator())

        assert report['goal'] is None
        assert report['progress'] is None
        assert report['summary']['total_sessions'] == 0
        assert report['summary']['top_activity'] is None

    def test_build_report_with_goal(self):
        now = datetime(2025, 4, 1, tzinfo=timezone.utc)
        goal = GoalInput('Lift More', 2025, 520000, 45, 5).create_goal(goal_id='g-1', now=now)
        calculator = GoalCalculator()
        progress = calculator.calculate_progress(goal, [], now)

        report = build_report(goal, progress, DataAggregator().summarize([]), calculator)

        assert report['goal']['id'] == 'g-1'
        assert report['progress']['current_quarter'] == 2
        assert report['progress']['metrics']['minutes']['quarter'] == {
            'actual': 0, 'expected': 0, 'status': 'On Track',
        }
        assert report['progress']['metrics']['sessions']['year']['status'] == 'Behind'

    def test_build_sync_manager_retries_in_one_layer(self):
        config = Mock(api_base_url='https://fitness.example.com', api_timeout=20,
                      max_retries=3, sync_lookback_days=14)

        sync_manager = build_sync_manager(config, Mock(), InMemoryStore(), None)

        assert sync_manager.max_retries == 3
        assert sync_manager.default_timeout == 20
        assert sync_manager.lookback_days == 14
        assert sync_manager.api_client.max_retries == 0
        assert sync_manager.api_client.base_url == 'https://fitness.example.com'
