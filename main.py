#!/usr/bin/env python3
"""
Entry point for the Fitness Sync application.
"""
import argparse
import asyncio
import json
import sys
from datetime import datetime

import pytz

from config import get_config, ConfigError
from utils.logging_config import setup_logging, flush_logs
from utils.key_value_store import JsonFileStore
from clients.fitness_api_client import FitnessAPIClient, FitnessAPIError
from clients.health_export_client import HealthExportSource, HealthExportError
from models.goal import GoalInput, InvalidGoalInputError
from models.goal_progress import METRICS, PERIODS, PERIOD_QUARTER
from processors.activity_classifier import ActivityClassifier
from processors.data_aggregator import DataAggregator
from processors.goal_calculator import GoalCalculator
from services.goal_service import GoalService
from services.sync_manager import WorkoutSyncManager


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Fitness Sync - Sync health-data workouts and report goal progress'
    )
    parser.add_argument(
        '--sync',
        action='store_true',
        help='Upload workouts recorded since the last sync to the fitness API'
    )
    parser.add_argument(
        '--year',
        type=int,
        default=None,
        help='Goal year for --set-goal (default: current year)'
    )
    parser.add_argument(
        '--set-goal',
        metavar='NAME',
        default=None,
        help='Create or replace the goal for the year (requires the target options below)'
    )
    parser.add_argument('--weight-target', type=float, help='Annual pounds-lifted target')
    parser.add_argument('--minutes-per-session', type=int, help='Minutes per session')
    parser.add_argument('--weekly-sessions', type=int, help='Sessions per week')
    parser.add_argument(
        '--output',
        default=None,
        help='Write the progress report as JSON to this file'
    )
    return parser.parse_args(argv)


def build_goal_input(args, year: int) -> GoalInput:
    """Build a GoalInput from CLI arguments."""
    missing = [
        option for option, value in (
            ('--weight-target', args.weight_target),
            ('--minutes-per-session', args.minutes_per_session),
            ('--weekly-sessions', args.weekly_sessions),
        ) if value is None
    ]
    if missing:
        raise InvalidGoalInputError(f"--set-goal requires {', '.join(missing)}")

    return GoalInput(
        name=args.set_goal,
        year=year,
        annual_weight_target=args.weight_target,
        minutes_per_session=args.minutes_per_session,
        weekly_sessions_target=args.weekly_sessions,
    )


def build_sync_manager(config, health_source, store, classifier) -> WorkoutSyncManager:
    """
    Build the workout sync manager.

    The manager retries each upload itself, so its client is built without
    retries of its own.
    """
    upload_client = FitnessAPIClient(
        base_url=config.api_base_url,
        api_timeout=config.api_timeout,
        max_retries=0,
    )
    return WorkoutSyncManager(
        health_source, upload_client, store,
        classifier=classifier,
        default_timeout=config.api_timeout,
        max_retries=config.max_retries,
        lookback_days=config.sync_lookback_days,
    )


def build_report(goal, progress, summary, calculator: GoalCalculator) -> dict:
    """Assemble the JSON progress report."""
    report = {
        'generated_at': datetime.now().isoformat(),
        'summary': summary.to_dict(),
        'goal': None,
        'progress': None,
    }

    if goal and progress:
        report['goal'] = goal.to_api_dict()
        report['progress'] = {
            'current_quarter': progress.current_quarter,
            'current_year': progress.current_year,
            'sessions_needed_for_quarter': progress.sessions_needed_for_quarter,
            'sessions_needed_for_year': progress.sessions_needed_for_year,
            'days_remaining_in_quarter': progress.days_remaining_in_quarter,
            'metrics': {
                metric: {
                    period: {
                        'actual': progress.values_for(metric, period)[0],
                        'expected': progress.values_for(metric, period)[1],
                        'status': calculator.get_status(progress, metric, period),
                    }
                    for period in PERIODS
                }
                for metric in METRICS
            },
        }

    return report


async def main(args) -> int:
    """Main entry point for the application."""
    logger = None

    try:
        logger = setup_logging()
        logger.info("🏋️ Fitness Sync starting up")

        config = get_config()
        now = datetime.now(pytz.timezone(config.timezone))

        store = JsonFileStore(config.cache_dir)
        api_client = FitnessAPIClient(
            base_url=config.api_base_url,
            api_timeout=config.api_timeout,
            max_retries=config.max_retries,
        )
        health_source = HealthExportSource(config.health_export_path)
        classifier = ActivityClassifier()
        goal_service = GoalService(api_client, store)

    except ConfigError as e:
        if logger:
            logger.error(f"Configuration error: {e}")
        else:
            print(f"❌ Configuration error: {e}")
        return 1

    try:
        if args.sync:
            logger.info("🔄 Syncing workouts...")
            sync_manager = build_sync_manager(config, health_source, store, classifier)
            sync_result = await sync_manager.sync_workouts(now)
            if sync_result['failed']:
                logger.warning(f"⚠️  {len(sync_result['failed'])} workouts could not be synced")

        try:
            await goal_service.fetch_goals()
        except FitnessAPIError as e:
            logger.warning(f"⚠️  Could not refresh goals, using cached goals: {e}")

        if args.set_goal:
            year = args.year or now.year
            goal_input = build_goal_input(args, year)
            existing = goal_service.get_goal_for_year(year)
            if existing:
                goal = await goal_service.update_goal(existing, goal_input)
                logger.info(f"✅ Replaced goal for {year}: {goal.name}")
            else:
                goal = await goal_service.create_goal(goal_input)
                logger.info(f"✅ Created goal for {year}: {goal.name}")

        year_start = pytz.timezone(config.timezone).localize(datetime(now.year, 1, 1))
        samples = health_source.fetch_workouts(year_start, now)
        workouts = classifier.classify_samples(samples)

        aggregator = DataAggregator()
        summary = aggregator.summarize(workouts)

        logger.info("")
        logger.info(f"📊 {now.year} Workout Summary:")
        logger.info("=" * 50)
        logger.info(f"Sessions: {summary.total_sessions}")
        logger.info(f"Minutes: {summary.total_minutes:,}")
        logger.info(f"Miles: {summary.total_miles:.2f}")
        logger.info(f"Weight lifted: {summary.total_weight:,.0f} lbs")
        if summary.longest_distance:
            logger.info(f"Longest distance: {summary.longest_distance.miles:.2f} miles "
                        f"({summary.longest_distance.activity}, {summary.longest_distance.date:%Y-%m-%d})")
        if summary.most_weight:
            logger.info(f"Most weight: {summary.most_weight.weight:,.0f} lbs "
                        f"({summary.most_weight.source}, {summary.most_weight.date:%Y-%m-%d})")
        if summary.top_activity:
            logger.info(f"Top activity: {summary.top_activity}")
        for item in summary.activity_breakdown:
            logger.info(f"  {item.activity}: {item.count} sessions, {item.total_minutes} min")

        calculator = GoalCalculator()
        goal = goal_service.get_current_goal(now)
        progress = None

        if goal:
            progress = calculator.calculate_progress(goal, workouts, now)

            logger.info("")
            logger.info(f"🎯 {goal.name} - Q{progress.current_quarter} {progress.current_year}:")
            logger.info("=" * 50)
            for period in PERIODS:
                label = 'Quarter to date' if period == PERIOD_QUARTER else 'Year to date'
                logger.info(f"{label}:")
                for metric in METRICS:
                    actual, expected = progress.values_for(metric, period)
                    status = calculator.get_status(progress, metric, period)
                    logger.info(f"  {metric}: {actual:,.0f} / {expected:,.0f} expected - {status}")
            logger.info(f"Sessions needed: {progress.sessions_needed_for_quarter} this quarter, "
                        f"{progress.sessions_needed_for_year} this year")
            logger.info(f"Days remaining in quarter: {progress.days_remaining_in_quarter}")
        else:
            logger.info(f"ℹ️  No goal set for {now.year}. Use --set-goal to create one.")

        if args.output:
            report = build_report(goal, progress, summary, calculator)
            with open(args.output, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2)
            logger.info(f"Report saved to: {args.output}")

        logger.info("")
        logger.info("✅ Done!")
        return 0

    except InvalidGoalInputError as e:
        logger.error(f"❌ Invalid goal: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"❌ File error: {e}")
        return 1
    except HealthExportError as e:
        logger.error(f"❌ Health export error: {e}")
        return 1
    except FitnessAPIError as e:
        logger.error(f"❌ Fitness API error: {e}")
        return 1
    finally:
        flush_logs()


def run():
    args = parse_arguments()

    try:
        exit_code = asyncio.run(main(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    run()
