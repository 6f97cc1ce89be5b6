# Models package for workout, goal and progress data

from .workout import WorkoutRecord, MalformedRecordError
from .goal import Goal, GoalInput, InvalidGoalInputError
from .goal_progress import GoalProgress, PeriodValues
from .health_sample import HealthSample
from .workout_summary import WorkoutSummary, ActivityBreakdown
from .validation_utils import ValidationUtils

__all__ = [
    'WorkoutRecord',
    'MalformedRecordError',
    'Goal',
    'GoalInput',
    'InvalidGoalInputError',
    'GoalProgress',
    'PeriodValues',
    'HealthSample',
    'WorkoutSummary',
    'ActivityBreakdown',
    'ValidationUtils'
]
