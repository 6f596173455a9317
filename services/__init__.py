"""
Workout services for the daily split tracker
"""

from .exercise_catalog import ExerciseCatalog
from .splits import SPLITS, Split, SplitKey, get_split, list_splits
from .stats import StatsService, one_rep_max
from .workout_session import WorkoutSessionService

__all__ = [
    "ExerciseCatalog",
    "SPLITS",
    "Split",
    "SplitKey",
    "StatsService",
    "WorkoutSessionService",
    "get_split",
    "list_splits",
    "one_rep_max",
]
