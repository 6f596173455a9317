"""
Error taxonomy for the workout session engine.

Every error carries a stable ``code`` and a ``status`` classification the
HTTP layer maps to a response status. None of them are fatal to the process.
"""

from typing import Any, Dict, Optional

NOT_FOUND = "not_found"
VALIDATION = "validation"
CONFLICT = "conflict"


class WorkoutError(Exception):
    """Base class for recoverable workout engine errors"""

    code = "workout_error"
    status = VALIDATION
    message = "Workout request could not be processed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details: Dict[str, Any] = details


class InvalidSplitKey(WorkoutError):
    code = "invalid_split_key"
    message = "Unknown workout split"

    def __init__(self, split_key: Any):
        super().__init__(f"Unknown workout split: {split_key!r}", split_key=split_key)


class NoExercisesForSplit(WorkoutError):
    code = "no_exercises_for_split"
    message = "No exercises found for the selected workout split"

    def __init__(self, split_key: str):
        super().__init__(split_key=split_key)


class NoValidExercises(WorkoutError):
    code = "no_valid_exercises"
    message = "No valid exercises found"


class InvalidSetValues(WorkoutError):
    code = "invalid_set_values"
    message = "Actual weight must be >= 0 and actual reps must be a positive integer"


class WorkoutNotFound(WorkoutError):
    code = "workout_not_found"
    status = NOT_FOUND
    message = "Workout day not found"

    def __init__(self, workout_day_id: Optional[str] = None):
        super().__init__(workout_day_id=workout_day_id)


class NotOwned(WorkoutNotFound):
    # Same code and message as WorkoutNotFound so other users' data stays invisible
    pass


class SetRecordNotFound(WorkoutError):
    code = "set_record_not_found"
    status = NOT_FOUND
    message = "Set record not found"

    def __init__(self, set_record_id: Optional[str] = None):
        super().__init__(set_record_id=set_record_id)


class ExerciseNotFound(WorkoutError):
    code = "exercise_not_found"
    status = NOT_FOUND
    message = "Exercise not found"

    def __init__(self, exercise_id: Optional[str] = None):
        super().__init__(exercise_id=exercise_id)


class WorkoutDayExists(WorkoutError):
    code = "workout_day_exists"
    status = CONFLICT
    message = "Workout day already exists for this date"
