"""
Exercise Catalog - read-mostly lookup of exercise templates
"""

import datetime
import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional

from tracker.errors import ExerciseNotFound
from tracker.schema import Exercise, MuscleGroupCount, SetRecord, SetRecordDetail
from tracker.store import WorkoutStore

logger = logging.getLogger(__name__)


def exercise_id_for(name: str) -> str:
    """Stable slug id, e.g. "Close-Grip Bench Press" -> "close-grip-bench-press" """
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _exercise(name: str, muscle_group: str, sets: int, reps: int) -> Exercise:
    return Exercise(
        id=exercise_id_for(name),
        name=name,
        muscle_group=muscle_group,
        default_sets=sets,
        default_reps=reps,
    )


# Seed data for a fresh database (scripts/dev.py seed) and the in-memory store
DEFAULT_EXERCISES: List[Exercise] = [
    # Chest
    _exercise("Barbell Bench Press", "Chest", 4, 8),
    _exercise("Incline Dumbbell Press", "Chest", 3, 10),
    _exercise("Dumbbell Flyes", "Chest", 3, 12),
    _exercise("Cable Crossovers", "Chest", 3, 15),
    # Triceps
    _exercise("Close-Grip Bench Press", "Triceps", 3, 10),
    _exercise("Overhead Tricep Extension", "Triceps", 3, 12),
    _exercise("Tricep Pushdowns", "Triceps", 3, 15),
    # Back
    _exercise("Pull-ups", "Back", 4, 8),
    _exercise("Deadlifts", "Back", 4, 6),
    _exercise("Lat Pulldowns", "Back", 3, 10),
    _exercise("Cable Rows", "Back", 3, 10),
    # Biceps
    _exercise("Barbell Curls", "Biceps", 3, 10),
    _exercise("Hammer Curls", "Biceps", 3, 12),
    _exercise("Preacher Curls", "Biceps", 3, 10),
    # Legs
    _exercise("Back Squats", "Legs", 4, 8),
    _exercise("Romanian Deadlifts", "Legs", 3, 10),
    _exercise("Leg Press", "Legs", 3, 12),
    _exercise("Walking Lunges", "Legs", 3, 12),
    # Shoulders
    _exercise("Overhead Press", "Shoulders", 4, 8),
    _exercise("Lateral Raises", "Shoulders", 3, 15),
    _exercise("Face Pulls", "Shoulders", 3, 15),
]


class ExerciseCatalog:
    """Exercise lookups by id, muscle group and name"""

    def __init__(self, store: WorkoutStore):
        self.store = store

    def get(self, exercise_id: str) -> Optional[Exercise]:
        return self.store.get_exercise(exercise_id)

    def require(self, exercise_id: str) -> Exercise:
        exercise = self.get(exercise_id)
        if exercise is None:
            raise ExerciseNotFound(exercise_id)
        return exercise

    def by_ids(self, exercise_ids: Iterable[str]) -> List[Exercise]:
        """Resolve ids, silently dropping unknown ones; ordered by name"""
        ids = list(dict.fromkeys(exercise_ids))
        if not ids:
            return []
        return self.store.find_exercises(ids=ids)

    def by_muscle_group(self, muscle_group: str, limit: Optional[int] = None) -> List[Exercise]:
        return self.store.find_exercises(muscle_group=muscle_group, limit=limit)

    def search(
        self, muscle_group: Optional[str] = None, query: Optional[str] = None
    ) -> List[Exercise]:
        exercises = self.store.find_exercises(muscle_group=muscle_group, search=query)
        return sorted(exercises, key=lambda e: (e.muscle_group, e.name))

    @staticmethod
    def grouped(exercises: Iterable[Exercise]) -> Dict[str, List[Exercise]]:
        groups: Dict[str, List[Exercise]] = {}
        for exercise in exercises:
            groups.setdefault(exercise.muscle_group, []).append(exercise)
        return groups

    def muscle_group_counts(self) -> List[MuscleGroupCount]:
        counts = Counter(e.muscle_group for e in self.store.find_exercises())
        return [MuscleGroupCount(name=name, count=counts[name]) for name in sorted(counts)]

    def attach(
        self,
        records: Iterable[SetRecord],
        workout_dates: Optional[Dict[str, datetime.date]] = None,
    ) -> List[SetRecordDetail]:
        """Join set records with their exercises (and optionally their day's date)"""
        records = list(records)
        exercises = {e.id: e for e in self.by_ids(r.exercise_id for r in records)}
        details = []
        for record in records:
            exercise = exercises.get(record.exercise_id)
            if exercise is None:
                logger.warning(
                    "Set record %s references unknown exercise %s", record.id, record.exercise_id
                )
                continue
            details.append(
                SetRecordDetail(
                    **record.model_dump(),
                    exercise=exercise,
                    workout_date=(workout_dates or {}).get(record.workout_day_id),
                )
            )
        return details
