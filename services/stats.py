"""
Stats Service - history, streaks, one-rep-max and volume aggregates
"""

import datetime
from collections import defaultdict
from itertools import dropwhile
from typing import Callable, Dict, Iterable, List, Optional

from tracker.schema import (
    BestSet,
    ExerciseProgress,
    MuscleGroupVolume,
    SetRecordDetail,
    WorkoutDay,
    WorkoutDayDetail,
    WorkoutStats,
    round_half_up,
)
from tracker.store import WorkoutStore

from .exercise_catalog import ExerciseCatalog

STREAK_LOOKBACK = 30


def one_rep_max(weight: float, reps: int) -> int:
    """Epley estimate: weight * (1 + reps / 30), rounded"""
    return round_half_up(weight * (1 + reps / 30.0))


def set_volume(weight: float, reps: int) -> float:
    return weight * reps


def current_streak(days: Iterable[WorkoutDay], today: datetime.date) -> int:
    """Consecutive completed days ending today, or ending at the latest
    completed day when nothing is tracked for today"""
    recent = sorted((d for d in days if d.date <= today), key=lambda d: d.date, reverse=True)
    if not recent:
        return 0
    if recent[0].date != today:
        recent = list(dropwhile(lambda d: not d.completed, recent))
        if not recent:
            return 0

    anchor = recent[0].date
    streak = 0
    for day in recent:
        if (anchor - day.date).days == streak and day.completed:
            streak += 1
        else:
            break
    return streak


def progression(records: List[SetRecordDetail]) -> float:
    """Percent change in 1RM between the chronologically first and last sets"""
    if len(records) < 2:
        return 0.0
    ordered = sorted(records, key=lambda r: r.workout_date or datetime.date.min)
    first = one_rep_max(ordered[0].actual_weight, ordered[0].actual_reps)
    last = one_rep_max(ordered[-1].actual_weight, ordered[-1].actual_reps)
    if first == 0:
        return 0.0
    return (last - first) / first * 100


class StatsService:
    """Derived, read-only views over a user's workout days and set records"""

    def __init__(
        self,
        store: WorkoutStore,
        catalog: Optional[ExerciseCatalog] = None,
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        self.store = store
        self.catalog = catalog or ExerciseCatalog(store)
        self.today = today or datetime.date.today

    def get_workout_history(
        self,
        user_id: str,
        start_date: Optional[datetime.date] = None,
        end_date: Optional[datetime.date] = None,
    ) -> List[WorkoutDayDetail]:
        """Workout days newest first; the range only applies when both bounds are given"""
        if start_date is not None and end_date is not None:
            days = self.store.list_workout_days(user_id, start=start_date, end=end_date)
        else:
            days = self.store.list_workout_days(user_id)

        records = self.catalog.attach(
            self.store.list_set_records([d.id for d in days]),
            {d.id: d.date for d in days},
        )
        by_day: Dict[str, List[SetRecordDetail]] = defaultdict(list)
        for record in records:
            by_day[record.workout_day_id].append(record)
        return [WorkoutDayDetail.build(day, by_day[day.id]) for day in days]

    def get_workout_stats(self, user_id: str) -> WorkoutStats:
        total_workouts = self.store.count_workout_days(user_id, completed=True)
        today = self.today()
        recent = self.store.list_workout_days(user_id, end=today, limit=STREAK_LOOKBACK)
        return WorkoutStats(
            total_workouts=total_workouts,
            total_sets_completed=self.store.count_completed_sets(user_id),
            current_streak=current_streak(recent, today),
            # TODO: count per-exercise best-set improvements once PR tracking is defined
            personal_records=total_workouts,
        )

    def list_completed_sets(self, user_id: str) -> List[SetRecordDetail]:
        """Every logged set, newest day first, then exercise name and set order"""
        days = self.store.list_workout_days(user_id)
        records = self.catalog.attach(
            (r for r in self.store.list_set_records([d.id for d in days]) if r.is_completed),
            {d.id: d.date for d in days},
        )
        records.sort(key=lambda r: (r.exercise.name, r.set_index))
        records.sort(key=lambda r: r.workout_date, reverse=True)
        return records

    def get_exercise_progress(
        self, user_id: str, muscle_group: Optional[str] = None
    ) -> List[ExerciseProgress]:
        """Per-exercise best set, volume and progression, strongest first"""
        by_exercise: Dict[str, List[SetRecordDetail]] = defaultdict(list)
        for record in self.list_completed_sets(user_id):
            if muscle_group is None or record.exercise.muscle_group == muscle_group:
                by_exercise[record.exercise_id].append(record)

        results = []
        for records in by_exercise.values():
            exercise = records[0].exercise
            best = max(records, key=lambda r: one_rep_max(r.actual_weight, r.actual_reps))
            total_volume = sum(set_volume(r.actual_weight, r.actual_reps) for r in records)
            results.append(
                ExerciseProgress(
                    exercise_id=exercise.id,
                    exercise_name=exercise.name,
                    muscle_group=exercise.muscle_group,
                    best_set=BestSet(
                        weight=best.actual_weight,
                        reps=best.actual_reps,
                        one_rep_max=one_rep_max(best.actual_weight, best.actual_reps),
                    ),
                    total_volume=total_volume,
                    avg_volume=total_volume / len(records),
                    total_sets=len(records),
                    last_performed=max(r.workout_date for r in records),
                    progression=progression(records),
                )
            )
        results.sort(key=lambda p: p.best_set.one_rep_max, reverse=True)
        return results

    def get_volume_by_muscle_group(self, user_id: str) -> List[MuscleGroupVolume]:
        totals: Dict[str, List[float]] = defaultdict(lambda: [0.0, 0])
        for record in self.list_completed_sets(user_id):
            entry = totals[record.exercise.muscle_group]
            entry[0] += set_volume(record.actual_weight, record.actual_reps)
            entry[1] += 1
        return [
            MuscleGroupVolume(muscle_group=group, volume=volume, sets=sets)
            for group, (volume, sets) in sorted(totals.items())
        ]
