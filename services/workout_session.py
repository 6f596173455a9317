"""
Workout Session Service - lifecycle of a user's daily WorkoutDay

States per (user, date): no workout -> active -> completed, or no workout ->
rest day. Creation is idempotent per day, completion is derived from the set
records after every write, and every mutation checks ownership first.
"""

import datetime
import logging
import math
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from tracker.errors import (
    InvalidSetValues,
    NoExercisesForSplit,
    NotOwned,
    NoValidExercises,
    SetRecordNotFound,
    WorkoutDayExists,
    WorkoutNotFound,
)
from tracker.schema import (
    Exercise,
    SetRecord,
    SetRecordDetail,
    WorkoutDay,
    WorkoutDayDetail,
    WorkoutStatus,
)
from tracker.store import DuplicateRecord, WorkoutStore

from .exercise_catalog import ExerciseCatalog
from .splits import get_split

logger = logging.getLogger(__name__)

MIN_CUSTOM_SETS = 1
MAX_CUSTOM_SETS = 10


def new_id() -> str:
    return str(uuid.uuid4())


def validate_set_values(actual_weight, actual_reps):
    """Weight may be 0 (bodyweight work); reps must be a positive integer"""
    if actual_weight is None or actual_reps is None:
        raise InvalidSetValues()
    if isinstance(actual_weight, bool) or isinstance(actual_reps, bool):
        raise InvalidSetValues()
    # NaN slips past the comparisons below
    if not math.isfinite(actual_weight) or not math.isfinite(actual_reps):
        raise InvalidSetValues()
    if actual_weight < 0 or actual_reps <= 0 or int(actual_reps) != actual_reps:
        raise InvalidSetValues()
    return float(actual_weight), int(actual_reps)


class WorkoutSessionService:
    """Creates, mutates and deletes WorkoutDays and their SetRecords"""

    def __init__(
        self,
        store: WorkoutStore,
        catalog: Optional[ExerciseCatalog] = None,
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        self.store = store
        self.catalog = catalog or ExerciseCatalog(store)
        self.today = today or datetime.date.today

    # ---------- reads ----------
    def get_today_workout(self, user_id: str) -> Optional[WorkoutDayDetail]:
        day = self.store.find_workout_day(user_id, self.today())
        return self.describe(day) if day else None

    def describe(self, day: WorkoutDay) -> WorkoutDayDetail:
        records = self.store.list_set_records([day.id])
        return WorkoutDayDetail.build(day, self.catalog.attach(records))

    # ---------- creation ----------
    def start_workout(self, user_id: str, split_key) -> WorkoutDayDetail:
        """Start today's workout from a split; returns today's existing workout unchanged"""
        split = get_split(split_key)

        existing = self.get_today_workout(user_id)
        if existing:
            logger.info(
                "User %s already has a workout on %s, ignoring start of %s",
                user_id,
                existing.workout_day.date,
                split.key.value,
            )
            return existing

        exercises: List[Exercise] = []
        for muscle_group, cap in split.caps.items():
            exercises.extend(self.catalog.by_muscle_group(muscle_group, limit=cap))

        if not exercises:
            raise NoExercisesForSplit(split.key.value)

        return self._create_workout(user_id, [(e, e.default_sets) for e in exercises])

    def create_custom_workout(
        self,
        user_id: str,
        exercise_ids: List[str],
        custom_sets: Optional[Dict[str, int]] = None,
    ) -> WorkoutDayDetail:
        """Start today's workout from hand-picked exercises"""
        existing = self.get_today_workout(user_id)
        if existing:
            logger.info("User %s already has a workout today, ignoring custom workout", user_id)
            return existing

        exercises = self.catalog.by_ids(exercise_ids)
        if not exercises:
            raise NoValidExercises(exercise_ids=list(exercise_ids))

        custom_sets = custom_sets or {}
        plan = [(e, self._set_count(e, custom_sets.get(e.id))) for e in exercises]
        return self._create_workout(user_id, plan)

    def create_rest_day(self, user_id: str) -> WorkoutDayDetail:
        """Mark today as a rest day, converting any workout already started today"""
        today = self.today()
        day = self.store.find_workout_day(user_id, today)
        if day is None:
            try:
                day = self.store.create_workout_day(
                    WorkoutDay(
                        id=new_id(), user_id=user_id, date=today, status=WorkoutStatus.REST_DAY
                    )
                )
                logger.info("Created rest day %s for user %s", day.id, user_id)
                return self.describe(day)
            except DuplicateRecord:
                day = self.store.find_workout_day(user_id, today)
                if day is None:
                    raise

        if day.status is WorkoutStatus.REST_DAY:
            return self.describe(day)

        logged = sum(1 for r in self.store.list_set_records([day.id]) if r.is_completed)
        if day.status is WorkoutStatus.ACTIVE and logged:
            logger.warning(
                "Rest day replaces active workout %s of user %s with %d logged sets",
                day.id,
                user_id,
                logged,
            )
        day = self.store.update_workout_day(day.id, WorkoutStatus.REST_DAY)
        return self.describe(day)

    def create_workout_day(
        self, user_id: str, day: datetime.date, completed: bool = False
    ) -> WorkoutDay:
        """Back-fill an empty workout day for an arbitrary date"""
        if self.store.find_workout_day(user_id, day):
            raise WorkoutDayExists(date=day.isoformat())
        status = WorkoutStatus.COMPLETED if completed else WorkoutStatus.ACTIVE
        try:
            return self.store.create_workout_day(
                WorkoutDay(id=new_id(), user_id=user_id, date=day, status=status)
            )
        except DuplicateRecord:
            raise WorkoutDayExists(date=day.isoformat()) from None

    # ---------- set logging ----------
    def log_set(
        self, user_id: str, set_record_id: str, actual_weight, actual_reps
    ) -> SetRecordDetail:
        """Write a set's actual values and re-derive the day's completion"""
        actual_weight, actual_reps = validate_set_values(actual_weight, actual_reps)

        record = self.store.get_set_record(set_record_id)
        if record is None:
            raise SetRecordNotFound(set_record_id)
        try:
            day = self._owned_day(user_id, record.workout_day_id)
        except WorkoutNotFound:
            raise SetRecordNotFound(set_record_id) from None

        record = self.store.update_set_record(
            set_record_id, actual_weight=actual_weight, actual_reps=actual_reps
        )
        self._refresh_completion(day)
        return self.catalog.attach([record], {day.id: day.date})[0]

    def record_set(
        self,
        user_id: str,
        workout_day_id: str,
        exercise_id: str,
        set_index: int,
        planned_weight: Optional[float] = None,
        planned_reps: Optional[int] = None,
        actual_weight: Optional[float] = None,
        actual_reps: Optional[int] = None,
        seconds_rest: Optional[int] = None,
    ) -> SetRecordDetail:
        """Create or replace the set at (workout day, exercise, set index)"""
        if set_index < 1:
            raise InvalidSetValues("Set index must be 1 or greater")
        if planned_weight is not None and not (
            math.isfinite(planned_weight) and planned_weight >= 0
        ):
            raise InvalidSetValues("Planned weight must be a finite number >= 0")
        # actual weight and reps are logged as a pair or not at all
        if actual_weight is not None or actual_reps is not None:
            actual_weight, actual_reps = validate_set_values(actual_weight, actual_reps)

        day = self._owned_day(user_id, workout_day_id)
        exercise = self.catalog.require(exercise_id)

        record = self.store.upsert_set_record(
            SetRecord(
                id=new_id(),
                workout_day_id=day.id,
                exercise_id=exercise.id,
                set_index=set_index,
                planned_weight=planned_weight,
                planned_reps=planned_reps,
                actual_weight=actual_weight,
                actual_reps=actual_reps,
                seconds_rest=seconds_rest,
            )
        )
        self._refresh_completion(day)
        return self.catalog.attach([record], {day.id: day.date})[0]

    # ---------- transitions ----------
    def complete_workout(self, user_id: str, workout_day_id: str) -> WorkoutDayDetail:
        day = self._owned_day(user_id, workout_day_id)
        if day.status is WorkoutStatus.ACTIVE:
            day = self.store.update_workout_day(day.id, WorkoutStatus.COMPLETED)
            logger.info("Workout %s of user %s marked complete", day.id, user_id)
        return self.describe(day)

    def uncomplete_workout(self, user_id: str, workout_day_id: str) -> WorkoutDayDetail:
        """Reopen a workout for logging; logged values stay in place"""
        day = self._owned_day(user_id, workout_day_id)
        if day.status is not WorkoutStatus.ACTIVE:
            day = self.store.update_workout_day(day.id, WorkoutStatus.ACTIVE)
            logger.info("Workout %s of user %s reopened", day.id, user_id)
        return self.describe(day)

    def delete_workout(self, user_id: str, workout_day_id: str) -> None:
        day = self._owned_day(user_id, workout_day_id)
        self.store.delete_workout_day(day.id)
        logger.info("Deleted workout %s (%s) of user %s", day.id, day.date, user_id)

    # ---------- helpers ----------
    def _owned_day(self, user_id: str, workout_day_id: str) -> WorkoutDay:
        day = self.store.get_workout_day(workout_day_id)
        if day is None:
            raise WorkoutNotFound(workout_day_id)
        if day.user_id != user_id:
            logger.warning("User %s denied access to workout %s", user_id, workout_day_id)
            raise NotOwned(workout_day_id)
        return day

    def _refresh_completion(self, day: WorkoutDay) -> WorkoutDay:
        # recount every set of the day, not just the one written
        if day.status is not WorkoutStatus.ACTIVE:
            return day
        records = self.store.list_set_records([day.id])
        if records and all(r.is_completed for r in records):
            day = self.store.update_workout_day(day.id, WorkoutStatus.COMPLETED)
            logger.info("All %d sets logged, workout %s completed", len(records), day.id)
        return day

    @staticmethod
    def _set_count(exercise: Exercise, requested: Optional[int]) -> int:
        if requested is None:
            return exercise.default_sets
        return max(MIN_CUSTOM_SETS, min(MAX_CUSTOM_SETS, int(requested)))

    def _create_workout(
        self, user_id: str, plan: List[Tuple[Exercise, int]]
    ) -> WorkoutDayDetail:
        today = self.today()
        try:
            day = self.store.create_workout_day(
                WorkoutDay(id=new_id(), user_id=user_id, date=today, status=WorkoutStatus.ACTIVE)
            )
        except DuplicateRecord:
            # a concurrent request created today's workout first
            logger.warning("Workout for user %s on %s created concurrently", user_id, today)
            day = self.store.find_workout_day(user_id, today)
            if day is None:
                raise
            return self.describe(day)

        records = self.store.create_set_records(
            SetRecord(
                id=new_id(),
                workout_day_id=day.id,
                exercise_id=exercise.id,
                set_index=set_index,
                planned_weight=0,
                planned_reps=exercise.default_reps,
            )
            for exercise, set_count in plan
            for set_index in range(1, set_count + 1)
        )
        logger.info(
            "Started workout %s for user %s: %d exercises, %d sets",
            day.id,
            user_id,
            len(plan),
            len(records),
        )
        return WorkoutDayDetail.build(day, self.catalog.attach(records))
