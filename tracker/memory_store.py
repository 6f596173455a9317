"""
In-process implementation of WorkoutStore.

Backs TRACKER_STORE=memory and the test suite. Enforces the same uniqueness
constraints as the Postgres schema in supabase_client. Reads and writes share
one lock, since FastAPI runs sync routes on a threadpool.
"""

import datetime
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from .schema import Exercise, SetRecord, WorkoutDay, WorkoutStatus
from .store import DuplicateRecord, StoreError


class InMemoryStore:
    def __init__(self, exercises: Optional[Iterable[Exercise]] = None):
        self._lock = threading.RLock()
        self.exercises: Dict[str, Exercise] = {}
        self.workout_days: Dict[str, WorkoutDay] = {}
        self.set_records: Dict[str, SetRecord] = {}
        if exercises:
            self.upsert_exercises(exercises)

    # ---------- exercises ----------
    def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        with self._lock:
            exercise = self.exercises.get(exercise_id)
            return exercise.model_copy() if exercise else None

    def find_exercises(
        self,
        *,
        ids: Optional[Iterable[str]] = None,
        muscle_group: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Exercise]:
        wanted = set(ids) if ids is not None else None
        needle = search.lower() if search else None
        with self._lock:
            exercises = sorted(self.exercises.values(), key=lambda e: e.name)
        matches = [
            exercise.model_copy()
            for exercise in exercises
            if (wanted is None or exercise.id in wanted)
            and (muscle_group is None or exercise.muscle_group == muscle_group)
            and (needle is None or needle in exercise.name.lower())
        ]
        return matches[:limit] if limit is not None else matches

    def upsert_exercises(self, exercises: Iterable[Exercise]) -> List[Exercise]:
        saved = []
        with self._lock:
            for exercise in exercises:
                # name is unique; re-seeding a name keeps its original id
                current = next(
                    (e for e in self.exercises.values() if e.name == exercise.name), None
                )
                if current is not None and current.id != exercise.id:
                    exercise = exercise.model_copy(update={"id": current.id})
                self.exercises[exercise.id] = exercise.model_copy()
                saved.append(exercise.model_copy())
        return saved

    # ---------- workout days ----------
    def get_workout_day(self, workout_day_id: str) -> Optional[WorkoutDay]:
        with self._lock:
            day = self.workout_days.get(workout_day_id)
            return day.model_copy() if day else None

    def find_workout_day(self, user_id: str, day: datetime.date) -> Optional[WorkoutDay]:
        with self._lock:
            for workout_day in self.workout_days.values():
                if workout_day.user_id == user_id and workout_day.date == day:
                    return workout_day.model_copy()
        return None

    def list_workout_days(
        self,
        user_id: str,
        *,
        start: Optional[datetime.date] = None,
        end: Optional[datetime.date] = None,
        limit: Optional[int] = None,
    ) -> List[WorkoutDay]:
        with self._lock:
            snapshot = list(self.workout_days.values())
        days = [
            day.model_copy()
            for day in snapshot
            if day.user_id == user_id
            and (start is None or day.date >= start)
            and (end is None or day.date <= end)
        ]
        days.sort(key=lambda d: d.date, reverse=True)
        return days[:limit] if limit is not None else days

    def create_workout_day(self, workout_day: WorkoutDay) -> WorkoutDay:
        with self._lock:
            if workout_day.id in self.workout_days:
                raise DuplicateRecord(f"workout_days.id {workout_day.id} already exists")
            if self.find_workout_day(workout_day.user_id, workout_day.date):
                raise DuplicateRecord(
                    f"workout day for user {workout_day.user_id} on {workout_day.date} already exists"
                )
            self.workout_days[workout_day.id] = workout_day.model_copy()
        return workout_day.model_copy()

    def update_workout_day(self, workout_day_id: str, status: WorkoutStatus) -> WorkoutDay:
        with self._lock:
            day = self._require(self.workout_days, workout_day_id, "workout_days")
            updated = day.model_copy(update={"status": status})
            self.workout_days[workout_day_id] = updated
        return updated.model_copy()

    def delete_workout_day(self, workout_day_id: str) -> None:
        with self._lock:
            self._require(self.workout_days, workout_day_id, "workout_days")
            for record_id in [
                r.id for r in self.set_records.values() if r.workout_day_id == workout_day_id
            ]:
                del self.set_records[record_id]
            del self.workout_days[workout_day_id]

    def count_workout_days(self, user_id: str, *, completed: Optional[bool] = None) -> int:
        with self._lock:
            snapshot = list(self.workout_days.values())
        return sum(
            1
            for day in snapshot
            if day.user_id == user_id and (completed is None or day.completed == completed)
        )

    # ---------- set records ----------
    def get_set_record(self, set_record_id: str) -> Optional[SetRecord]:
        with self._lock:
            record = self.set_records.get(set_record_id)
            return record.model_copy() if record else None

    def list_set_records(self, workout_day_ids: Iterable[str]) -> List[SetRecord]:
        wanted = set(workout_day_ids)
        with self._lock:
            return [
                r.model_copy() for r in self.set_records.values() if r.workout_day_id in wanted
            ]

    def create_set_records(self, records: Iterable[SetRecord]) -> List[SetRecord]:
        records = list(records)
        with self._lock:
            # all-or-nothing, like a single multi-row INSERT
            taken = self._keys()
            for record in records:
                if record.workout_day_id not in self.workout_days:
                    raise StoreError(f"workout_days.id {record.workout_day_id} does not exist")
                if record.id in self.set_records or record.key in taken:
                    raise DuplicateRecord(f"set record {record.key} already exists")
                taken[record.key] = record.id
            for record in records:
                self.set_records[record.id] = record.model_copy()
        return [r.model_copy() for r in records]

    def upsert_set_record(self, record: SetRecord) -> SetRecord:
        with self._lock:
            existing_id = self._keys().get(record.key)
            if existing_id is None:
                return self.create_set_records([record])[0]
            values = record.model_dump(exclude={"id", "workout_day_id", "exercise_id", "set_index"})
            return self.update_set_record(existing_id, **values)

    def update_set_record(self, set_record_id: str, **values) -> SetRecord:
        with self._lock:
            record = self._require(self.set_records, set_record_id, "set_records")
            updated = record.model_copy(update=values)
            self.set_records[set_record_id] = updated
        return updated.model_copy()

    def count_completed_sets(self, user_id: str) -> int:
        with self._lock:
            owned = {d.id for d in self.workout_days.values() if d.user_id == user_id}
            return sum(
                1
                for r in self.set_records.values()
                if r.workout_day_id in owned and r.is_completed
            )

    # ---------- helpers ----------
    def _keys(self) -> Dict[Tuple[str, str, int], str]:
        return {record.key: record.id for record in self.set_records.values()}

    @staticmethod
    def _require(table: Dict, key: str, name: str):
        if key not in table:
            raise StoreError(f"{name}.id {key} does not exist")
        return table[key]
