"""
Persistence contract consumed by the workout services.

The store is a plain relational CRUD surface. Uniqueness of
(user_id, date) for workout days and of (workout_day_id, exercise_id,
set_index) for set records is the store's job: implementations raise
DuplicateRecord instead of writing a second row.
"""

import datetime
from typing import Iterable, List, Optional, Protocol

from .schema import Exercise, SetRecord, WorkoutDay, WorkoutStatus


class StoreError(Exception):
    """Persistence failure (connectivity, constraint, unexpected response)"""


class DuplicateRecord(StoreError):
    """A uniqueness constraint rejected the write"""


class WorkoutStore(Protocol):
    # ---------- exercises ----------
    def get_exercise(self, exercise_id: str) -> Optional[Exercise]: ...

    def find_exercises(
        self,
        *,
        ids: Optional[Iterable[str]] = None,
        muscle_group: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Exercise]:
        """Matching exercises ordered by name ascending"""
        ...

    def upsert_exercises(self, exercises: Iterable[Exercise]) -> List[Exercise]: ...

    # ---------- workout days ----------
    def get_workout_day(self, workout_day_id: str) -> Optional[WorkoutDay]: ...

    def find_workout_day(self, user_id: str, day: datetime.date) -> Optional[WorkoutDay]: ...

    def list_workout_days(
        self,
        user_id: str,
        *,
        start: Optional[datetime.date] = None,
        end: Optional[datetime.date] = None,
        limit: Optional[int] = None,
    ) -> List[WorkoutDay]:
        """Workout days ordered by date descending, bounds inclusive"""
        ...

    def create_workout_day(self, workout_day: WorkoutDay) -> WorkoutDay: ...

    def update_workout_day(self, workout_day_id: str, status: WorkoutStatus) -> WorkoutDay: ...

    def delete_workout_day(self, workout_day_id: str) -> None:
        """Remove the day and every set record that belongs to it"""
        ...

    def count_workout_days(self, user_id: str, *, completed: Optional[bool] = None) -> int: ...

    # ---------- set records ----------
    def get_set_record(self, set_record_id: str) -> Optional[SetRecord]: ...

    def list_set_records(self, workout_day_ids: Iterable[str]) -> List[SetRecord]: ...

    def create_set_records(self, records: Iterable[SetRecord]) -> List[SetRecord]: ...

    def upsert_set_record(self, record: SetRecord) -> SetRecord:
        """Insert, or update the row holding the same (day, exercise, set_index) key"""
        ...

    def update_set_record(self, set_record_id: str, **values) -> SetRecord: ...

    def count_completed_sets(self, user_id: str) -> int: ...
