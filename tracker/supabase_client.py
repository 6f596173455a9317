"""
Supabase-backed WorkoutStore.

Supabase table setup (SQL):

create table exercises (
  id text primary key,
  name text not null unique,
  muscle_group text not null,
  default_sets int not null default 3,
  default_reps int not null default 10
);

create table workout_days (
  id uuid primary key,
  user_id uuid not null references auth.users (id) on delete cascade,
  date date not null,
  completed boolean not null default false,
  is_rest_day boolean not null default false,
  unique (user_id, date),
  check (not is_rest_day or completed)
);

create table set_records (
  id uuid primary key,
  workout_day_id uuid not null references workout_days (id) on delete cascade,
  exercise_id text not null references exercises (id) on delete restrict,
  set_index int not null check (set_index >= 1),
  planned_weight numeric,
  planned_reps int,
  actual_weight numeric check (actual_weight >= 0),
  actual_reps int check (actual_reps > 0),
  seconds_rest int,
  unique (workout_day_id, exercise_id, set_index)
);
"""

import datetime
import logging
from typing import Iterable, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from .config import Settings
from .schema import Exercise, SetRecord, WorkoutDay, WorkoutStatus
from .store import DuplicateRecord, StoreError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def create_supabase_client(settings: Settings) -> Client:
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables must be set"
        )
    return create_client(settings.supabase_url, settings.supabase_key)


def resolve_user_id(sb: Client, token: str) -> Optional[str]:
    """Map a Supabase access token (JWT) to the stable auth user id"""
    response = sb.auth.get_user(token)
    if response is None or response.user is None:
        return None
    return str(response.user.id)


def _run(query):
    try:
        return query.execute()
    except APIError as e:
        if e.code == UNIQUE_VIOLATION:
            raise DuplicateRecord(e.message) from e
        raise StoreError(e.message or str(e)) from e


class SupabaseStore:
    def __init__(self, sb: Client):
        self.sb = sb

    # ---------- exercises ----------
    def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        rows = _run(self.sb.table("exercises").select("*").eq("id", exercise_id).limit(1)).data
        return Exercise.model_validate(rows[0]) if rows else None

    def find_exercises(
        self,
        *,
        ids: Optional[Iterable[str]] = None,
        muscle_group: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Exercise]:
        query = self.sb.table("exercises").select("*")
        if ids is not None:
            ids = list(ids)
            if not ids:
                return []
            query = query.in_("id", ids)
        if muscle_group:
            query = query.eq("muscle_group", muscle_group)
        if search:
            query = query.ilike("name", f"%{search}%")
        query = query.order("name")
        if limit is not None:
            query = query.limit(limit)
        return [Exercise.model_validate(row) for row in _run(query).data]

    def upsert_exercises(self, exercises: Iterable[Exercise]) -> List[Exercise]:
        rows = [exercise.model_dump() for exercise in exercises]
        if not rows:
            return []
        data = _run(self.sb.table("exercises").upsert(rows, on_conflict="name")).data
        return [Exercise.model_validate(row) for row in data]

    # ---------- workout days ----------
    def get_workout_day(self, workout_day_id: str) -> Optional[WorkoutDay]:
        rows = _run(
            self.sb.table("workout_days").select("*").eq("id", workout_day_id).limit(1)
        ).data
        return WorkoutDay.from_row(rows[0]) if rows else None

    def find_workout_day(self, user_id: str, day: datetime.date) -> Optional[WorkoutDay]:
        rows = _run(
            self.sb.table("workout_days")
            .select("*")
            .eq("user_id", user_id)
            .eq("date", day.isoformat())
            .limit(1)
        ).data
        return WorkoutDay.from_row(rows[0]) if rows else None

    def list_workout_days(
        self,
        user_id: str,
        *,
        start: Optional[datetime.date] = None,
        end: Optional[datetime.date] = None,
        limit: Optional[int] = None,
    ) -> List[WorkoutDay]:
        query = self.sb.table("workout_days").select("*").eq("user_id", user_id)
        if start is not None:
            query = query.gte("date", start.isoformat())
        if end is not None:
            query = query.lte("date", end.isoformat())
        query = query.order("date", desc=True)
        if limit is not None:
            query = query.limit(limit)
        return [WorkoutDay.from_row(row) for row in _run(query).data]

    def create_workout_day(self, workout_day: WorkoutDay) -> WorkoutDay:
        data = _run(self.sb.table("workout_days").insert(workout_day.to_row())).data
        return WorkoutDay.from_row(data[0])

    def update_workout_day(self, workout_day_id: str, status: WorkoutStatus) -> WorkoutDay:
        row = {
            "completed": status is not WorkoutStatus.ACTIVE,
            "is_rest_day": status is WorkoutStatus.REST_DAY,
        }
        data = _run(self.sb.table("workout_days").update(row).eq("id", workout_day_id)).data
        if not data:
            raise StoreError(f"workout_days.id {workout_day_id} does not exist")
        return WorkoutDay.from_row(data[0])

    def delete_workout_day(self, workout_day_id: str) -> None:
        # the FK cascades too; deleting children first keeps this correct without it
        _run(self.sb.table("set_records").delete().eq("workout_day_id", workout_day_id))
        _run(self.sb.table("workout_days").delete().eq("id", workout_day_id))

    def count_workout_days(self, user_id: str, *, completed: Optional[bool] = None) -> int:
        query = self.sb.table("workout_days").select("id", count="exact").eq("user_id", user_id)
        if completed is not None:
            query = query.eq("completed", completed)
        return _run(query).count or 0

    # ---------- set records ----------
    def get_set_record(self, set_record_id: str) -> Optional[SetRecord]:
        rows = _run(
            self.sb.table("set_records").select("*").eq("id", set_record_id).limit(1)
        ).data
        return SetRecord.model_validate(rows[0]) if rows else None

    def list_set_records(self, workout_day_ids: Iterable[str]) -> List[SetRecord]:
        ids = list(workout_day_ids)
        if not ids:
            return []
        data = _run(self.sb.table("set_records").select("*").in_("workout_day_id", ids)).data
        return [SetRecord.model_validate(row) for row in data]

    def create_set_records(self, records: Iterable[SetRecord]) -> List[SetRecord]:
        rows = [record.model_dump() for record in records]
        if not rows:
            return []
        data = _run(self.sb.table("set_records").insert(rows)).data
        return [SetRecord.model_validate(row) for row in data]

    def upsert_set_record(self, record: SetRecord) -> SetRecord:
        values = record.model_dump(exclude={"id", "workout_day_id", "exercise_id", "set_index"})
        existing = self._find_by_key(record)
        if existing is not None:
            return self.update_set_record(existing.id, **values)
        try:
            return self.create_set_records([record])[0]
        except DuplicateRecord:
            # lost an insert race on the natural key; apply as an update instead
            logger.warning("Set record %s inserted concurrently, updating", record.key)
            existing = self._find_by_key(record)
            if existing is None:
                raise
            return self.update_set_record(existing.id, **values)

    def update_set_record(self, set_record_id: str, **values) -> SetRecord:
        data = _run(self.sb.table("set_records").update(values).eq("id", set_record_id)).data
        if not data:
            raise StoreError(f"set_records.id {set_record_id} does not exist")
        return SetRecord.model_validate(data[0])

    def count_completed_sets(self, user_id: str) -> int:
        res = _run(
            self.sb.table("set_records")
            .select("id, workout_days!inner(user_id)", count="exact")
            .eq("workout_days.user_id", user_id)
            .not_.is_("actual_weight", "null")
            .not_.is_("actual_reps", "null")
        )
        return res.count or 0

    def _find_by_key(self, record: SetRecord) -> Optional[SetRecord]:
        rows = _run(
            self.sb.table("set_records")
            .select("*")
            .eq("workout_day_id", record.workout_day_id)
            .eq("exercise_id", record.exercise_id)
            .eq("set_index", record.set_index)
            .limit(1)
        ).data
        return SetRecord.model_validate(rows[0]) if rows else None
