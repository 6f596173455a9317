import datetime
import math
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

REST_DAY_SPLIT_NAME = "Rest Day"


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; percentages and 1RM round .5 up
    return int(math.floor(value + 0.5))


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Exercise(CamelModel):
    id: str
    name: str
    muscle_group: str
    default_sets: int = Field(3, ge=1)
    default_reps: int = Field(10, ge=1)


class WorkoutStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    REST_DAY = "rest_day"


class WorkoutDay(CamelModel):
    id: str
    user_id: str
    # calendar day, no time component
    date: datetime.date
    status: WorkoutStatus = WorkoutStatus.ACTIVE

    @computed_field
    @property
    def completed(self) -> bool:
        return self.status is not WorkoutStatus.ACTIVE

    @computed_field
    @property
    def is_rest_day(self) -> bool:
        return self.status is WorkoutStatus.REST_DAY

    @classmethod
    def from_row(cls, row: Dict) -> "WorkoutDay":
        """Build from the persisted (completed, is_rest_day) column pair"""
        if row.get("is_rest_day"):
            status = WorkoutStatus.REST_DAY
        elif row.get("completed"):
            status = WorkoutStatus.COMPLETED
        else:
            status = WorkoutStatus.ACTIVE
        return cls(id=row["id"], user_id=row["user_id"], date=row["date"], status=status)

    def to_row(self) -> Dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "completed": self.completed,
            "is_rest_day": self.is_rest_day,
        }


class SetRecord(CamelModel):
    id: str
    workout_day_id: str
    exercise_id: str
    # 1-based, unique within (workout_day_id, exercise_id)
    set_index: int = Field(..., ge=1)
    planned_weight: Optional[float] = 0
    planned_reps: Optional[int] = None
    actual_weight: Optional[float] = None
    actual_reps: Optional[int] = None
    seconds_rest: Optional[int] = None

    @property
    def key(self):
        return (self.workout_day_id, self.exercise_id, self.set_index)

    @property
    def is_completed(self) -> bool:
        return self.actual_weight is not None and self.actual_reps is not None


class SetRecordDetail(SetRecord):
    exercise: Exercise
    workout_date: Optional[datetime.date] = None


def completion_percentage(records: List[SetRecord]) -> int:
    if not records:
        return 0
    done = sum(1 for record in records if record.is_completed)
    return round_half_up(done * 100 / len(records))


def split_name(records: List[SetRecordDetail]) -> str:
    return " + ".join(sorted({record.exercise.muscle_group for record in records}))


class WorkoutDayDetail(CamelModel):
    workout_day: WorkoutDay
    set_records: List[SetRecordDetail] = Field(default_factory=list)
    completion_percentage: int = 0
    split_name: str = ""

    @classmethod
    def build(cls, day: WorkoutDay, records: List[SetRecordDetail]) -> "WorkoutDayDetail":
        records = sorted(records, key=lambda r: (r.exercise.name, r.set_index))
        if day.is_rest_day:
            return cls(
                workout_day=day,
                set_records=records,
                completion_percentage=100,
                split_name=REST_DAY_SPLIT_NAME,
            )
        return cls(
            workout_day=day,
            set_records=records,
            completion_percentage=completion_percentage(records),
            split_name=split_name(records),
        )


# ---------- aggregates ----------
class WorkoutStats(CamelModel):
    total_workouts: int
    total_sets_completed: int
    current_streak: int
    # currently mirrors total_workouts
    personal_records: int


class BestSet(CamelModel):
    weight: float
    reps: int
    one_rep_max: int


class ExerciseProgress(CamelModel):
    exercise_id: str
    exercise_name: str
    muscle_group: str
    best_set: BestSet
    total_volume: float
    avg_volume: float
    total_sets: int
    last_performed: datetime.date
    # percentage change in 1RM from the first to the latest completed set
    progression: float = 0.0


class MuscleGroupVolume(CamelModel):
    muscle_group: str
    volume: float
    sets: int


class MuscleGroupCount(CamelModel):
    name: str
    count: int
