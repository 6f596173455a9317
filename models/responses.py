import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

from tracker.schema import CamelModel, Exercise, MuscleGroupCount

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    success: Literal[True] = True
    data: T


class ErrorDetail(BaseModel):
    message: str
    code: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: ErrorDetail


class Message(BaseModel):
    message: str


class SplitSummary(CamelModel):
    key: str
    name: str
    muscle_groups: List[str]
    caps: Dict[str, int]


class ExerciseListing(CamelModel):
    exercises: List[Exercise]
    exercises_by_muscle_group: Dict[str, List[Exercise]]
    muscle_groups: List[MuscleGroupCount]
    total: int


# ---------- request bodies ----------
class StartWorkoutRequest(CamelModel):
    split_key: str


class CustomWorkoutRequest(CamelModel):
    exercise_ids: List[str] = Field(..., min_length=1)
    # exercise id -> number of sets, clamped to 1..10
    custom_sets: Optional[Dict[str, int]] = None


class CreateWorkoutDayRequest(CamelModel):
    date: datetime.date
    completed: bool = False


class LogSetRequest(CamelModel):
    actual_weight: float
    actual_reps: int


class RecordSetRequest(CamelModel):
    workout_day_id: str
    exercise_id: str
    set_index: int = Field(..., ge=1)
    planned_weight: Optional[float] = None
    planned_reps: Optional[int] = Field(None, gt=0)
    actual_weight: Optional[float] = None
    actual_reps: Optional[int] = None
    seconds_rest: Optional[int] = Field(None, gt=0)
