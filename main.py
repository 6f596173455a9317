"""
Daily Split Tracker - workout session API
FastAPI application exposing the workout session engine and stats
"""

import datetime
import logging
from functools import lru_cache
from typing import Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from supabase import AuthApiError, Client

from models.responses import (
    CreateWorkoutDayRequest,
    CustomWorkoutRequest,
    ErrorDetail,
    ErrorResponse,
    ExerciseListing,
    LogSetRequest,
    Message,
    RecordSetRequest,
    SplitSummary,
    StartWorkoutRequest,
    SuccessResponse,
)
from services.exercise_catalog import DEFAULT_EXERCISES, ExerciseCatalog
from services.splits import list_splits
from services.stats import StatsService
from services.workout_session import WorkoutSessionService
from tracker.config import configure_logging, get_settings
from tracker.errors import CONFLICT, NOT_FOUND, VALIDATION, WorkoutError
from tracker.memory_store import InMemoryStore
from tracker.schema import (
    Exercise,
    ExerciseProgress,
    MuscleGroupVolume,
    SetRecordDetail,
    WorkoutDay,
    WorkoutDayDetail,
    WorkoutStats,
)
from tracker.store import StoreError, WorkoutStore
from tracker.supabase_client import SupabaseStore, create_supabase_client, resolve_user_id

configure_logging()
logger = logging.getLogger("tracker.api")

API_PREFIX = "/api/v1"

STATUS_CODES = {NOT_FOUND: 404, VALIDATION: 400, CONFLICT: 409}
HTTP_ERROR_CODES = {401: "unauthorized", 404: "not_found", 405: "method_not_allowed"}

# Initialize FastAPI app
app = FastAPI(
    title="Daily Split Tracker",
    description="Daily workout sessions, set logging, streaks and progress",
    version="1.0.0",
)


# ---------- dependencies ----------
@lru_cache
def supabase_client() -> Client:
    return create_supabase_client(get_settings())


@lru_cache
def build_store() -> WorkoutStore:
    settings = get_settings()
    if settings.store_backend == "memory":
        logger.info("Using in-memory store seeded with %d exercises", len(DEFAULT_EXERCISES))
        return InMemoryStore(DEFAULT_EXERCISES)
    return SupabaseStore(supabase_client())


def get_store() -> WorkoutStore:
    return build_store()


def get_clock() -> Callable[[], datetime.date]:
    return datetime.date.today


def get_catalog(store: WorkoutStore = Depends(get_store)) -> ExerciseCatalog:
    return ExerciseCatalog(store)


def get_sessions(
    store: WorkoutStore = Depends(get_store),
    catalog: ExerciseCatalog = Depends(get_catalog),
    today: Callable[[], datetime.date] = Depends(get_clock),
) -> WorkoutSessionService:
    return WorkoutSessionService(store, catalog, today)


def get_stats(
    store: WorkoutStore = Depends(get_store),
    catalog: ExerciseCatalog = Depends(get_catalog),
    today: Callable[[], datetime.date] = Depends(get_clock),
) -> StatsService:
    return StatsService(store, catalog, today)


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Resolve the bearer token to a user id"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    # Local development without Supabase: the token is the user id
    if get_settings().store_backend == "memory":
        return token

    try:
        user_id = resolve_user_id(supabase_client(), token)
    except AuthApiError as e:
        # malformed or expired tokens; connectivity errors propagate as 500s
        logger.info("Rejected access token: %s", e)
        user_id = None
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user_id


def ok(data):
    return {"success": True, "data": data}


def error_response(status_code: int, message: str, code: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(message=message, code=code, details=details))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


# ---------- error handlers ----------
@app.exception_handler(WorkoutError)
async def workout_error_handler(request: Request, exc: WorkoutError):
    return error_response(
        STATUS_CODES.get(exc.status, 400), exc.message, exc.code, exc.details or None
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error", "internal_error")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Invalid input data", "invalid_input", exc.errors())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code, str(exc.detail), HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    )


# ---------- routes ----------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get(f"{API_PREFIX}/workouts/splits", response_model=SuccessResponse[List[SplitSummary]])
def splits():
    return ok(
        [
            SplitSummary(
                key=split.key.value,
                name=split.name,
                muscle_groups=split.muscle_groups,
                caps=split.caps,
            )
            for split in list_splits()
        ]
    )


@app.post(
    f"{API_PREFIX}/workouts/start",
    status_code=201,
    response_model=SuccessResponse[WorkoutDayDetail],
)
def start_workout(
    body: StartWorkoutRequest,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    """Start today's workout from a split (returns today's workout if one exists)"""
    return ok(sessions.start_workout(user_id, body.split_key))


@app.post(
    f"{API_PREFIX}/workouts/custom",
    status_code=201,
    response_model=SuccessResponse[WorkoutDayDetail],
)
def create_custom_workout(
    body: CustomWorkoutRequest,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    return ok(sessions.create_custom_workout(user_id, body.exercise_ids, body.custom_sets))


@app.post(
    f"{API_PREFIX}/workouts/rest-day",
    status_code=201,
    response_model=SuccessResponse[WorkoutDayDetail],
)
def create_rest_day(
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    """Mark today as a rest day; replaces a workout already started today"""
    return ok(sessions.create_rest_day(user_id))


@app.post(
    f"{API_PREFIX}/workouts/workout-day",
    status_code=201,
    response_model=SuccessResponse[WorkoutDay],
)
def create_workout_day(
    body: CreateWorkoutDayRequest,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    return ok(sessions.create_workout_day(user_id, body.date, body.completed))


@app.get(f"{API_PREFIX}/workouts/today", response_model=SuccessResponse[WorkoutDayDetail])
def today_workout(
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    workout = sessions.get_today_workout(user_id)
    if workout is None:
        raise HTTPException(status_code=404, detail="No workout found for today")
    return ok(workout)


@app.get(
    f"{API_PREFIX}/workouts/history", response_model=SuccessResponse[List[WorkoutDayDetail]]
)
def workout_history(
    start_date: Optional[datetime.date] = Query(None, alias="startDate"),
    end_date: Optional[datetime.date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats),
):
    return ok(stats.get_workout_history(user_id, start_date, end_date))


@app.get(f"{API_PREFIX}/workouts/stats", response_model=SuccessResponse[WorkoutStats])
def workout_stats(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats),
):
    return ok(stats.get_workout_stats(user_id))


@app.patch(
    f"{API_PREFIX}/workouts/{{workout_day_id}}/complete",
    response_model=SuccessResponse[WorkoutDayDetail],
)
def complete_workout(
    workout_day_id: str,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    return ok(sessions.complete_workout(user_id, workout_day_id))


@app.patch(
    f"{API_PREFIX}/workouts/{{workout_day_id}}/uncomplete",
    response_model=SuccessResponse[WorkoutDayDetail],
)
def uncomplete_workout(
    workout_day_id: str,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    return ok(sessions.uncomplete_workout(user_id, workout_day_id))


@app.delete(f"{API_PREFIX}/workouts/{{workout_day_id}}", response_model=SuccessResponse[Message])
def delete_workout(
    workout_day_id: str,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    sessions.delete_workout(user_id, workout_day_id)
    return ok(Message(message="Workout deleted successfully"))


@app.get(f"{API_PREFIX}/set-records", response_model=SuccessResponse[List[SetRecordDetail]])
def completed_sets(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats),
):
    return ok(stats.list_completed_sets(user_id))


@app.post(
    f"{API_PREFIX}/set-records",
    status_code=201,
    response_model=SuccessResponse[SetRecordDetail],
)
def record_set(
    body: RecordSetRequest,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    """Create or replace a set by (workout day, exercise, set index)"""
    return ok(sessions.record_set(user_id, **body.model_dump()))


@app.patch(
    f"{API_PREFIX}/set-records/{{set_record_id}}",
    response_model=SuccessResponse[SetRecordDetail],
)
def log_set(
    set_record_id: str,
    body: LogSetRequest,
    user_id: str = Depends(get_current_user_id),
    sessions: WorkoutSessionService = Depends(get_sessions),
):
    """Log a set's actual weight and reps; completes the workout when it was the last set"""
    return ok(sessions.log_set(user_id, set_record_id, body.actual_weight, body.actual_reps))


@app.get(
    f"{API_PREFIX}/progress/exercises", response_model=SuccessResponse[List[ExerciseProgress]]
)
def exercise_progress(
    muscle_group: Optional[str] = Query(None, alias="muscleGroup"),
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats),
):
    return ok(stats.get_exercise_progress(user_id, muscle_group))


@app.get(
    f"{API_PREFIX}/progress/volume", response_model=SuccessResponse[List[MuscleGroupVolume]]
)
def muscle_group_volume(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats),
):
    return ok(stats.get_volume_by_muscle_group(user_id))


@app.get(f"{API_PREFIX}/exercises", response_model=SuccessResponse[ExerciseListing])
def list_exercises(
    muscle_group: Optional[str] = Query(None, alias="muscleGroup"),
    search: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    catalog: ExerciseCatalog = Depends(get_catalog),
):
    exercises = catalog.search(muscle_group=muscle_group, query=search)
    return ok(
        ExerciseListing(
            exercises=exercises,
            exercises_by_muscle_group=catalog.grouped(exercises),
            muscle_groups=catalog.muscle_group_counts(),
            total=len(exercises),
        )
    )


@app.get(f"{API_PREFIX}/exercises/{{exercise_id}}", response_model=SuccessResponse[Exercise])
def get_exercise(
    exercise_id: str,
    user_id: str = Depends(get_current_user_id),
    catalog: ExerciseCatalog = Depends(get_catalog),
):
    return ok(catalog.require(exercise_id))


# Development server
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().port, reload=True)
