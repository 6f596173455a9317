import datetime

import pytest
from fastapi.testclient import TestClient

from main import app, get_clock, get_current_user_id, get_store
from services.stats import StatsService
from services.workout_session import WorkoutSessionService
from tracker.memory_store import InMemoryStore
from tracker.schema import Exercise

TODAY = datetime.date(2026, 10, 19)
USER_ID = "user-1"
OTHER_USER_ID = "user-2"

EXERCISES = [
    Exercise(id="bench", name="Bench Press", muscle_group="Chest", default_sets=3, default_reps=8),
    Exercise(id="incline", name="Incline Press", muscle_group="Chest", default_sets=3, default_reps=10),
    Exercise(id="flyes", name="Cable Flyes", muscle_group="Chest", default_sets=3, default_reps=12),
    Exercise(id="dips", name="Dips", muscle_group="Triceps", default_sets=3, default_reps=10),
    Exercise(id="pushdown", name="Pushdowns", muscle_group="Triceps", default_sets=3, default_reps=15),
    Exercise(id="deadlift", name="Deadlift", muscle_group="Back", default_sets=4, default_reps=5),
    Exercise(id="pullup", name="Pull-ups", muscle_group="Back", default_sets=3, default_reps=8),
    Exercise(id="row", name="Cable Row", muscle_group="Back", default_sets=3, default_reps=10),
    Exercise(id="lat", name="Lat Pulldown", muscle_group="Back", default_sets=3, default_reps=10),
    Exercise(id="curl", name="Barbell Curl", muscle_group="Biceps", default_sets=2, default_reps=12),
]


class Clock:
    """Settable stand-in for datetime.date.today"""

    def __init__(self, today: datetime.date = TODAY):
        self.today = today

    def __call__(self) -> datetime.date:
        return self.today


@pytest.fixture
def store():
    return InMemoryStore(EXERCISES)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def sessions(store, clock):
    return WorkoutSessionService(store, today=clock)


@pytest.fixture
def stats(store, clock):
    return StatsService(store, today=clock)


@pytest.fixture
def client(store, clock):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(store):
    app.dependency_overrides[get_store] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.clear()


def log_all(sessions, detail, weight=60, reps=10, user_id=USER_ID):
    for record in detail.set_records:
        sessions.log_set(user_id, record.id, weight, reps)
