"""Tests for the workout session lifecycle."""

import datetime
from concurrent.futures import ThreadPoolExecutor

import pytest

from tests.conftest import OTHER_USER_ID, TODAY, USER_ID, log_all
from tracker.errors import (
    ExerciseNotFound,
    InvalidSetValues,
    InvalidSplitKey,
    NoExercisesForSplit,
    NotOwned,
    NoValidExercises,
    SetRecordNotFound,
    WorkoutDayExists,
    WorkoutNotFound,
)
from tracker.schema import WorkoutStatus


class TestStartWorkout:
    def test_chest_tri_split_creates_planned_sets(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        assert len(detail.set_records) == 15
        assert detail.completion_percentage == 0
        assert detail.split_name == "Chest + Triceps"
        assert detail.workout_day.date == TODAY
        assert detail.workout_day.status is WorkoutStatus.ACTIVE

        exercises = {r.exercise_id for r in detail.set_records}
        assert exercises == {"bench", "incline", "flyes", "dips", "pushdown"}
        for record in detail.set_records:
            assert record.planned_weight == 0
            assert record.planned_reps == record.exercise.default_reps
            assert record.actual_weight is None
            assert record.actual_reps is None
        assert len(store.set_records) == 15

    def test_caps_exercises_per_group_by_name(self, sessions):
        detail = sessions.start_workout(USER_ID, "BACK_BI")

        back = sorted({r.exercise.name for r in detail.set_records if r.exercise.muscle_group == "Back"})
        # Pull-ups is fourth alphabetically and falls outside the cap of 3
        assert back == ["Cable Row", "Deadlift", "Lat Pulldown"]
        assert len(detail.set_records) == 3 + 4 + 3 + 2

    def test_set_records_ordered_by_exercise_then_index(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        keys = [(r.exercise.name, r.set_index) for r in detail.set_records]
        assert keys == sorted(keys)
        assert [r.set_index for r in detail.set_records[:3]] == [1, 2, 3]

    def test_second_start_is_a_no_op(self, sessions, store):
        first = sessions.start_workout(USER_ID, "CHEST_TRI")
        second = sessions.start_workout(USER_ID, "BACK_BI")

        assert second.workout_day.id == first.workout_day.id
        assert second.split_name == "Chest + Triceps"
        assert len(store.workout_days) == 1
        assert len(store.set_records) == 15

    def test_new_day_gets_a_new_workout(self, sessions, clock, store):
        first = sessions.start_workout(USER_ID, "CHEST_TRI")
        clock.today = TODAY + datetime.timedelta(days=1)
        second = sessions.start_workout(USER_ID, "BACK_BI")

        assert second.workout_day.id != first.workout_day.id
        assert len(store.workout_days) == 2

    def test_users_do_not_share_today(self, sessions, store):
        mine = sessions.start_workout(USER_ID, "CHEST_TRI")
        theirs = sessions.start_workout(OTHER_USER_ID, "CHEST_TRI")

        assert mine.workout_day.id != theirs.workout_day.id

    def test_unknown_split_key(self, sessions):
        with pytest.raises(InvalidSplitKey):
            sessions.start_workout(USER_ID, "FULL_BODY")

    def test_split_without_catalog_exercises(self, sessions, store):
        with pytest.raises(NoExercisesForSplit):
            sessions.start_workout(USER_ID, "LEGS_SHO")
        assert store.workout_days == {}

    def test_concurrent_create_returns_existing_day(self, sessions, store):
        original = store.find_workout_day
        calls = []

        def stale_find(user_id, day):
            # first lookup misses, as if a parallel request had not committed yet
            calls.append(day)
            if len(calls) == 1:
                return None
            return original(user_id, day)

        winner = sessions.start_workout(USER_ID, "CHEST_TRI")
        store.find_workout_day = stale_find

        result = sessions.start_workout(USER_ID, "BACK_BI")

        assert result.workout_day.id == winner.workout_day.id
        assert len(store.workout_days) == 1
        assert len(store.set_records) == 15


    def test_parallel_starts_share_one_day(self, sessions, store):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: sessions.start_workout(USER_ID, "CHEST_TRI"), range(16)))

        assert len({r.workout_day.id for r in results}) == 1
        assert len(store.workout_days) == 1
        assert len(store.set_records) == 15


class TestCustomWorkout:
    def test_uses_default_sets(self, sessions):
        detail = sessions.create_custom_workout(USER_ID, ["deadlift", "curl"])

        assert len(detail.set_records) == 4 + 2
        assert detail.split_name == "Back + Biceps"

    def test_custom_sets_are_clamped(self, sessions):
        detail = sessions.create_custom_workout(
            USER_ID, ["bench", "dips", "curl"], {"bench": 5, "dips": 25, "curl": 0}
        )

        counts = {}
        for record in detail.set_records:
            counts[record.exercise_id] = counts.get(record.exercise_id, 0) + 1
        assert counts == {"bench": 5, "dips": 10, "curl": 1}

    def test_unknown_ids_are_ignored(self, sessions):
        detail = sessions.create_custom_workout(USER_ID, ["bench", "does-not-exist"])

        assert {r.exercise_id for r in detail.set_records} == {"bench"}

    def test_no_valid_exercises(self, sessions, store):
        with pytest.raises(NoValidExercises):
            sessions.create_custom_workout(USER_ID, ["nope", "also-nope"])
        assert store.workout_days == {}

    def test_existing_workout_short_circuits(self, sessions):
        first = sessions.start_workout(USER_ID, "CHEST_TRI")
        second = sessions.create_custom_workout(USER_ID, ["deadlift"])

        assert second.workout_day.id == first.workout_day.id
        assert len(second.set_records) == 15


class TestLogSet:
    def test_one_logged_set_of_fifteen(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        logged = sessions.log_set(USER_ID, detail.set_records[0].id, 60, 10)

        assert logged.actual_weight == 60
        assert logged.actual_reps == 10
        assert logged.workout_date == TODAY
        assert sessions.get_today_workout(USER_ID).completion_percentage == 7

    def test_logging_every_set_completes_the_workout(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        for record in detail.set_records[:-1]:
            sessions.log_set(USER_ID, record.id, 50, 8)
        assert sessions.get_today_workout(USER_ID).workout_day.completed is False

        sessions.log_set(USER_ID, detail.set_records[-1].id, 50, 8)
        today = sessions.get_today_workout(USER_ID)
        assert today.workout_day.status is WorkoutStatus.COMPLETED
        assert today.completion_percentage == 100

    def test_completion_counts_sets_logged_out_of_order(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        for record in reversed(detail.set_records):
            sessions.log_set(USER_ID, record.id, 40, 12)

        assert sessions.get_today_workout(USER_ID).workout_day.completed is True

    def test_bodyweight_sets_allow_zero_weight(self, sessions):
        detail = sessions.create_custom_workout(USER_ID, ["pullup"])

        logged = sessions.log_set(USER_ID, detail.set_records[0].id, 0, 12)

        assert logged.actual_weight == 0

    @pytest.mark.parametrize(
        "weight, reps",
        [
            (-1, 10),
            (50, 0),
            (50, -3),
            (50, 2.5),
            (None, 10),
            (50, None),
            (float("nan"), 10),
            (float("inf"), 10),
            (float("-inf"), 10),
            (50, float("inf")),
            (50, float("nan")),
        ],
    )
    def test_rejects_invalid_values(self, sessions, weight, reps):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(InvalidSetValues):
            sessions.log_set(USER_ID, detail.set_records[0].id, weight, reps)

    def test_rejected_non_finite_weight_leaves_progress_intact(self, sessions, stats, store):
        detail = sessions.create_custom_workout(USER_ID, ["bench"], {"bench": 2})
        first, second = detail.set_records

        sessions.log_set(USER_ID, first.id, 100, 5)
        for weight in (float("nan"), float("inf")):
            with pytest.raises(InvalidSetValues):
                sessions.log_set(USER_ID, second.id, weight, 5)

        assert store.get_set_record(second.id).actual_weight is None
        (bench,) = stats.get_exercise_progress(USER_ID)
        assert bench.best_set.one_rep_max == 117

    def test_editing_a_logged_set(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")
        record_id = detail.set_records[0].id

        sessions.log_set(USER_ID, record_id, 60, 10)
        sessions.log_set(USER_ID, record_id, 65, 8)

        assert store.get_set_record(record_id).actual_weight == 65
        assert store.get_set_record(record_id).actual_reps == 8

    def test_other_users_set_is_not_found(self, sessions, store):
        detail = sessions.start_workout(OTHER_USER_ID, "CHEST_TRI")
        record_id = detail.set_records[0].id

        with pytest.raises(SetRecordNotFound):
            sessions.log_set(USER_ID, record_id, 60, 10)
        assert store.get_set_record(record_id).actual_weight is None

    def test_unknown_set(self, sessions):
        with pytest.raises(SetRecordNotFound):
            sessions.log_set(USER_ID, "missing", 60, 10)


class TestRecordSet:
    def test_upsert_by_key_never_duplicates(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")
        day_id = detail.workout_day.id
        existing = next(r for r in detail.set_records if r.exercise_id == "bench" and r.set_index == 1)

        saved = sessions.record_set(
            USER_ID, day_id, "bench", 1, planned_weight=80, planned_reps=8, actual_weight=80, actual_reps=8
        )

        assert saved.id == existing.id
        assert len(store.set_records) == 15
        assert store.get_set_record(existing.id).actual_weight == 80

    def test_adds_an_extra_set(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        saved = sessions.record_set(USER_ID, detail.workout_day.id, "bench", 4, planned_reps=8)

        assert saved.set_index == 4
        assert len(store.set_records) == 16

    def test_last_set_via_upsert_completes_workout(self, sessions):
        detail = sessions.create_custom_workout(USER_ID, ["curl"])

        sessions.record_set(USER_ID, detail.workout_day.id, "curl", 1, actual_weight=30, actual_reps=12)
        assert sessions.get_today_workout(USER_ID).workout_day.completed is False
        sessions.record_set(USER_ID, detail.workout_day.id, "curl", 2, actual_weight=30, actual_reps=10)

        assert sessions.get_today_workout(USER_ID).workout_day.completed is True

    def test_requires_owned_day(self, sessions):
        detail = sessions.start_workout(OTHER_USER_ID, "CHEST_TRI")

        with pytest.raises(WorkoutNotFound):
            sessions.record_set(USER_ID, detail.workout_day.id, "bench", 1)

    def test_requires_known_exercise(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(ExerciseNotFound):
            sessions.record_set(USER_ID, detail.workout_day.id, "unknown", 1)

    def test_validates_partial_actuals(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(InvalidSetValues):
            sessions.record_set(USER_ID, detail.workout_day.id, "bench", 1, actual_weight=50)

    @pytest.mark.parametrize("planned_weight", [float("nan"), float("inf"), -10])
    def test_rejects_bad_planned_weight(self, sessions, store, planned_weight):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(InvalidSetValues):
            sessions.record_set(
                USER_ID, detail.workout_day.id, "bench", 4, planned_weight=planned_weight
            )
        assert len(store.set_records) == 15

    def test_rejects_non_finite_actual_weight(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(InvalidSetValues):
            sessions.record_set(
                USER_ID,
                detail.workout_day.id,
                "bench",
                1,
                actual_weight=float("nan"),
                actual_reps=5,
            )
        assert store.list_set_records([detail.workout_day.id])[0].actual_weight is None


class TestTransitions:
    def test_manual_complete_ignores_open_sets(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        completed = sessions.complete_workout(USER_ID, detail.workout_day.id)

        assert completed.workout_day.status is WorkoutStatus.COMPLETED
        assert completed.completion_percentage == 0

    def test_uncomplete_keeps_logged_values(self, sessions):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")
        sessions.log_set(USER_ID, detail.set_records[0].id, 60, 10)
        sessions.complete_workout(USER_ID, detail.workout_day.id)

        reopened = sessions.uncomplete_workout(USER_ID, detail.workout_day.id)

        assert reopened.workout_day.status is WorkoutStatus.ACTIVE
        assert reopened.completion_percentage == 7

    def test_complete_leaves_rest_day_alone(self, sessions):
        rest = sessions.create_rest_day(USER_ID)

        result = sessions.complete_workout(USER_ID, rest.workout_day.id)

        assert result.workout_day.status is WorkoutStatus.REST_DAY

    def test_complete_someone_elses_workout(self, sessions, store):
        detail = sessions.start_workout(OTHER_USER_ID, "CHEST_TRI")

        with pytest.raises(NotOwned):
            sessions.complete_workout(USER_ID, detail.workout_day.id)
        assert store.get_workout_day(detail.workout_day.id).status is WorkoutStatus.ACTIVE

    def test_uncomplete_unknown_workout(self, sessions):
        with pytest.raises(WorkoutNotFound):
            sessions.uncomplete_workout(USER_ID, "missing")


class TestRestDay:
    def test_creates_rest_day(self, sessions, store):
        detail = sessions.create_rest_day(USER_ID)

        assert detail.workout_day.status is WorkoutStatus.REST_DAY
        assert detail.workout_day.completed is True
        assert detail.workout_day.is_rest_day is True
        assert detail.completion_percentage == 100
        assert detail.split_name == "Rest Day"
        assert len(store.workout_days) == 1

    def test_is_idempotent(self, sessions, store):
        first = sessions.create_rest_day(USER_ID)
        second = sessions.create_rest_day(USER_ID)

        assert first.workout_day.id == second.workout_day.id
        assert len(store.workout_days) == 1

    def test_overwrites_active_workout_but_keeps_sets(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")
        record_id = detail.set_records[0].id
        sessions.log_set(USER_ID, record_id, 60, 10)

        rest = sessions.create_rest_day(USER_ID)

        assert rest.workout_day.id == detail.workout_day.id
        assert rest.workout_day.completed is True
        assert rest.workout_day.is_rest_day is True
        assert rest.split_name == "Rest Day"
        assert store.get_set_record(record_id).actual_weight == 60

    def test_start_after_rest_day_returns_rest_day(self, sessions):
        rest = sessions.create_rest_day(USER_ID)

        result = sessions.start_workout(USER_ID, "CHEST_TRI")

        assert result.workout_day.id == rest.workout_day.id
        assert result.set_records == []


class TestDeleteWorkout:
    def test_cascades_to_set_records(self, sessions, store):
        detail = sessions.start_workout(USER_ID, "CHEST_TRI")

        sessions.delete_workout(USER_ID, detail.workout_day.id)

        assert store.workout_days == {}
        assert store.set_records == {}
        assert sessions.get_today_workout(USER_ID) is None

    def test_other_users_workout_is_untouched(self, sessions, store):
        theirs = sessions.start_workout(OTHER_USER_ID, "CHEST_TRI")
        mine = sessions.start_workout(USER_ID, "BACK_BI")
        before = {k: v.model_copy() for k, v in store.set_records.items()}

        with pytest.raises(WorkoutNotFound) as excinfo:
            sessions.delete_workout(USER_ID, theirs.workout_day.id)

        assert isinstance(excinfo.value, NotOwned)
        assert str(excinfo.value) == str(WorkoutNotFound("x"))
        assert store.set_records == before
        assert store.get_workout_day(mine.workout_day.id) is not None


class TestCreateWorkoutDay:
    def test_backfills_past_date(self, sessions):
        day = sessions.create_workout_day(USER_ID, TODAY - datetime.timedelta(days=3), completed=True)

        assert day.status is WorkoutStatus.COMPLETED
        assert day.date == TODAY - datetime.timedelta(days=3)

    def test_conflicts_with_existing_day(self, sessions):
        sessions.start_workout(USER_ID, "CHEST_TRI")

        with pytest.raises(WorkoutDayExists):
            sessions.create_workout_day(USER_ID, TODAY)


def test_log_all_helper_completes_custom_workout(sessions):
    detail = sessions.create_custom_workout(USER_ID, ["bench"])

    log_all(sessions, detail)

    assert sessions.get_today_workout(USER_ID).workout_day.status is WorkoutStatus.COMPLETED
