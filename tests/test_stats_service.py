import datetime
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import UserDataRepository
from models import LiftHistoryRecord, WorkoutSet
from state import TrainingState
from stats_service import StatisticsService, flag_personal_records

TODAY = datetime.date(2024, 5, 31)


def record(date: str, *weights: float, reps: int = 5) -> LiftHistoryRecord:
    return LiftHistoryRecord(date=date, sets=[WorkoutSet(weight=w, reps=reps) for w in weights])


@pytest.fixture
def state(tmp_path):
    return TrainingState(UserDataRepository(str(tmp_path / "t.db")))


@pytest.fixture
def stats(state):
    return StatisticsService(state, today=lambda: TODAY)


def set_history(state, lift_id, records):
    with state.transaction() as data:
        data.lift_history[lift_id] = records


def test_pr_flags_follow_running_max(state, stats):
    weights = [100, 100, 120, 90, 130]
    set_history(
        state,
        "squat",
        [record(f"2024-05-0{i + 1}", w) for i, w in enumerate(weights)],
    )
    flags = [r["is_pr"] for r in stats.personal_records("squat")]
    assert flags == [True, False, True, False, True]
    assert stats.personal_record("squat") == {"date": "2024-05-05", "weight": 130}


def test_pr_uses_top_set_and_skips_empty_records(state, stats):
    set_history(
        state,
        "squat",
        [
            record("2024-05-03", 90, 110),
            record("2024-05-01"),
            record("2024-05-02", 100),
        ],
    )
    prs = stats.personal_records("squat")
    assert [(r["date"], r["weight"], r["is_pr"]) for r in prs] == [
        ("2024-05-02", 100, True),
        ("2024-05-03", 110, True),
    ]


def test_no_history_has_no_record(stats):
    assert stats.personal_records("squat") == []
    assert stats.personal_record("squat") is None
    assert stats.personal_record("unknown") is None


def test_rolling_volume_window(state, stats):
    set_history(
        state,
        "squat",
        [
            record("2024-04-30", 100, reps=10),
            record("2024-05-01", 100, reps=10),
            record("2024-05-31", 100, 50, reps=2),
            record("2024-06-01", 1000, reps=10),
        ],
    )
    assert stats.rolling_volume("squat") == 1000 + 300
    assert stats.rolling_volume("squat", days=31) == 2000 + 300


def test_consistency_calendar(state, stats):
    with state.transaction() as data:
        data.workout_state.workout_days = ["2024-05-31", "2024-05-20", "2024-05-01"]
    calendar = stats.consistency_calendar()
    assert len(calendar) == 14
    assert calendar[0]["date"] == "2024-05-18"
    assert calendar[-1] == {"date": "2024-05-31", "is_workout_day": True}
    assert [c["date"] for c in calendar if c["is_workout_day"]] == ["2024-05-20", "2024-05-31"]


def test_chart_series_seeds_flags_from_earlier_records(state, stats):
    weights = [150, 100, 110, 120, 130, 140, 145, 160]
    set_history(
        state,
        "squat",
        [record(f"2024-05-1{i}", w) for i, w in enumerate(weights)],
    )
    series = stats.chart_series("squat")
    assert [p["weight"] for p in series] == [110, 120, 130, 140, 145, 160]
    assert [p["is_pr"] for p in series] == [False, False, False, False, False, True]


def test_chart_series_short_history(state, stats):
    set_history(state, "squat", [record("2024-05-01", 100), record("2024-05-02", 90)])
    assert [p["is_pr"] for p in stats.chart_series("squat")] == [True, False]


def test_flag_personal_records_equal_is_not_pr():
    flagged = flag_personal_records([record("2024-01-01", 100)], best=100)
    assert flagged == [{"date": "2024-01-01", "weight": 100, "is_pr": False}]


def test_workout_streak(state, stats):
    with state.transaction() as data:
        data.workout_state.workout_days = [
            "2024-05-20",
            "2024-05-21",
            "2024-05-22",
            "2024-05-25",
            "2024-05-30",
            "2024-05-31",
        ]
    assert stats.workout_streak() == {"current": 2, "record": 3}


def test_streak_broken_when_idle(state):
    stats = StatisticsService(state, today=lambda: datetime.date(2024, 6, 10))
    with state.transaction() as data:
        data.workout_state.workout_days = ["2024-05-30", "2024-05-31"]
    assert stats.workout_streak() == {"current": 0, "record": 2}
    with state.transaction() as data:
        data.workout_state.workout_days = []
    assert stats.workout_streak() == {"current": 0, "record": 0}
