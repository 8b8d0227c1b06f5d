import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import UserDataRepository
from state import TrainingState
from workout_data import INITIAL_SPLIT_ID, default_lift_ids


class TestTrainingState:
    def test_first_run_starts_from_defaults(self, tmp_path):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))
        assert not state.restored
        assert state.data.workout_state.current_split_id == INITIAL_SPLIT_ID
        assert state.data.workout_state.current_day_index == 0
        assert set(state.data.lift_history) == set(default_lift_ids())

    def test_transaction_persists_and_restores(self, tmp_path):
        path = str(tmp_path / "t.db")
        state = TrainingState(UserDataRepository(path))
        with state.transaction() as data:
            data.workout_state.current_day_index = 1

        reopened = TrainingState(UserDataRepository(path))
        assert reopened.restored
        assert reopened.data.workout_state.current_day_index == 1

    def test_transaction_swaps_in_a_new_snapshot(self, tmp_path):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))
        before = state.data
        with state.transaction() as data:
            data.workout_state.workout_days.append("2024-01-01")
        assert before.workout_state.workout_days == []
        assert state.data is not before

    def test_failed_transaction_leaves_state_untouched(self, tmp_path):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))
        try:
            with state.transaction() as data:
                data.workout_state.current_day_index = 2
                raise RuntimeError("abort")
        except RuntimeError:
            pass
        assert state.data.workout_state.current_day_index == 0
        assert state.repo.load() is None

    def test_corrupt_snapshot_falls_back_to_defaults(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        repo.save_raw("garbage")
        state = TrainingState(repo)
        assert not state.restored
        assert state.data.workout_state.current_split_id == INITIAL_SPLIT_ID

    def test_subscribers_are_notified(self, tmp_path):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))
        seen = []
        unsubscribe = state.subscribe(lambda d: seen.append(d.workout_state.current_day_index))
        with state.transaction() as data:
            data.workout_state.current_day_index = 1
        unsubscribe()
        with state.transaction() as data:
            data.workout_state.current_day_index = 2
        assert seen == [1]

    def test_failing_listener_is_logged(self, tmp_path, caplog):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))

        def broken(_data):
            raise ValueError("listener bug")

        state.subscribe(broken)
        with caplog.at_level(logging.ERROR, logger="state"):
            with state.transaction() as data:
                data.workout_state.current_day_index = 1
        assert state.data.workout_state.current_day_index == 1
        assert "listener" in caplog.text

    def test_reset_restores_defaults(self, tmp_path):
        state = TrainingState(UserDataRepository(str(tmp_path / "t.db")))
        with state.transaction() as data:
            data.workout_state.workout_days.append("2024-01-01")
        state.reset()
        assert state.data.workout_state.workout_days == []
