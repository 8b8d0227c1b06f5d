from __future__ import annotations

import datetime
import logging
from typing import Callable, List, Optional

from models import Day, Split, UserData, Workout
from settings_schema import SettingsSchema
from state import TrainingState
from workout_data import generate_workouts_from_split

_LOGGER = logging.getLogger(__name__)

DayResetHook = Callable[[List[str]], None]


class SplitService:
    """Navigates the active split and edits splits and days.

    Days are addressed by ``(split_id, day_index)``. Inserting or deleting
    a day shifts the indices after it, so callers must re-read indices
    after any edit. Edits never touch the workout state.
    """

    def __init__(
        self,
        state: TrainingState,
        settings: SettingsSchema | None = None,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.state = state
        self.settings = settings or SettingsSchema()
        self.today = today
        self.day_reset_hooks: list[DayResetHook] = []

    # read model

    def splits(self) -> List[Split]:
        return list(self.state.data.splits)

    def current_split(self) -> Optional[Split]:
        data = self.state.data
        return data.find_split(data.workout_state.current_split_id)

    def current_day(self) -> Optional[Day]:
        split = self.current_split()
        index = self.state.data.workout_state.current_day_index
        if split is None or not 0 <= index < len(split.days):
            return None
        return split.days[index]

    def workouts_for_day(self, data: UserData, split: Split, day_index: int) -> List[Workout]:
        return generate_workouts_from_split(
            split,
            day_index,
            data.lifts,
            default_sets=self.settings.default_sets,
            default_reps=self.settings.default_reps,
            rep_range=self.settings.rep_range,
        )

    def workouts(self, data: UserData | None = None) -> List[Workout]:
        """Workouts of the current day, regenerated from the catalog on each call."""
        data = data if data is not None else self.state.data
        split = data.find_split(data.workout_state.current_split_id)
        if split is None:
            return []
        return self.workouts_for_day(data, split, data.workout_state.current_day_index)

    def get_next_workout_day(self) -> Optional[Day]:
        return self._day_at_offset(1)

    def get_previous_workout_day(self) -> Optional[Day]:
        return self._day_at_offset(-1)

    def _day_at_offset(self, offset: int) -> Optional[Day]:
        split = self.current_split()
        if split is None or not split.days:
            return None
        index = self.state.data.workout_state.current_day_index
        return split.days[(index + offset) % len(split.days)]

    def get_day_status(self, split_id: str, day_index: int) -> str:
        ws = self.state.data.workout_state
        if ws.current_split_id != split_id:
            return "pending"
        if ws.current_day_index == day_index:
            return "active"
        split = self.state.data.find_split(split_id)
        if split is None or not 0 <= day_index < len(split.days):
            return "pending"
        if self.today().isoformat() in ws.workout_days:
            return "completed"
        return "pending"

    # navigation

    def set_active_split(self, split_id: str) -> None:
        if self.state.data.find_split(split_id) is None:
            _LOGGER.debug("set_active_split: unknown split %s", split_id)
            return
        with self.state.transaction() as data:
            ws = data.workout_state
            ws.current_split_id = split_id
            ws.current_day_index = 0
            ws.active_workout_id = None
            ws.completed_workout_ids = []
        _LOGGER.debug("Activated split %s", split_id)

    def move_to_day(self, day_index: int) -> None:
        split = self.current_split()
        if split is None or not 0 <= day_index < len(split.days):
            _LOGGER.debug("move_to_day: index %s out of range", day_index)
            return
        self._enter_day(day_index)

    def advance_to_next_day(self) -> None:
        split = self.current_split()
        if split is None or not split.days:
            return
        index = self.state.data.workout_state.current_day_index
        self._enter_day((index + 1) % len(split.days))

    def _enter_day(self, day_index: int) -> None:
        """Make ``day_index`` current with no active, completed or logged work."""
        reset_ids: List[str] = []
        with self.state.transaction() as data:
            split = data.find_split(data.workout_state.current_split_id)
            reset_ids = [w.id for w in self.workouts_for_day(data, split, day_index)]
            ws = data.workout_state
            ws.current_day_index = day_index
            ws.active_workout_id = None
            ws.completed_workout_ids = []
            ws.completion_receipts = {}
            for workout_id in reset_ids:
                ws.workout_sets.pop(workout_id, None)
        for hook in self.day_reset_hooks:
            hook(reset_ids)
        _LOGGER.debug("Moved to day %d", day_index + 1)

    # editing

    def create_split(self, split: Split) -> None:
        if self.state.data.find_split(split.id) is not None:
            _LOGGER.debug("create_split: id %s already in use", split.id)
            return
        with self.state.transaction() as data:
            data.splits.append(split.model_copy(deep=True))

    def update_split(
        self,
        split_id: str,
        name: str | None = None,
        days: List[Day] | None = None,
    ) -> None:
        if self.state.data.find_split(split_id) is None:
            return
        with self.state.transaction() as data:
            split = data.find_split(split_id)
            if name is not None:
                split.name = name
            if days is not None:
                split.days = [d.model_copy(deep=True) for d in days]

    def add_day_to_split(self, split_id: str, day: Day) -> None:
        if self.state.data.find_split(split_id) is None:
            return
        with self.state.transaction() as data:
            data.find_split(split_id).days.append(day.model_copy(deep=True))

    def update_day(
        self,
        split_id: str,
        day_index: int,
        name: str | None = None,
        lifts: List[str] | None = None,
    ) -> None:
        if not self._valid_day(split_id, day_index):
            return
        with self.state.transaction() as data:
            day = data.find_split(split_id).days[day_index]
            if name is not None:
                day.name = name
            if lifts is not None:
                day.lifts = list(lifts)

    def delete_day(self, split_id: str, day_index: int) -> None:
        if not self._valid_day(split_id, day_index):
            return
        with self.state.transaction() as data:
            del data.find_split(split_id).days[day_index]

    def add_lift_to_day(self, split_id: str, day_index: int, lift_id: str) -> None:
        if not self._valid_day(split_id, day_index):
            return
        with self.state.transaction() as data:
            data.find_split(split_id).days[day_index].lifts.append(lift_id)

    def remove_lift_from_day(self, split_id: str, day_index: int, lift_id: str) -> None:
        if not self._valid_day(split_id, day_index):
            return
        with self.state.transaction() as data:
            day = data.find_split(split_id).days[day_index]
            day.lifts = [l for l in day.lifts if l != lift_id]

    def _valid_day(self, split_id: str, day_index: int) -> bool:
        split = self.state.data.find_split(split_id)
        valid = split is not None and 0 <= day_index < len(split.days)
        if not valid:
            _LOGGER.debug("No day %s in split %s", day_index, split_id)
        return valid
