"""Per-slot workout lifecycle for the current day.

A slot is Pending (no sets, not active), Active (it is the
``active_workout_id``) or Completed (listed in ``completed_workout_ids``).
The state is derived from ``WorkoutState``; nothing stores it directly.

Invalid ids and indices never raise. They leave the state untouched and
nothing is persisted.
"""

from __future__ import annotations

import datetime
import logging
from typing import Callable, Dict, List, Optional

from models import (
    CompletionReceipt,
    LiftHistoryRecord,
    UserData,
    Workout,
    WorkoutSet,
    WorkoutState,
)
from settings_schema import SettingsSchema
from split_service import SplitService
from state import TrainingState

_LOGGER = logging.getLogger(__name__)

PENDING = "pending"
ACTIVE = "active"
COMPLETED = "completed"


class WorkoutService:
    """Logs sets and completes workouts for the current split day."""

    def __init__(
        self,
        state: TrainingState,
        splits: SplitService,
        settings: SettingsSchema | None = None,
        today: Callable[[], datetime.date] | None = None,
    ) -> None:
        self.state = state
        self.splits = splits
        self.settings = settings or splits.settings
        self.today = today or splits.today
        self._extra_rows: Dict[str, int] = {}
        splits.day_reset_hooks.append(self._forget_rows)

    def _today(self) -> str:
        return self.today().isoformat()

    def _find_workout(self, workout_id: str, data: UserData | None = None) -> Optional[Workout]:
        return next((w for w in self.splits.workouts(data) if w.id == workout_id), None)

    def _forget_rows(self, workout_ids: List[str]) -> None:
        for workout_id in workout_ids:
            self._extra_rows.pop(workout_id, None)

    # read model

    def workouts(self) -> List[Workout]:
        return self.splits.workouts()

    def active_workout(self) -> Optional[Workout]:
        active_id = self.state.data.workout_state.active_workout_id
        if active_id is None:
            return None
        return self._find_workout(active_id)

    def completed_workouts(self) -> List[str]:
        return list(self.state.data.workout_state.completed_workout_ids)

    def workout_status(self, workout_id: str) -> str:
        ws = self.state.data.workout_state
        if workout_id in ws.completed_workout_ids:
            return COMPLETED
        if ws.active_workout_id == workout_id:
            return ACTIVE
        return PENDING

    def get_sets_for_workout(self, workout_id: str) -> List[WorkoutSet]:
        return list(self.state.data.workout_state.workout_sets.get(workout_id, []))

    def get_last_weight(self, lift_id: str) -> float:
        data = self.state.data
        last = data.workout_state.last_weights.get(lift_id)
        if last is not None:
            return last
        lift = data.find_lift(lift_id)
        return lift.default_weight if lift is not None else 0.0

    def get_lift_history(self, lift_id: str) -> List[LiftHistoryRecord]:
        return list(self.state.data.lift_history.get(lift_id, []))

    def get_workout_days(self) -> List[str]:
        return list(self.state.data.workout_state.workout_days)

    def target_set_count(self, workout_id: str) -> int:
        """Input rows to offer for a slot: the prescribed sets plus any added rows."""
        workout = self._find_workout(workout_id)
        if workout is None:
            return 0
        return workout.default_sets + self._extra_rows.get(workout_id, 0)

    # set logging

    def start_workout(self, workout_id: str) -> None:
        ws = self.state.data.workout_state
        if self._find_workout(workout_id) is None or workout_id in ws.completed_workout_ids:
            _LOGGER.debug("start_workout: %s is unknown or completed", workout_id)
            return
        with self.state.transaction() as data:
            data.workout_state.active_workout_id = workout_id

    def complete_set(self, workout_id: str, entry: WorkoutSet | dict) -> None:
        """Append a logged set; callers must not log against a completed slot."""
        if self._find_workout(workout_id) is None:
            _LOGGER.debug("complete_set: unknown workout %s", workout_id)
            return
        logged = entry if isinstance(entry, WorkoutSet) else WorkoutSet.model_validate(entry)
        with self.state.transaction() as data:
            data.workout_state.workout_sets.setdefault(workout_id, []).append(logged.model_copy())

    def remove_set(self, workout_id: str, index: int) -> Optional[WorkoutSet]:
        sets = self.state.data.workout_state.workout_sets.get(workout_id, [])
        if not 0 <= index < len(sets):
            _LOGGER.debug("remove_set: no set %s for %s", index, workout_id)
            return None
        with self.state.transaction() as data:
            sets = data.workout_state.workout_sets[workout_id]
            removed = sets.pop(index)
            if not sets:
                del data.workout_state.workout_sets[workout_id]
        return removed

    def edit_set(self, workout_id: str, index: int) -> Optional[WorkoutSet]:
        """Take a set out for editing; re-log it with :meth:`complete_set`."""
        return self.remove_set(workout_id, index)

    def add_set(self, workout_id: str) -> int:
        if self._find_workout(workout_id) is None:
            return 0
        self._extra_rows[workout_id] = self._extra_rows.get(workout_id, 0) + 1
        return self.target_set_count(workout_id)

    # completion

    def complete_workout(self, workout_id: str) -> None:
        workout = self._find_workout(workout_id)
        if workout is None:
            _LOGGER.debug("complete_workout: unknown workout %s", workout_id)
            return
        today = self._today()
        with self.state.transaction() as data:
            ws = data.workout_state
            sets = [s.model_copy() for s in ws.workout_sets.get(workout_id, [])]
            record = LiftHistoryRecord(date=today, sets=sets)
            records = data.lift_history.setdefault(workout.lift_id, [])

            replaced = None
            index = len(records)
            if self.settings.history_mode == "replace":
                same_day = [i for i, r in enumerate(records) if r.date == today]
                if same_day:
                    index = same_day[-1]
                    replaced = records[index]
            if replaced is not None:
                records[index] = record
                replaced = self._supersede(ws, workout_id, workout.lift_id, index, replaced)
            else:
                records.append(record)

            added_day = today not in ws.workout_days
            if added_day:
                ws.workout_days.append(today)

            previous_weight = ws.last_weights.get(workout.lift_id)
            earlier = ws.completion_receipts.pop(workout_id, None)
            if (
                earlier is not None
                and earlier.lift_id == workout.lift_id
                and earlier.history_index == index
                and earlier.superseded_by is None
            ):
                # completed again over its own record
                previous_weight = earlier.previous_weight
                added_day = added_day or earlier.added_workout_day
            ws.last_weights[workout.lift_id] = sets[-1].weight if sets else workout.default_weight

            if ws.active_workout_id == workout_id:
                ws.active_workout_id = None
            if workout_id not in ws.completed_workout_ids:
                ws.completed_workout_ids.append(workout_id)
            ws.completion_receipts[workout_id] = CompletionReceipt(
                lift_id=workout.lift_id,
                date=today,
                history_index=index,
                previous_weight=previous_weight,
                added_workout_day=added_day,
                replaced=replaced,
            )
        _LOGGER.debug("Completed %s with %d sets", workout_id, len(sets))

    def undo_complete_workout(self, workout_id: str) -> None:
        """Reopen a completed workout.

        By default the history record, last weight and workout day written
        by the completion stay in place. With ``undo_retracts_history``
        they are taken back.
        """
        if workout_id not in self.state.data.workout_state.completed_workout_ids:
            _LOGGER.debug("undo_complete_workout: %s is not completed", workout_id)
            return
        with self.state.transaction() as data:
            ws = data.workout_state
            ws.completed_workout_ids = [w for w in ws.completed_workout_ids if w != workout_id]
            ws.active_workout_id = workout_id
            order = list(ws.completion_receipts)
            receipt = ws.completion_receipts.pop(workout_id, None)
            if receipt is not None and self.settings.undo_retracts_history:
                later_ids = order[order.index(workout_id) + 1 :]
                successor = next(
                    (
                        ws.completion_receipts[w]
                        for w in later_ids
                        if ws.completion_receipts[w].lift_id == receipt.lift_id
                    ),
                    None,
                )
                self._retract(data, workout_id, receipt, successor)

    @staticmethod
    def _supersede(
        ws: WorkoutState,
        workout_id: str,
        lift_id: str,
        index: int,
        overwritten: LiftHistoryRecord,
    ) -> Optional[LiftHistoryRecord]:
        """Link the receipt whose live record was just overwritten.

        Returns what the new receipt should restore on undo. Re-completing
        the same workout takes over its old receipt's ``replaced``.
        """
        for other_id, other in ws.completion_receipts.items():
            if (
                other.lift_id == lift_id
                and other.history_index == index
                and other.superseded_by is None
            ):
                if other_id == workout_id:
                    return other.replaced
                other.superseded_by = workout_id
                break
        return overwritten

    def _retract(
        self,
        data: UserData,
        workout_id: str,
        receipt: CompletionReceipt,
        successor: Optional[CompletionReceipt],
    ) -> None:
        """Take back one completion.

        ``successor`` is the next outstanding completion of the same lift;
        it saw this completion's weight as its previous weight.
        """
        ws = data.workout_state
        later = ws.completion_receipts.get(receipt.superseded_by or "")
        if later is not None:
            # this record was already overwritten; cut it out of the chain
            later.replaced = receipt.replaced
            for other in ws.completion_receipts.values():
                if other.superseded_by == workout_id:
                    other.superseded_by = receipt.superseded_by
        else:
            self._restore_record(data, receipt)
            for other in ws.completion_receipts.values():
                if other.superseded_by == workout_id:
                    other.superseded_by = None

        outstanding = ws.completion_receipts.values()
        if successor is not None:
            successor.previous_weight = receipt.previous_weight
        else:
            if receipt.previous_weight is None:
                ws.last_weights.pop(receipt.lift_id, None)
            else:
                ws.last_weights[receipt.lift_id] = receipt.previous_weight
        if receipt.added_workout_day:
            heir = next((r for r in outstanding if r.date == receipt.date), None)
            if heir is not None:
                heir.added_workout_day = True
            else:
                ws.workout_days = [d for d in ws.workout_days if d != receipt.date]

    @staticmethod
    def _restore_record(data: UserData, receipt: CompletionReceipt) -> None:
        ws = data.workout_state
        records = data.lift_history.get(receipt.lift_id, [])
        index = receipt.history_index
        if not 0 <= index < len(records):
            return
        if receipt.replaced is not None:
            records[index] = receipt.replaced
            return
        del records[index]
        for other in ws.completion_receipts.values():
            if other.lift_id == receipt.lift_id and other.history_index > index:
                other.history_index -= 1

    def complete_current_day(self) -> None:
        """Record today as a workout day and move on to the next day of the split."""
        today = self._today()
        with self.state.transaction() as data:
            ws = data.workout_state
            if today not in ws.workout_days:
                ws.workout_days.append(today)
            ws.active_workout_id = None
            ws.completed_workout_ids = []
            ws.completion_receipts = {}
        self.splits.advance_to_next_day()

    def undo_complete_current_day(self) -> None:
        """Reset the current day's logging; archived history is kept."""
        if self.splits.current_day() is None:
            return
        day_ids = [w.id for w in self.workouts()]
        with self.state.transaction() as data:
            ws = data.workout_state
            ws.active_workout_id = None
            ws.completed_workout_ids = []
            for workout_id in day_ids:
                ws.workout_sets.pop(workout_id, None)
                ws.completion_receipts.pop(workout_id, None)
        self._forget_rows(day_ids)
