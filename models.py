"""Data model for lifts, splits, workouts and the persisted user snapshot.

Attributes are snake_case in Python. Serialized snapshots and wire
payloads use camelCase keys (``defaultWeight``, ``workoutState`` ...),
and either spelling is accepted when loading.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Lift(_Model):
    """Exercise definition. Only the settings fields are user editable."""

    id: str
    name: str
    default_weight: float = Field(0.0, ge=0)
    weight_increment: float = Field(0.0, ge=0)
    icon: Optional[str] = None
    default_reps: Optional[int] = None

    def reps_or(self, default: int) -> int:
        return self.default_reps if self.default_reps is not None else default


class Day(_Model):
    name: str
    lifts: List[str] = Field(default_factory=list)


class Split(_Model):
    id: str
    name: str
    days: List[Day] = Field(default_factory=list)


class WorkoutSet(_Model):
    weight: float
    reps: int
    completed: bool = True

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class LiftHistoryRecord(_Model):
    date: str
    sets: List[WorkoutSet] = Field(default_factory=list)

    def max_weight(self) -> Optional[float]:
        if not self.sets:
            return None
        return max(s.weight for s in self.sets)

    def volume(self) -> float:
        return sum(s.volume for s in self.sets)


class Workout(_Model):
    """One exercise slot of a day. Derived on every read, never persisted."""

    id: str
    lift_id: str
    name: str
    default_weight: float
    default_sets: int
    default_reps: int
    rep_range: str
    weight_increment: float
    order: int


class CompletionReceipt(_Model):
    """What a completion changed, kept so an undo can take it back.

    ``superseded_by`` names the workout whose replace-mode completion
    overwrote this one's record; that record then lives on as the later
    receipt's ``replaced``.
    """

    lift_id: str
    date: str
    history_index: int
    previous_weight: Optional[float] = None
    added_workout_day: bool = False
    replaced: Optional[LiftHistoryRecord] = None
    superseded_by: Optional[str] = None


class WorkoutState(_Model):
    current_split_id: str
    current_day_index: int = 0
    active_workout_id: Optional[str] = None
    completed_workout_ids: List[str] = Field(default_factory=list)
    workout_sets: Dict[str, List[WorkoutSet]] = Field(default_factory=dict)
    last_weights: Dict[str, float] = Field(default_factory=dict)
    workout_days: List[str] = Field(default_factory=list)
    completion_receipts: Dict[str, CompletionReceipt] = Field(default_factory=dict)


class UserData(_Model):
    lifts: List[Lift]
    splits: List[Split]
    lift_history: Dict[str, List[LiftHistoryRecord]] = Field(default_factory=dict)
    workout_state: WorkoutState

    def find_lift(self, lift_id: str) -> Optional[Lift]:
        return next((l for l in self.lifts if l.id == lift_id), None)

    def find_split(self, split_id: str) -> Optional[Split]:
        return next((s for s in self.splits if s.id == split_id), None)
