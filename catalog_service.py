from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Set
from uuid import uuid4

from client import RemoteUnavailableError, RepQuestClient
from models import Lift
from state import TrainingState
from workout_data import default_lifts, icon_for_lift

_LOGGER = logging.getLogger(__name__)

REMOTE_ID_PREFIX = "api_lift_"
DEFAULT_REMOTE_INCREMENT = 5.0


def _name_key(name: str) -> str:
    return name.strip().lower()


def _remote_lift_id(remote_id: Any, taken: Set[str] = frozenset()) -> str:
    """Catalog id for a remote lift; a clash with ``taken`` gets a random suffix."""
    if isinstance(remote_id, bool):
        remote_id = None
    if isinstance(remote_id, float) and remote_id.is_integer():
        remote_id = int(remote_id)
    candidate = None
    if isinstance(remote_id, int):
        candidate = f"{REMOTE_ID_PREFIX}{remote_id}"
    elif isinstance(remote_id, str) and remote_id.strip():
        candidate = f"{REMOTE_ID_PREFIX}{remote_id.strip()}"
    if candidate is not None and candidate not in taken:
        return candidate
    return f"{REMOTE_ID_PREFIX}{uuid4().hex[:10]}"


def _number(value: Any, fallback: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    return max(0.0, float(value)) if value else fallback


def _with_settings_of(lift: Lift, source: Optional[Lift]) -> Lift:
    if source is None:
        return lift
    return lift.model_copy(
        update={
            "default_weight": source.default_weight,
            "weight_increment": source.weight_increment,
            "default_reps": source.default_reps,
        }
    )


def reconcile(remote_lifts: Iterable[Any], local_catalog: Iterable[Lift]) -> List[Lift]:
    """Fold a remote lift list into the catalog.

    The built-in defaults always come first and are never dropped. A
    remote lift is appended only when no lift of the same name (case
    insensitive) is already in the result. Lifts already known locally
    keep their id and settings, so history keyed by id stays attached and
    running this twice gives the same catalog.
    """
    local = list(local_catalog)
    local_by_id = {lift.id: lift for lift in local}
    local_by_name = {_name_key(lift.name): lift for lift in local}

    result = [_with_settings_of(lift, local_by_id.get(lift.id)) for lift in default_lifts()]
    seen = {_name_key(lift.name) for lift in result}
    taken = {lift.id for lift in result} | set(local_by_id)

    for raw in remote_lifts:
        entry = raw.to_json_dict() if isinstance(raw, Lift) else raw
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name") or "").strip()
        key = _name_key(name)
        if not key or key in seen:
            continue
        known = local_by_name.get(key)
        if known is not None:
            result.append(known.model_copy())
        else:
            result.append(
                Lift(
                    id=_remote_lift_id(entry.get("id"), taken),
                    name=name,
                    default_weight=_number(entry.get("defaultWeight"), 0.0),
                    weight_increment=_number(entry.get("weightIncrement"), DEFAULT_REMOTE_INCREMENT),
                    icon=icon_for_lift(name),
                )
            )
        seen.add(key)
        taken.add(result[-1].id)
    return result


def heal(local_catalog: Iterable[Lift]) -> List[Lift]:
    """Return the local catalog plus any default lift missing from it."""
    result = [lift.model_copy() for lift in local_catalog]
    present = {lift.id for lift in result}
    result.extend(lift for lift in default_lifts() if lift.id not in present)
    return result


class CatalogService:
    """Keeps the lift catalog in line with the remote and the defaults."""

    def __init__(self, state: TrainingState, client: RepQuestClient | None = None) -> None:
        self.state = state
        self.client = client

    def lifts(self) -> List[Lift]:
        return list(self.state.data.lifts)

    def find_lift(self, lift_id: str) -> Optional[Lift]:
        return self.state.data.find_lift(lift_id)

    def refresh(self) -> str:
        """Fetch remote lifts and merge them in; returns "online" or "offline"."""
        local = self.state.data.lifts
        status = "offline"
        remote: list[dict] = []
        if self.client is not None:
            try:
                remote = self.client.get_lifts()
                status = "online"
            except RemoteUnavailableError as e:
                _LOGGER.warning("Lift catalog refresh failed, keeping local catalog: %s", e)
        if remote:
            lifts = reconcile(remote, local)
        else:
            lifts = heal(local)
        with self.state.transaction() as data:
            data.lifts = lifts
            for lift in lifts:
                data.lift_history.setdefault(lift.id, [])
        _LOGGER.info("Catalog refreshed (%s): %d lifts", status, len(lifts))
        return status

    def update_lift_settings(
        self,
        lift_id: str,
        default_weight: float | None = None,
        weight_increment: float | None = None,
        default_reps: int | None = None,
    ) -> Optional[Lift]:
        if default_weight is not None and default_weight < 0:
            raise ValueError("default weight must be non-negative")
        if weight_increment is not None and weight_increment < 0:
            raise ValueError("weight increment must be non-negative")
        if default_reps is not None and default_reps < 1:
            raise ValueError("default reps must be positive")
        if self.find_lift(lift_id) is None:
            _LOGGER.debug("update_lift_settings: unknown lift %s", lift_id)
            return None
        updated: Optional[Lift] = None
        with self.state.transaction() as data:
            lift = data.find_lift(lift_id)
            if default_weight is not None:
                lift.default_weight = float(default_weight)
            if weight_increment is not None:
                lift.weight_increment = float(weight_increment)
            if default_reps is not None:
                lift.default_reps = int(default_reps)
            updated = lift.model_copy()
        return updated
