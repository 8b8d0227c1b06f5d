from __future__ import annotations

import datetime
import logging
from typing import Callable, List, Optional

from models import LiftHistoryRecord
from state import TrainingState

_LOGGER = logging.getLogger(__name__)


def _parse_date(value: str) -> Optional[datetime.date]:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        _LOGGER.debug("Ignoring history record with bad date %r", value)
        return None


def flag_personal_records(records: List[LiftHistoryRecord], best: float | None = None) -> List[dict]:
    """Mark each non-empty record whose top set beats everything before it.

    ``best`` seeds the running maximum, for callers that only look at the
    tail of a history. Equal weights are not a new record.
    """
    flagged = []
    for record in records:
        weight = record.max_weight()
        if weight is None:
            continue
        is_pr = best is None or weight > best
        if is_pr:
            best = weight
        flagged.append({"date": record.date, "weight": weight, "is_pr": is_pr})
    return flagged


class StatisticsService:
    """Read-only progress figures computed from lift history."""

    def __init__(
        self,
        state: TrainingState,
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self.state = state
        self.today = today

    def _history(self, lift_id: str) -> List[LiftHistoryRecord]:
        records = self.state.data.lift_history.get(lift_id, [])
        return sorted(records, key=lambda r: r.date)

    def personal_records(self, lift_id: str) -> List[dict]:
        """Return ``date``, ``weight`` and ``is_pr`` per session, oldest first."""
        return flag_personal_records(self._history(lift_id))

    def personal_record(self, lift_id: str) -> Optional[dict]:
        prs = [r for r in self.personal_records(lift_id) if r["is_pr"]]
        if not prs:
            return None
        return {"date": prs[-1]["date"], "weight": prs[-1]["weight"]}

    def rolling_volume(self, lift_id: str, days: int = 30) -> float:
        """Total weight x reps of records dated within the last ``days`` days."""
        end = self.today()
        start = end - datetime.timedelta(days=days)
        total = 0.0
        for record in self.state.data.lift_history.get(lift_id, []):
            day = _parse_date(record.date)
            if day is not None and start <= day <= end:
                total += record.volume()
        return total

    def consistency_calendar(self, days: int = 14) -> List[dict]:
        end = self.today()
        worked = set(self.state.data.workout_state.workout_days)
        calendar = []
        for offset in range(days - 1, -1, -1):
            day = (end - datetime.timedelta(days=offset)).isoformat()
            calendar.append({"date": day, "is_workout_day": day in worked})
        return calendar

    def chart_series(self, lift_id: str, limit: int = 6) -> List[dict]:
        """Last ``limit`` sessions with PR flags relative to the full history."""
        records = [r for r in self._history(lift_id) if r.sets]
        if limit <= 0:
            return []
        head, tail = records[:-limit], records[-limit:]
        earlier = [r.max_weight() for r in head]
        best = max(earlier) if earlier else None
        return flag_personal_records(tail, best)

    def workout_streak(self) -> dict[str, int]:
        """Return current and record streaks of consecutive workout days."""
        dates = sorted(
            {d for d in map(_parse_date, self.state.data.workout_state.workout_days) if d}
        )
        if not dates:
            return {"current": 0, "record": 0}
        record = 1
        current = 1
        for i in range(1, len(dates)):
            gap = (dates[i] - dates[i - 1]).days
            if gap == 1:
                current += 1
            else:
                record = max(record, current)
                current = 1
        record = max(record, current)
        if (self.today() - dates[-1]).days > 1:
            current = 0
        return {"current": current, "record": record}
