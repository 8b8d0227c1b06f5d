from __future__ import annotations

import datetime
import logging
from typing import Callable

from catalog_service import CatalogService
from client import RepQuestClient
from db import ArchiveRepository, PendingSyncRepository, UserDataRepository
from settings_schema import SettingsSchema
from split_service import SplitService
from state import TrainingState
from stats_service import StatisticsService
from sync_service import SyncService
from workout_service import WorkoutService

_LOGGER = logging.getLogger(__name__)


class RepQuestApp:
    """Wires the store, the services and the remote client together.

    Construction hydrates the snapshot and, unless ``refresh_catalog`` is
    false, reconciles the lift catalog before any workouts are generated.
    """

    def __init__(
        self,
        db_path: str | None = None,
        settings: SettingsSchema | None = None,
        client: RepQuestClient | None = None,
        *,
        today: Callable[[], datetime.date] = datetime.date.today,
        online: bool = True,
        refresh_catalog: bool = True,
    ) -> None:
        self.settings = settings or SettingsSchema()
        self.db_path = db_path or self.settings.db_path
        self.client = client or RepQuestClient(
            self.settings.api_base_url, timeout=self.settings.request_timeout
        )
        self.user_data = UserDataRepository(self.db_path)
        self.pending = PendingSyncRepository(self.db_path)
        self.archives = ArchiveRepository(self.db_path)
        self.state = TrainingState(self.user_data)

        self.catalog = CatalogService(self.state, self.client)
        self.splits = SplitService(self.state, self.settings, today)
        self.workouts = WorkoutService(self.state, self.splits, self.settings, today)
        self.stats = StatisticsService(self.state, today)
        self.sync = SyncService(
            self.client,
            self.pending,
            self.archives,
            user_id=self.settings.user_id,
            max_attempts=self.settings.sync_max_attempts,
            online=online,
        )
        self.catalog_status = "offline"
        if refresh_catalog:
            self.catalog_status = self.catalog.refresh()

    def complete_current_day(self) -> str:
        """Finish the day, then archive the snapshot; returns the sync status."""
        self.workouts.complete_current_day()
        return self.sync.archive(self.state.snapshot().to_json_dict())

    def progress(self, lift_id: str) -> dict:
        return {
            "personal_records": self.stats.personal_records(lift_id),
            "chart": self.stats.chart_series(lift_id, self.settings.chart_points),
            "volume": self.stats.rolling_volume(lift_id, self.settings.volume_window_days),
        }

    def calendar(self) -> list[dict]:
        return self.stats.consistency_calendar(self.settings.calendar_days)

    def status(self) -> dict:
        split = self.splits.current_split()
        day = self.splits.current_day()
        return {
            "catalog": self.catalog_status,
            "split": split.name if split else None,
            "day": day.name if day else None,
            "lifts": len(self.state.data.lifts),
            **self.sync.status(),
        }
