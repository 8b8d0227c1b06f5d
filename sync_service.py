"""Remote archival of workout snapshots with an offline queue.

Writes that cannot reach the server are queued in sqlite and replayed,
oldest first, when connectivity comes back. Delivery is at least once:
an item that reached the server but failed to leave the queue is sent
again on the next drain.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from client import RemoteUnavailableError, RepQuestClient
from db import ArchiveRepository, PendingSyncRepository

_LOGGER = logging.getLogger(__name__)

SYNCED = "synced"
QUEUED = "queued"


class SyncService:
    def __init__(
        self,
        client: RepQuestClient,
        queue_repo: PendingSyncRepository,
        archive_repo: ArchiveRepository,
        user_id: int = 1,
        max_attempts: int = 10,
        online: bool = True,
    ) -> None:
        self.client = client
        self.queue = queue_repo
        self.archive_repo = archive_repo
        self.user_id = user_id
        self.max_attempts = max_attempts
        self.online = online

    def archive(self, data: dict) -> str:
        """Keep a local copy of ``data`` and push it to the server or the queue."""
        self.archive_repo.add(self.user_id, data)
        if not self.online:
            self.queue.add(data)
            _LOGGER.info("Offline, queued workout archive")
            return QUEUED
        try:
            self.client.save_workout_data(self.user_id, data)
        except RemoteUnavailableError as e:
            self.queue.add(data)
            _LOGGER.warning("Workout archive queued for later: %s", e)
            return QUEUED
        return SYNCED

    def set_online(self, online: bool) -> Optional[dict]:
        """Record connectivity; coming back online drains the queue."""
        was_online = self.online
        self.online = online
        if online and not was_online:
            return self.drain()
        return None

    def _exhausted(self, item: dict) -> bool:
        return self.max_attempts > 0 and item["attempts"] >= self.max_attempts

    def drain(self) -> dict[str, int]:
        result = {"synced": 0, "failed": 0, "exhausted": 0}
        for item in self.queue.fetch_pending():
            if self._exhausted(item):
                result["exhausted"] += 1
                continue
            try:
                self.client.save_workout_data(self.user_id, item["data"])
            except RemoteUnavailableError as e:
                self.queue.record_failure(item["id"], str(e))
                result["failed"] += 1
                continue
            self.queue.remove(item["id"])
            result["synced"] += 1
        _LOGGER.info(
            "Sync drain: %(synced)d synced, %(failed)d failed, %(exhausted)d exhausted",
            result,
        )
        return result

    def fetch_workout_data(self) -> Any:
        """Latest archived data from the server, or the local copy when unreachable."""
        if self.online:
            try:
                return self.client.get_workout_data(self.user_id)
            except RemoteUnavailableError as e:
                _LOGGER.warning("Falling back to local archive: %s", e)
        return self.archive_repo.latest(self.user_id)

    def exhausted_items(self) -> List[dict]:
        """Queued items that reached the retry cap and are no longer sent."""
        return [item for item in self.queue.fetch_pending() if self._exhausted(item)]

    def purge_exhausted(self) -> int:
        items = self.exhausted_items()
        for item in items:
            self.queue.remove(item["id"])
        if items:
            _LOGGER.info("Dropped %d exhausted sync items", len(items))
        return len(items)

    def requeue_exhausted(self) -> int:
        """Clear the attempt count of exhausted items so the next drain retries them."""
        items = self.exhausted_items()
        for item in items:
            self.queue.reset_attempts(item["id"])
        return len(items)

    def status(self) -> dict:
        return {
            "online": self.online,
            "pending": self.queue.count(),
            "exhausted": len(self.exhausted_items()),
        }
