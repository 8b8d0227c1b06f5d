import json
import os
import sqlite3
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import (
    ArchiveRepository,
    Database,
    PendingSyncRepository,
    UserDataRepository,
)
from workout_data import default_user_data


class TestUserDataRepository:
    def test_missing_snapshot_loads_none(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        assert repo.load() is None

    def test_snapshot_round_trip_uses_camel_case(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        data = default_user_data()
        data.workout_state.workout_days.append("2024-05-01")
        repo.save(data)

        raw = repo.load_raw()
        assert '"workoutState"' in raw
        assert '"defaultWeight"' in raw
        loaded = repo.load()
        assert loaded == data

    def test_save_overwrites_whole_snapshot(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        data = default_user_data()
        repo.save(data)
        data.workout_state.current_day_index = 2
        repo.save(data)
        rows = repo.fetch_all("SELECT COUNT(*) FROM user_data;")
        assert rows[0][0] == 1
        assert repo.load().workout_state.current_day_index == 2

    def test_unreadable_snapshot_loads_none(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        repo.save_raw("{not json")
        assert repo.load() is None
        repo.save_raw('{"lifts": "nope"}')
        assert repo.load() is None

    def test_snapshot_without_receipts_loads(self, tmp_path):
        repo = UserDataRepository(str(tmp_path / "t.db"))
        payload = default_user_data().to_json_dict()
        del payload["workoutState"]["completionReceipts"]
        repo.save_raw(json.dumps(payload))
        assert repo.load().workout_state.completion_receipts == {}


class TestPendingSyncRepository:
    def test_queue_in_insertion_order(self, tmp_path):
        repo = PendingSyncRepository(str(tmp_path / "t.db"))
        first = repo.add({"n": 1})
        second = repo.add({"n": 2})
        items = repo.fetch_pending()
        assert [i["id"] for i in items] == [first, second]
        assert items[0]["data"] == {"n": 1}
        assert items[0]["type"] == "workout"
        assert items[0]["attempts"] == 0
        assert repo.count() == 2

    def test_failure_and_removal(self, tmp_path):
        repo = PendingSyncRepository(str(tmp_path / "t.db"))
        item_id = repo.add({"n": 1})
        repo.record_failure(item_id, "boom")
        item = repo.fetch_pending()[0]
        assert item["attempts"] == 1
        assert item["last_error"] == "boom"
        repo.remove(item_id)
        assert repo.count() == 0

    def test_migrates_queue_without_attempt_columns(self, tmp_path):
        db_file = tmp_path / "old.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute(
            "CREATE TABLE pending_sync (id INTEGER PRIMARY KEY AUTOINCREMENT, type TEXT NOT NULL, data TEXT NOT NULL, timestamp TEXT NOT NULL)"
        )
        conn.execute(
            "INSERT INTO pending_sync (type, data, timestamp) VALUES ('workout', '{\"a\": 1}', '2024-01-01T00:00:00')"
        )
        conn.commit()
        conn.close()

        repo = PendingSyncRepository(str(db_file))
        items = repo.fetch_pending()
        assert len(items) == 1
        assert items[0]["attempts"] == 0
        assert items[0]["last_error"] is None

        conn = sqlite3.connect(str(db_file))
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='pending_sync_old'"
        )
        assert cur.fetchone() is None
        conn.close()


class TestArchiveRepository:
    def test_latest_per_user(self, tmp_path):
        repo = ArchiveRepository(str(tmp_path / "t.db"))
        assert repo.latest(1) is None
        repo.add(1, {"v": 1})
        repo.add(1, {"v": 2})
        repo.add(2, {"v": 9})
        assert repo.latest(1) == {"v": 2}
        assert [a["data"] for a in repo.fetch_for_user(1)] == [{"v": 1}, {"v": 2}]


def test_schema_created_on_open(tmp_path):
    db = Database(str(tmp_path / "t.db"))
    conn = sqlite3.connect(db.db_path)
    tables = {
        row[0]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    conn.close()
    assert {"user_data", "pending_sync", "workout_archive"} <= tables


def test_delete_all_and_vacuum(tmp_path):
    path = str(tmp_path / "t.db")
    queue = PendingSyncRepository(path)
    archive = ArchiveRepository(path)
    queue.add({"n": 1})
    archive.add(1, {"n": 1})
    queue.delete_all()
    archive.delete_all()
    queue.vacuum()
    assert queue.count() == 0
    assert archive.latest(1) is None
