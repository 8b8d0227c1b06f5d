import sqlite3
import datetime
import json
import logging
from contextlib import contextmanager
from typing import List, Tuple, Optional

from models import UserData

_LOGGER = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class Database:
    """SQLite store: connection handling, schema creation and column migration."""

    _TABLE_DEFINITIONS = {
        "user_data": (
            """CREATE TABLE user_data (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );""",
            ["key", "value", "updated_at"],
        ),
        "pending_sync": (
            """CREATE TABLE pending_sync (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT NOT NULL DEFAULT 'workout',
                    data TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    attempts INTEGER NOT NULL DEFAULT 0,
                    last_error TEXT
                );""",
            ["id", "type", "data", "timestamp", "attempts", "last_error"],
        ),
        "workout_archive": (
            """CREATE TABLE workout_archive (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    data TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                );""",
            ["id", "user_id", "data", "timestamp"],
        ),
    }

    _COLUMN_DEFAULTS = {"type": "'workout'", "attempts": "0"}
    _STAMP_COLUMNS = ("timestamp", "updated_at")

    def __init__(self, db_path: str = "repquest.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        _LOGGER.info("Migrating table %s: %s -> %s", table, existing_cols, columns)
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)

        kept = [c for c in columns if c in existing_cols]
        if kept:
            added = [c for c in columns if c not in existing_cols]
            targets = ", ".join(kept + added)
            sources = ", ".join(kept + [self._column_default(c) for c in added])
            conn.execute(
                f"INSERT INTO {table} ({targets}) SELECT {sources} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")

    @classmethod
    def _column_default(cls, column: str) -> str:
        """SQL literal used to fill a column added by a migration."""
        if column in cls._STAMP_COLUMNS:
            return f"'{_now_iso()}'"
        return cls._COLUMN_DEFAULTS.get(column, "NULL")

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Query helpers shared by the repositories."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    def _delete_all(self, table: str) -> None:
        self.execute(f"DELETE FROM {table};")


class UserDataRepository(BaseRepository):
    """Whole-snapshot persistence of the user's training state.

    The snapshot lives as one JSON blob under a fixed key and is
    overwritten in full on every save. A blob that fails to parse or
    validate loads as ``None`` so the caller can fall back to defaults.
    """

    KEY = "repQuestData"

    def load(self) -> Optional[UserData]:
        raw = self.load_raw()
        if raw is None:
            return None
        try:
            return UserData.model_validate_json(raw)
        except ValueError as e:
            _LOGGER.warning("Discarding unreadable snapshot in %s: %s", self._db_path, e)
            return None

    def load_raw(self) -> Optional[str]:
        rows = self.fetch_all("SELECT value FROM user_data WHERE key = ?;", (self.KEY,))
        return rows[0][0] if rows else None

    def save(self, data: UserData) -> None:
        self.save_raw(data.model_dump_json(by_alias=True))

    def save_raw(self, payload: str) -> None:
        self.execute(
            "INSERT INTO user_data (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at;",
            (self.KEY, payload, _now_iso()),
        )

    def delete_all(self) -> None:
        self._delete_all("user_data")


class PendingSyncRepository(BaseRepository):
    """Queue of remote writes that could not complete yet."""

    def add(self, data: dict, item_type: str = "workout") -> int:
        return self.execute(
            "INSERT INTO pending_sync (type, data, timestamp) VALUES (?, ?, ?);",
            (item_type, json.dumps(data), _now_iso()),
        )

    def fetch_pending(self) -> List[dict]:
        rows = self.fetch_all(
            "SELECT id, type, data, timestamp, attempts, last_error FROM pending_sync ORDER BY id;"
        )
        return [
            {
                "id": sid,
                "type": item_type,
                "data": json.loads(data),
                "timestamp": timestamp,
                "attempts": attempts,
                "last_error": last_error,
            }
            for sid, item_type, data, timestamp, attempts, last_error in rows
        ]

    def remove(self, item_id: int) -> None:
        self.execute("DELETE FROM pending_sync WHERE id = ?;", (item_id,))

    def record_failure(self, item_id: int, error: str) -> None:
        self.execute(
            "UPDATE pending_sync SET attempts = attempts + 1, last_error = ? WHERE id = ?;",
            (error, item_id),
        )

    def reset_attempts(self, item_id: int) -> None:
        self.execute(
            "UPDATE pending_sync SET attempts = 0, last_error = NULL WHERE id = ?;",
            (item_id,),
        )

    def count(self) -> int:
        rows = self.fetch_all("SELECT COUNT(*) FROM pending_sync;")
        return int(rows[0][0])

    def delete_all(self) -> None:
        self._delete_all("pending_sync")


class ArchiveRepository(BaseRepository):
    """Local copy of every snapshot handed to remote archival."""

    def add(self, user_id: int, data: dict) -> int:
        return self.execute(
            "INSERT INTO workout_archive (user_id, data, timestamp) VALUES (?, ?, ?);",
            (user_id, json.dumps(data), _now_iso()),
        )

    def latest(self, user_id: int) -> Optional[dict]:
        rows = self.fetch_all(
            "SELECT data FROM workout_archive WHERE user_id = ? ORDER BY id DESC LIMIT 1;",
            (user_id,),
        )
        return json.loads(rows[0][0]) if rows else None

    def fetch_for_user(self, user_id: int) -> List[dict]:
        rows = self.fetch_all(
            "SELECT id, timestamp, data FROM workout_archive WHERE user_id = ? ORDER BY id;",
            (user_id,),
        )
        return [
            {"id": aid, "timestamp": ts, "data": json.loads(data)}
            for aid, ts, data in rows
        ]

    def delete_all(self) -> None:
        self._delete_all("workout_archive")
