"""Announcement flag storage for de-duplicating spoken announcements."""

import sqlite3
import threading
from datetime import datetime
from typing import Optional

from .logger import Logger
from .models import PacerError

MILESTONE_PREFIX = "milestone:"
TIME_PREFIX = "time:"


class FlagStoreError(PacerError):
    """The flag store could not be read or written"""


class MemoryFlagStore:
    """In-process flag store. Flags are lost when the process exits."""

    def __init__(self):
        self._flags: dict[str, bool] = {}

    def get(self, key: str) -> bool:
        return self._flags.get(key, False)

    def set(self, key: str, value: bool):
        self._flags[key] = value

    def clear_prefix(self, prefix: str):
        for key in [k for k in self._flags if k.startswith(prefix)]:
            del self._flags[key]


class SQLiteFlagStore:
    """SQLite-backed flag store, so a resumed session keeps its flags"""

    def __init__(self, db_path: str = "pacer_flags.db"):
        self._lock = threading.Lock()
        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
            self._init_schema()
        except sqlite3.Error as e:
            raise FlagStoreError(f"Could not open flag store {db_path}: {e}") from e

    def _init_schema(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS announcement_flags (
                key TEXT PRIMARY KEY,
                value INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> bool:
        try:
            with self._lock:
                cursor = self.conn.execute(
                    "SELECT value FROM announcement_flags WHERE key = ?",
                    (key,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise FlagStoreError(f"Could not read flag {key}: {e}") from e
        return bool(row[0]) if row else False

    def set(self, key: str, value: bool):
        now = datetime.now().isoformat()
        try:
            with self._lock:
                self.conn.execute("""
                    INSERT INTO announcement_flags (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (key, int(value), now))
                self.conn.commit()
        except sqlite3.Error as e:
            raise FlagStoreError(f"Could not write flag {key}: {e}") from e

    def clear_prefix(self, prefix: str):
        try:
            with self._lock:
                self.conn.execute(
                    "DELETE FROM announcement_flags WHERE substr(key, 1, ?) = ?",
                    (len(prefix), prefix)
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise FlagStoreError(f"Could not clear flags {prefix}*: {e}") from e

    def count(self) -> int:
        with self._lock:
            cursor = self.conn.execute("SELECT COUNT(*) FROM announcement_flags")
            return cursor.fetchone()[0]

    def close(self):
        self.conn.close()


class AnnouncementFlags:
    """Session-owned view of the announcements already made.

    All access goes through the injected store. A failed read counts as "not
    yet announced" and a failed write is logged and ignored: a repeated
    announcement is acceptable, a milestone that can never be spoken is not.
    """

    def __init__(self, store, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or Logger()

    @staticmethod
    def milestone_key(n: int) -> str:
        return f"{MILESTONE_PREFIX}{n}"

    @staticmethod
    def time_key(minutes: int) -> str:
        return f"{TIME_PREFIX}{minutes}"

    def is_set(self, key: str) -> bool:
        try:
            return self.store.get(key)
        except FlagStoreError as e:
            self.logger.log("Flag read failed, treating as not announced", {"key": key, "error": str(e)})
            return False

    def mark(self, key: str):
        try:
            self.store.set(key, True)
        except FlagStoreError as e:
            self.logger.log("Flag write failed", {"key": key, "error": str(e)})

    def reset(self):
        """Forget every milestone and time announcement"""
        for prefix in (MILESTONE_PREFIX, TIME_PREFIX):
            try:
                self.store.clear_prefix(prefix)
            except FlagStoreError as e:
                self.logger.log("Flag reset failed", {"prefix": prefix, "error": str(e)})
