"""SQLiteStore — embedded single-file store for local and development use.

Why SQLite as the embedded store:
- Batteries included: ships with Python, no extra dependencies.
- Fast indexed reads on session_id without a server to provision.
- The database file is treated as dev-local, so retention cleanup is not
  run against it (supports_retention stays False).

Schema:
  reviews: one row per persisted review. ``seq`` is the insertion order and
            breaks ties between reviews created in the same instant; ``id``
            is the opaque identifier handed to callers.

Timestamps are stored as fixed-width ISO-8601 UTC text so that string
comparison in ORDER BY and the retention cutoff matches time order.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable

from prism_store.base import DEFAULT_LIST_LIMIT, BaseStore, StorageError
from prism_store.models import NewReview, ReviewRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
    id          TEXT NOT NULL UNIQUE,
    session_id  TEXT,
    code        TEXT NOT NULL,
    language    TEXT NOT NULL,
    focus       TEXT NOT NULL,
    feedback    TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_reviews_session ON reviews (session_id, created_at);
CREATE INDEX IF NOT EXISTS idx_reviews_created ON reviews (created_at);
"""

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _to_text(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def _from_text(value: str) -> datetime:
    return datetime.strptime(value, _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class SQLiteStore(BaseStore):
    """Stores review history in a local SQLite database file.

    The database path defaults to `.prism.db` in the current working
    directory. Configure via .prism.yml: `store_path: /path/to/prism.db`.

    One connection is shared between request threads and the cleanup worker;
    a lock serialises every statement on it.
    """

    supports_retention = False

    def __init__(self, db_path: str = ".prism.db", clock: Callable[[], datetime] | None = None):
        super().__init__(clock)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not open SQLite store at {db_path}: {e}") from e

    def create(self, review: NewReview) -> ReviewRecord:
        record = ReviewRecord(
            id=uuid.uuid4().hex,
            session_id=review.session_id,
            code=review.code,
            language=review.language,
            focus=review.focus,
            feedback=review.feedback,
            created_at=self._clock(),
        )
        self._execute(
            """
            INSERT INTO reviews (id, session_id, code, language, focus, feedback, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.session_id,
                record.code,
                record.language,
                record.focus,
                record.feedback,
                _to_text(record.created_at),
            ),
        )
        return record

    def list_by_session(self, session_id: str | None, limit: int | None = DEFAULT_LIST_LIMIT) -> list[ReviewRecord]:
        # LIMIT -1 is SQLite's "no limit".
        bound = -1 if limit is None else limit
        if session_id is not None:
            rows = self._query(
                "SELECT * FROM reviews WHERE session_id=? ORDER BY created_at DESC, seq DESC LIMIT ?",
                (session_id, bound),
            )
        else:
            rows = self._query(
                "SELECT * FROM reviews ORDER BY created_at DESC, seq DESC LIMIT ?",
                (bound,),
            )
        return [self._row_to_record(r) for r in rows]

    def clear_by_session(self, session_id: str | None) -> int:
        if not session_id:
            return 0
        return self._execute("DELETE FROM reviews WHERE session_id=?", (session_id,))

    def delete_older_than(self, cutoff: datetime) -> int:
        return self._execute("DELETE FROM reviews WHERE created_at < ?", (_to_text(cutoff),))

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _execute(self, sql: str, params: tuple) -> int:
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
            except sqlite3.Error as e:
                logger.error("SQLiteStore write failed: %s", e)
                raise StorageError(str(e)) from e
            return cursor.rowcount

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error("SQLiteStore read failed: %s", e)
                raise StorageError(str(e)) from e

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ReviewRecord:
        return ReviewRecord(
            id=row["id"],
            session_id=row["session_id"],
            code=row["code"],
            language=row["language"],
            focus=row["focus"],
            feedback=row["feedback"],
            created_at=_from_text(row["created_at"]),
        )
