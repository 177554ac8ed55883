"""PostgresStore — networked relational store for deployed instances.

Selected when the process runs under a recognised deployment marker (see
prism_core.config.resolve_storage). Unlike the embedded SQLite file, data
here outlives the process, so this backend opts into retention cleanup.

Schema mirrors SQLiteStore: ``seq`` (BIGSERIAL) carries insertion order for
tie-breaking, ``id`` is the opaque identifier handed to callers.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable

import psycopg2
import psycopg2.extras

from prism_store.base import DEFAULT_LIST_LIMIT, BaseStore, StorageError
from prism_store.models import NewReview, ReviewRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    seq         BIGSERIAL PRIMARY KEY,
    id          TEXT NOT NULL UNIQUE,
    session_id  TEXT,
    code        TEXT NOT NULL,
    language    TEXT NOT NULL,
    focus       TEXT NOT NULL,
    feedback    TEXT NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_reviews_session ON reviews (session_id, created_at);
CREATE INDEX IF NOT EXISTS idx_reviews_created ON reviews (created_at);
"""


class PostgresStore(BaseStore):
    """Stores review history in a Postgres database reached by connection URL."""

    supports_retention = True

    def __init__(self, dsn: str, clock: Callable[[], datetime] | None = None):
        super().__init__(clock)
        self._lock = threading.Lock()
        try:
            self._conn = psycopg2.connect(dsn)
            with self._conn, self._conn.cursor() as cur:
                cur.execute(_SCHEMA)
        except psycopg2.Error as e:
            raise StorageError(f"Could not connect to Postgres store: {e}") from e

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
        self._run(
            """
            INSERT INTO reviews (id, session_id, code, language, focus, feedback, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                record.id,
                record.session_id,
                record.code,
                record.language,
                record.focus,
                record.feedback,
                record.created_at,
            ),
        )
        return record

    def list_by_session(self, session_id: str | None, limit: int | None = DEFAULT_LIST_LIMIT) -> list[ReviewRecord]:
        # LIMIT NULL is Postgres' "no limit".
        if session_id is not None:
            rows = self._run(
                "SELECT * FROM reviews WHERE session_id=%s ORDER BY created_at DESC, seq DESC LIMIT %s",
                (session_id, limit),
                fetch=True,
            )
        else:
            rows = self._run(
                "SELECT * FROM reviews ORDER BY created_at DESC, seq DESC LIMIT %s",
                (limit,),
                fetch=True,
            )
        return [self._row_to_record(r) for r in rows]

    def clear_by_session(self, session_id: str | None) -> int:
        if not session_id:
            return 0
        return self._run("DELETE FROM reviews WHERE session_id=%s", (session_id,))

    def delete_older_than(self, cutoff: datetime) -> int:
        return self._run("DELETE FROM reviews WHERE created_at < %s", (cutoff,))

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _run(self, sql: str, params: tuple, fetch: bool = False):
        """Execute one statement in its own transaction.

        Returns the fetched rows when ``fetch`` is set, the affected row count
        otherwise. ``with conn`` commits on success and rolls back on error.
        """
        with self._lock:
            try:
                with self._conn, self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    if fetch:
                        return cur.fetchall()
                    return cur.rowcount
            except psycopg2.Error as e:
                logger.error("PostgresStore statement failed: %s", e)
                raise StorageError(str(e)) from e

    @staticmethod
    def _row_to_record(row: dict) -> ReviewRecord:
        return ReviewRecord(
            id=row["id"],
            session_id=row["session_id"],
            code=row["code"],
            language=row["language"],
            focus=row["focus"],
            feedback=row["feedback"],
            created_at=row["created_at"],
        )
