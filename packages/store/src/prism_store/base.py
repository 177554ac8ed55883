"""Abstract store interface.

Every storage backend (embedded SQLite, networked Postgres) implements this
interface. The orchestrator and the MCP adapter depend on BaseStore, not on
a concrete backend, so backends are swappable without touching review code.
The concrete backend is chosen once at process start (see prism_cli.runtime).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from prism_store.models import NewReview, ReviewRecord

DEFAULT_LIST_LIMIT = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageError(Exception):
    """The persistence backend is unavailable or rejected an operation."""


class BaseStore(ABC):
    """Session-scoped persistence layer for review history.

    Session ids are opaque partition keys. ``None`` means "unscoped": unscoped
    reads span every session, unscoped clears delete nothing.
    """

    # Whether retention cleanup should run against this backend. Only the
    # networked backend opts in; the embedded file is treated as dev-local.
    supports_retention: bool = False

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or utcnow

    @abstractmethod
    def create(self, review: NewReview) -> ReviewRecord:
        """Persist a review, assigning its id and created_at.

        Raises StorageError when the backend cannot be written.
        """

    @abstractmethod
    def list_by_session(self, session_id: str | None, limit: int | None = DEFAULT_LIST_LIMIT) -> list[ReviewRecord]:
        """Return reviews newest first, ties broken by insertion order (newest first).

        ``session_id=None`` returns reviews across all sessions.
        ``limit=None`` returns every matching review.
        """

    @abstractmethod
    def clear_by_session(self, session_id: str | None) -> int:
        """Delete every review of a session and return the number deleted.

        A missing or empty session id is a no-op returning 0.
        """

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete reviews created strictly before ``cutoff``; return the count."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional. Subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
