"""Review history data models.

Decoupled from prism_core so the store layer can be used independently.
Feedback is kept as the serialized JSON text the caller wrote; decoding it
back into an analysis result is the caller's concern.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NewReview:
    """A review about to be persisted — everything except id and timestamp."""

    session_id: str | None
    code: str
    language: str
    focus: str
    feedback: str


@dataclass(frozen=True)
class ReviewRecord:
    """A persisted review.

    ``id`` and ``created_at`` are assigned by the store in create() and are
    never set by callers. Records are never updated after creation.
    """

    id: str
    session_id: str | None
    code: str
    language: str
    focus: str
    feedback: str
    created_at: datetime  # timezone-aware, UTC
