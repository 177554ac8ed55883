"""Core review orchestration.

A request moves Received → Analyzed → Persisted → Returned. The provider
never fails (it degrades to the mock result); a persistence failure does fail
the request, because a review that cannot be saved is reported, not dropped.
After every persisted review a retention cleanup is handed to a background
executor and never awaited.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from prism_core.errors import FeedbackDecodeError
from prism_core.models import AnalysisRequest, AnalysisResult, AnalyzeResponse, HistoryEntry
from prism_core.providers.anthropic import AnthropicProvider
from prism_core.providers.mock import MockProvider
from prism_core.providers.openai import OpenAIProvider
from prism_store.models import NewReview

if TYPE_CHECKING:
    from prism_core.providers.base import BaseProvider
    from prism_store.base import BaseStore
    from prism_store.models import ReviewRecord

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "plaintext"
DEFAULT_HISTORY_LIMIT = 20
DEFAULT_RETENTION_DAYS = 30
FEEDBACK_ERROR_SUMMARY = "Error parsing feedback"


def build_provider(config: dict) -> BaseProvider:
    """Instantiate the configured provider, or the mock one when its key is missing."""
    name = config.get("provider", "openai")
    model = config.get("model")
    if name == "openai":
        key = config.get("openai_api_key")
        if key:
            return OpenAIProvider(api_key=key, model=model)
    elif name == "anthropic":
        key = config.get("anthropic_api_key")
        if key:
            return AnthropicProvider(api_key=key, model=model)
    else:
        raise ValueError(f"Unknown provider: {name!r}. Choose 'openai' or 'anthropic'.")
    logger.warning("No API key found for provider %r. Using mock responses.", name)
    return MockProvider()


def _decode_feedback(record: ReviewRecord) -> AnalysisResult:
    try:
        return AnalysisResult.from_dict(json.loads(record.feedback))
    except (ValueError, TypeError, OverflowError, FeedbackDecodeError) as e:
        logger.warning("Review %s has unreadable feedback: %s", record.id, e)
        return AnalysisResult(summary=FEEDBACK_ERROR_SUMMARY, score=0, issues=[])


class ReviewOrchestrator:
    """Analyze, persist, retrieve and clear reviews.

    The executor runs retention cleanups. When none is given the orchestrator
    owns a single-worker pool and shuts it down in close().
    """

    def __init__(
        self,
        provider: BaseProvider,
        store: BaseStore,
        executor: Executor | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.store = store
        self.history_limit = history_limit
        self.retention_days = retention_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="prism-cleanup")

    def analyze(self, request: AnalysisRequest, session_id: str | None = None) -> AnalyzeResponse:
        result = self.provider.analyze(request)

        record = self.store.create(
            NewReview(
                session_id=session_id or None,
                code=request.code,
                language=result.detected_language or request.language or DEFAULT_LANGUAGE,
                focus=request.focus.value,
                feedback=json.dumps(result.to_dict()),
            )
        )
        logger.debug("Stored review %s (session=%s, score=%d)", record.id, record.session_id, result.score)

        self._schedule_cleanup()
        return AnalyzeResponse(review_id=record.id, result=result)

    def get_models(self) -> list[str]:
        return self.provider.list_models()

    def get_history(self, session_id: str | None = None, limit: int | None = None) -> list[HistoryEntry]:
        """Return a session's reviews newest first; ``session_id=None`` spans all sessions.

        ``limit`` defaults to history_limit. Entries whose stored feedback
        cannot be decoded are degraded individually instead of failing the read.
        """
        if limit is None:
            limit = self.history_limit
        records = self.store.list_by_session(session_id or None, limit=limit)
        return [self._to_entry(r) for r in records]

    def count_history(self, session_id: str | None = None) -> int:
        """Number of reviews stored for a session, regardless of any page limit."""
        return len(self.store.list_by_session(session_id or None, limit=None))

    def find_review(self, review_id: str, session_id: str | None) -> HistoryEntry | None:
        """Look a review up by id within one session's full history."""
        for record in self.store.list_by_session(session_id or None, limit=None):
            if record.id == review_id:
                return self._to_entry(record)
        return None

    def clear_history(self, session_id: str | None) -> int:
        if not session_id:
            return 0
        deleted = self.store.clear_by_session(session_id)
        logger.info("Cleared %d review(s) for session %s", deleted, session_id)
        return deleted

    def cleanup_old_reviews(self) -> int:
        """Delete reviews older than the retention horizon.

        Only runs against stores that opt into retention. Never raises: any
        failure is logged and the next analyze() will try again.
        """
        if not self.store.supports_retention:
            return 0
        cutoff = self._clock() - timedelta(days=self.retention_days)
        try:
            deleted = self.store.delete_older_than(cutoff)
        except Exception:
            logger.error("Retention cleanup failed", exc_info=True)
            return 0
        if deleted:
            logger.info("Retention cleanup removed %d review(s) older than %s", deleted, cutoff.isoformat())
        return deleted

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _schedule_cleanup(self) -> None:
        try:
            self._executor.submit(self.cleanup_old_reviews)
        except RuntimeError as e:
            # Executor already shut down (process exiting).
            logger.warning("Could not schedule retention cleanup: %s", e)

    @staticmethod
    def _to_entry(record: ReviewRecord) -> HistoryEntry:
        return HistoryEntry(
            id=record.id,
            session_id=record.session_id,
            code=record.code,
            language=record.language,
            focus=record.focus,
            created_at=record.created_at,
            result=_decode_feedback(record),
        )
