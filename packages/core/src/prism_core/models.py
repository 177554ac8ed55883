"""Review domain models.

Wire dictionaries (to_dict/from_dict) use camelCase keys because they are
what the HTTP API, the MCP adapter and the stored feedback JSON exchange.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from prism_core.errors import FeedbackDecodeError, ValidationError


class Focus(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    READABILITY = "readability"
    BUGS = "bugs"

    @classmethod
    def values(cls) -> list[str]:
        return [f.value for f in cls]


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AnalysisRequest:
    """A single review request. Validated on construction."""

    code: str
    focus: Focus
    language: str | None = None
    model: str | None = None

    def __post_init__(self):
        if not isinstance(self.code, str) or not self.code.strip():
            raise ValidationError("code must be a non-empty string")
        try:
            focus = Focus(self.focus)
        except ValueError:
            raise ValidationError(f"Invalid focus {self.focus!r}. Must be one of: {', '.join(Focus.values())}")
        object.__setattr__(self, "focus", focus)


@dataclass
class Issue:
    line: int
    severity: Severity
    message: str
    suggestion: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Issue:
        if not isinstance(data, dict):
            raise FeedbackDecodeError(f"issue must be an object, got {type(data).__name__}")
        try:
            line = max(int(data.get("line") or 0), 0)
        except (TypeError, ValueError, OverflowError):
            line = 0
        try:
            severity = Severity(data.get("severity"))
        except ValueError:
            severity = Severity.INFO
        suggestion = data.get("suggestion")
        return cls(
            line=line,
            severity=severity,
            message=str(data.get("message", "")),
            suggestion=str(suggestion) if suggestion else None,
        )

    def to_dict(self) -> dict:
        d = {"line": self.line, "severity": self.severity.value, "message": self.message}
        if self.suggestion is not None:
            d["suggestion"] = self.suggestion
        return d


@dataclass
class AnalysisResult:
    """Structured review produced by an analysis provider."""

    summary: str
    score: int
    issues: list[Issue] = field(default_factory=list)
    detected_language: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AnalysisResult:
        """Build a result from backend or stored JSON.

        Lenient about values (score is clamped, unknown severities become
        ``info``) but strict about shape: raises FeedbackDecodeError when a
        required field is missing or of the wrong type.
        """
        if not isinstance(data, dict):
            raise FeedbackDecodeError(f"feedback must be an object, got {type(data).__name__}")
        summary = data.get("summary")
        score = data.get("score")
        issues = data.get("issues")
        if not isinstance(summary, str):
            raise FeedbackDecodeError("feedback is missing a string 'summary'")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise FeedbackDecodeError("feedback is missing a numeric 'score'")
        # json.loads accepts NaN, Infinity and overflowing literals like 1e400.
        if isinstance(score, float) and not math.isfinite(score):
            raise FeedbackDecodeError(f"feedback 'score' is not finite: {score}")
        if not isinstance(issues, list):
            raise FeedbackDecodeError("feedback is missing an 'issues' list")
        detected = data.get("detectedLanguage")
        return cls(
            summary=summary,
            score=min(max(int(round(score)), 0), 100),
            issues=[Issue.from_dict(i) for i in issues],
            detected_language=str(detected) if detected else None,
        )

    def to_dict(self) -> dict:
        d = {
            "summary": self.summary,
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
        }
        if self.detected_language is not None:
            d["detectedLanguage"] = self.detected_language
        return d


@dataclass
class AnalyzeResponse:
    """What analyze() hands back: the provider's result under the store-assigned id."""

    review_id: str
    result: AnalysisResult

    def to_dict(self) -> dict:
        return {"reviewId": self.review_id, **self.result.to_dict()}


@dataclass
class HistoryEntry:
    """A stored review flattened together with its decoded feedback."""

    id: str
    session_id: str | None
    code: str
    language: str
    focus: str
    created_at: datetime
    result: AnalysisResult

    @property
    def summary(self) -> str:
        return self.result.summary

    @property
    def score(self) -> int:
        return self.result.score

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "code": self.code,
            "language": self.language,
            "focus": self.focus,
            "createdAt": self.created_at.isoformat(),
            **self.result.to_dict(),
        }
