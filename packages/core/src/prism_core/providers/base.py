"""Base provider implementing the Template Method pattern.

All providers share the same analysis algorithm:
    analyze() → _build_system_prompt() + _build_user_prompt()
              → _call_api()   ← only this differs per provider
              → _parse()
    list_models() → _list_models_api() → _supports_generation() filter

Subclasses implement:
  - __init__: store the SDK client and the default model
  - _call_api: make one raw API call and return the text response
  - _list_models_api: return the backend's model identifiers

The backend is called exactly once per analysis. Any failure (network,
timeout, non-JSON or wrongly shaped output) is answered with the mock
result, so analyze() never raises.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod

from prism_core.errors import FeedbackDecodeError, ProviderUnavailable
from prism_core.models import AnalysisRequest, AnalysisResult, Focus, Issue, Severity

logger = logging.getLogger(__name__)

MOCK_SCORE = 88
MOCK_TAG = "(MOCK)"

_MAX_TOKENS = 4096

_FOCUS_GUIDANCE = {
    Focus.SECURITY: "injection flaws, XSS, authentication and authorization gaps, secrets in code, unsafe deserialization, data exposure",
    Focus.PERFORMANCE: "algorithmic complexity, unnecessary allocations or copies, repeated work inside loops, blocking I/O, missing caching",
    Focus.READABILITY: "naming, function length and structure, duplication, comments and documentation, idiomatic use of the language",
    Focus.BUGS: "logic errors, off-by-one mistakes, unhandled edge cases, null or undefined access, incorrect error handling, race conditions",
}


def mock_result(request: AnalysisRequest, reason: str = "No API key provided.") -> AnalysisResult:
    """Deterministic placeholder review, tagged so it is never mistaken for a real one."""
    return AnalysisResult(
        summary=f"{MOCK_TAG} Analyzed {request.language or 'code'} for {request.focus.value}. {reason}",
        score=MOCK_SCORE,
        issues=[
            Issue(
                line=2,
                severity=Severity.WARNING,
                message="This is a mock issue. Configure an API key to see real results.",
                suggestion="const real = true;",
            )
        ],
    )


class BaseProvider(ABC):
    MODEL: str = ""
    FALLBACK_MODELS: tuple[str, ...] = ()
    TEMPERATURE: float = 0.2
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str | None = None):
        self.model = model or self.MODEL

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Review one snippet and return a structured result.

        Concrete here because the algorithm is identical for every provider:
        build prompts → one API call → parse JSON response.
        """
        system = self._build_system_prompt(request.focus)
        user = self._build_user_prompt(request)
        model = request.model or self.model
        try:
            raw = self._call_api(model, system, user)
            return self._parse(raw)
        except Exception as e:
            logger.warning(
                "%s analysis failed (%s: %s). Falling back to mock result.",
                self.__class__.__name__,
                type(e).__name__,
                e,
            )
            return mock_result(request, reason="Analysis backend unavailable.")

    def list_models(self) -> list[str]:
        """Return the backend models usable for analysis, or FALLBACK_MODELS."""
        try:
            models = [m for m in self._list_models_api() if self._supports_generation(m)]
        except Exception as e:
            logger.warning("%s could not list models: %s", self.__class__.__name__, e)
            return list(self.FALLBACK_MODELS)
        if not models:
            logger.warning("%s returned no generation-capable models.", self.__class__.__name__)
            return list(self.FALLBACK_MODELS)
        return sorted(models)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        It should raise on failure; analyze() handles fallback and logging.
        """

    @abstractmethod
    def _list_models_api(self) -> list[str]:
        """Return the identifiers of every model the backend advertises."""

    def _supports_generation(self, model_id: str) -> bool:
        """Whether a model supports the generation call made by _call_api."""
        return True

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self, focus: Focus) -> str:
        return f"""You are Prism, an elite code review AI.
Your goal is to review the code with a focus on: {focus.value.upper()}.
Pay particular attention to: {_FOCUS_GUIDANCE[focus]}.

Return ONLY valid JSON matching this structure:
{{
  "summary": "Brief high-level summary",
  "score": <integer 0-100, higher is better>,
  "detectedLanguage": "<programming language of the code>",
  "issues": [
    {{
      "line": <line number (integer, 1-based)>,
      "severity": "info" | "warning" | "critical",
      "message": "Short explanation",
      "suggestion": "Refactored code snippet if applicable (optional)"
    }}
  ]
}}
No markdown, no conversation. Just the JSON."""

    def _build_user_prompt(self, request: AnalysisRequest) -> str:
        language = f" ({request.language})" if request.language else ""
        return f"Code to review{language}:\n\n{request.code}"

    def _parse(self, raw: str | None) -> AnalysisResult:
        """Parse the model's raw text into an AnalysisResult.

        Raises ProviderUnavailable on empty, non-JSON or wrongly shaped output.
        """
        if not raw:
            raise ProviderUnavailable("empty response")
        # Strip only the outer ```json ... ``` fence that the model may wrap
        # the response in, NOT backticks inside suggestion values.
        cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            return AnalysisResult.from_dict(json.loads(cleaned))
        except json.JSONDecodeError as e:
            raise ProviderUnavailable(f"response is not JSON: {raw[:200]}") from e
        except FeedbackDecodeError as e:
            raise ProviderUnavailable(f"response has the wrong shape: {e}") from e
