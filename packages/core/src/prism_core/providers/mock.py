"""Mock provider — the default when no API key is configured.

Using a MockProvider rather than None lets the orchestrator always call
provider.analyze() without conditional checks, and keeps the whole pipeline
(persistence, history, MCP) usable on a machine with no credentials.
"""

from __future__ import annotations

from prism_core.models import AnalysisRequest, AnalysisResult
from prism_core.providers.base import BaseProvider, mock_result

MOCK_MODEL = "mock-model"


class MockProvider(BaseProvider):
    """Answers locally. Model listing still goes through BaseProvider.list_models."""

    MODEL = MOCK_MODEL
    FALLBACK_MODELS = (MOCK_MODEL,)

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        # Replaces the prompt → _call_api → _parse pipeline entirely.
        return mock_result(request)

    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> str:
        """Never reached: analyze() is overridden and there is no backend to call."""
        raise NotImplementedError("MockProvider has no backend")

    def _list_models_api(self) -> list[str]:
        return [MOCK_MODEL]
