from __future__ import annotations

from anthropic import Anthropic
from anthropic.types import TextBlock

from prism_core.providers.base import BaseProvider


class AnthropicProvider(BaseProvider):
    MODEL = "claude-sonnet-4-20250514"
    FALLBACK_MODELS = ("claude-sonnet-4-20250514", "claude-3-7-sonnet-20250219", "claude-3-5-haiku-20241022")
    # Slightly higher than OpenAI's 0.2; the prompt alone pins the JSON shape.
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str | None = None):
        super().__init__(model)
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> str:
        response = self.client.messages.create(
            model=model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()

    def _list_models_api(self) -> list[str]:
        # Every entry of type "model" is served by the Messages API.
        return [m.id for m in self.client.models.list() if getattr(m, "type", "model") == "model"]
