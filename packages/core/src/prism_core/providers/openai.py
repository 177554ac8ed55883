from __future__ import annotations

from openai import OpenAI

from prism_core.providers.base import BaseProvider

# Model families served by the chat completions endpoint used in _call_api.
_CHAT_PREFIXES = ("gpt-", "chatgpt-", "o1", "o3", "o4")
_NON_CHAT_MARKERS = ("instruct", "audio", "realtime", "tts", "transcribe", "search", "image", "embedding")


class OpenAIProvider(BaseProvider):
    MODEL = "gpt-4o"
    FALLBACK_MODELS = ("gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini")
    # Low temperature keeps the JSON structure stable across calls.
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None):
        super().__init__(model)
        self.client = OpenAI(api_key=api_key)

    def _call_api(self, model: str, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    def _list_models_api(self) -> list[str]:
        return [m.id for m in self.client.models.list()]

    def _supports_generation(self, model_id: str) -> bool:
        if not model_id.startswith(_CHAT_PREFIXES):
            return False
        return not any(marker in model_id for marker in _NON_CHAT_MARKERS)
