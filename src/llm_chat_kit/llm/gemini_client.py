from __future__ import annotations

"""Streaming wrapper around Google Gemini via the `google-generativeai` SDK.
If the SDK is not installed, we raise a helpful error message when the
client is first used.
"""

from typing import Any, Dict, Iterator, List

from ..errors import ProviderError
from .anthropic_client import split_system
from .base import LLMClient


class GeminiClient(LLMClient):
    provider = "google"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: float | None = 60.0,
    ):
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.api_key = api_key

    def _model_handle(self, system: str):
        if not self.api_key:
            raise ProviderError("Missing GOOGLE_GENERATIVE_AI_API_KEY env variable")
        try:
            import google.generativeai as genai  # noqa: WPS433 (dynamic import)
        except ImportError as exc:  # pragma: no cover
            raise ProviderError("google-generativeai package not installed") from exc
        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel(self.model, system_instruction=system or None)

    @staticmethod
    def to_contents(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # Gemini calls the assistant role "model"
        return [
            {"role": "model" if m["role"] == "assistant" else "user", "parts": [m.get("content", "")]}
            for m in messages
        ]

    def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        system, conversation = split_system(messages)
        model_handle = self._model_handle(system)
        try:
            response = model_handle.generate_content(
                self.to_contents(conversation),
                generation_config={
                    "temperature": temperature if temperature is not None else self.temperature,
                    "max_output_tokens": max_tokens if max_tokens is not None else self.max_tokens,
                },
                stream=True,
                request_options={"timeout": self.timeout} if self.timeout else None,
            )
            for chunk in response:
                text = _chunk_text(chunk)
                if text:
                    yield text
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"google request failed: {exc}") from exc


def _chunk_text(chunk: Any) -> str:
    # `chunk.text` raises when a candidate has no parts (e.g. safety stop),
    # so read the first candidate's parts directly.
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") for part in parts)
