from __future__ import annotations

from typing import Any, Dict, Iterator, List

from ..errors import ProviderError
from .base import LLMClient


class OpenAIClient(LLMClient):
    """Tiny streaming wrapper around the OpenAI Chat Completion endpoint.

    We avoid the heavyweight `openai` SDK and rely on plain `requests`; the
    response is read as Server-Sent Events and each ``delta.content`` is
    yielded as one fragment.
    """

    provider = "openai"
    API_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: float | None = 60.0,
    ):
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.api_key = api_key
        self.base_url = (base_url or self.API_URL).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderError("Missing OPENAI_API_KEY env variable")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": True,
        }
        limit = max_tokens if max_tokens is not None else self.max_tokens
        # O-series reasoning models reject `temperature` and renamed the token limit.
        if self.model.startswith(("o1", "o3", "o4")):
            payload["max_completion_tokens"] = limit
        else:
            payload["max_tokens"] = limit
            payload["temperature"] = temperature if temperature is not None else self.temperature
        return payload

    def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        url = f"{self.base_url}/chat/completions"
        resp = self._post_stream(url, self.build_payload(messages, temperature, max_tokens), self._headers())
        for event in self._iter_sse_data(self._iter_lines(resp)):
            if "error" in event:
                err = event["error"]
                raise ProviderError(str(err.get("message") if isinstance(err, dict) else err))
            token = _extract_delta(event)
            if token:
                yield token


def _extract_delta(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    if not choices:
        return ""
    delta = choices[0].get("delta") or {}
    return str(delta.get("content") or "")
