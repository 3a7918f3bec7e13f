from __future__ import annotations

"""Minimal streaming Claude client using the Anthropic Messages REST API.

We keep the dependency footprint small by using `requests` instead of the
official SDK. The Messages API takes system text as a top-level field, so
system messages are lifted out of the message list before sending.
"""

from typing import Any, Dict, Iterator, List, Tuple

from ..errors import ProviderError
from .base import LLMClient


class AnthropicClient(LLMClient):
    provider = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"  # required header

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

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ProviderError("Missing ANTHROPIC_API_KEY env variable")
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }

    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Dict[str, Any]:
        system, conversation = split_system(messages)
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": conversation,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "stream": True,
        }
        if system:
            payload["system"] = system
        return payload

    def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        resp = self._post_stream(self.API_URL, self.build_payload(messages, temperature, max_tokens), self._headers())
        for event in self._iter_sse_data(self._iter_lines(resp)):
            kind = event.get("type")
            if kind == "error":
                err = event.get("error") or {}
                raise ProviderError(f"anthropic stream error: {err.get('message') or err}")
            if kind == "content_block_delta":
                text = (event.get("delta") or {}).get("text")
                if text:
                    yield text
            elif kind == "message_stop":
                break


def split_system(messages: List[Dict[str, Any]]) -> Tuple[str, List[Dict[str, Any]]]:
    """Return (joined system text, remaining user/assistant messages)."""
    system_parts = [str(m.get("content", "")) for m in messages if m.get("role") == "system"]
    rest = [{"role": m["role"], "content": m.get("content", "")} for m in messages if m.get("role") != "system"]
    return "\n\n".join(p for p in system_parts if p), rest
