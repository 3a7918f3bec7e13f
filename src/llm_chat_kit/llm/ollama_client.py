from __future__ import annotations

"""Client for a locally running Ollama server.

Ollama streams newline-delimited JSON objects from ``/api/chat`` and lists
installed models at ``/api/tags``. No API key is involved.
"""

import json
import logging
from typing import Any, Dict, Iterator, List

import requests

from ..errors import ProviderError
from .base import LLMClient

logger = logging.getLogger(__name__)


class OllamaClient(LLMClient):
    provider = "ollama"
    supports_model_listing = True
    LIST_TIMEOUT = 10

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:11434",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: float | None = 60.0,
    ):
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "stream": True,
            "options": {
                "temperature": temperature if temperature is not None else self.temperature,
                "num_predict": max_tokens if max_tokens is not None else self.max_tokens,
            },
        }

    def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        url = f"{self.base_url}/api/chat"
        resp = self._post_stream(url, self.build_payload(messages, temperature, max_tokens), {})
        for line in self._iter_lines(resp):
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping non-JSON stream line: %s", line)
                continue
            if event.get("error"):
                raise ProviderError(f"ollama error: {event['error']}")
            content = (event.get("message") or {}).get("content")
            if content:
                yield content
            if event.get("done"):
                break

    def list_models(self) -> List[str]:
        url = f"{self.base_url}/api/tags"
        try:
            resp = requests.get(url, timeout=self.LIST_TIMEOUT)
        except requests.RequestException as exc:
            raise ProviderError(f"Ollama not reachable at {self.base_url}: {exc}") from exc
        if not resp.ok:
            raise ProviderError(f"Ollama not reachable at {self.base_url} (HTTP {resp.status_code})")
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError(f"Malformed /api/tags response from {self.base_url}") from exc
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            raise ProviderError("Malformed /api/tags response: missing 'models' array")
        return [m["name"] for m in models if isinstance(m, dict) and m.get("name")]
