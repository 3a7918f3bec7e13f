from __future__ import annotations

"""Common interface for all LLM provider adapters.

Each concrete client implements a streaming ``stream_chat`` method that
accepts a list of messages (OpenAI-style: {"role": "user"|"assistant"|"system", "content": str})
and yields text fragments in the order the provider produces them.

The generators are lazy: nothing touches the network until the first
fragment is requested, and closing the generator closes the HTTP response.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

import requests

from ..errors import ProviderError

logger = logging.getLogger(__name__)


class LLMClient(ABC):
    """Abstract base class for language model clients."""

    provider = "base"
    supports_model_listing = False

    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: float | None = 60.0,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @abstractmethod
    def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:  # noqa: D401
        """Send a streaming chat request and yield reply fragments as they arrive."""
        ...

    def list_models(self) -> List[str]:  # noqa: D401
        """Return list of installed model names (local servers only)."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Shared HTTP helpers
    # ------------------------------------------------------------------
    def _post_stream(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> requests.Response:
        logger.info("Streaming %s completion from %s using model %s", self.provider, url, self.model)
        try:
            resp = requests.post(url, json=payload, headers=headers, stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"{self.provider} request failed: {exc}") from exc
        if not resp.ok:
            detail = _error_detail(resp)
            resp.close()
            raise ProviderError(f"{self.provider} returned {resp.status_code}: {detail}")
        return resp

    @staticmethod
    def _iter_lines(resp: requests.Response) -> Iterator[str]:
        """Yield decoded, non-empty lines; always closes *resp*."""
        try:
            for raw_line in resp.iter_lines():
                if not raw_line:
                    continue
                yield raw_line.decode("utf-8").strip()
        except requests.RequestException as exc:
            raise ProviderError(f"stream interrupted: {exc}") from exc
        finally:
            resp.close()

    @staticmethod
    def _iter_sse_data(lines: Iterator[str]) -> Iterator[Dict[str, Any]]:
        """Decode Server-Sent-Event ``data:`` lines into JSON payloads."""
        for line in lines:
            if not line.startswith("data:"):
                continue
            data = line[5:].strip()
            if not data or data == "[DONE]":
                continue
            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Skipping non-JSON stream line: %s", data)


def _error_detail(resp: requests.Response) -> str:
    """Best-effort extraction of a provider's error message from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or resp.reason or "").strip()[:500]
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            return str(err.get("message") or err)
        if err:
            return str(err)
    return str(data)[:500]
