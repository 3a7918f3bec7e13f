"""Test doubles shared by the test modules (no network anywhere)."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from llm_chat_kit.llm.base import LLMClient


class FakeResponse:
    """Just enough of ``requests.Response`` for the clients under test."""

    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        lines: Iterable[str] = (),
        text: str = "",
    ):
        self.status_code = status_code
        self._json = json_data
        self._lines = list(lines)
        self.text = text
        self.reason = "Error" if status_code >= 400 else "OK"
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json

    def iter_lines(self):
        for line in self._lines:
            yield line.encode("utf-8")

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def sse(payload: Dict[str, Any]) -> str:
    return "data: " + json.dumps(payload)


class FakeLLMClient(LLMClient):
    provider = "fake"

    def __init__(self, model: str, fragments: Iterable[str], error: Optional[Exception] = None, **options: Any):
        super().__init__(model=model, **options)
        self.fragments = list(fragments)
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.finished = False

    def stream_chat(self, messages, temperature=None, max_tokens=None):
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        try:
            for fragment in self.fragments:
                yield fragment
            if self.error is not None:
                raise self.error
        finally:
            self.finished = True


class FakeFactory:
    """Client factory that records every client it builds."""

    def __init__(self, fragments: Iterable[str] = ("Hel", "lo", "!"), error: Optional[Exception] = None):
        self.fragments = list(fragments)
        self.error = error
        self.clients: List[FakeLLMClient] = []

    def __call__(self, config, model_id, env, **options):
        client = FakeLLMClient(model_id, self.fragments, self.error, **options)
        self.clients.append(client)
        return client
