"""Chat relay: forward a normalized chat request to a provider and stream the reply.

The relay adds nothing on top of the provider stream: fragments are passed
through in arrival order, one at a time. A failure mid-stream ends the
stream with an error event; fragments already delivered stay delivered.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping

from .errors import ProviderNotEnabledError
from .providers import ProviderRegistry, get_registry
from .schemas import ChatRequest

logger = logging.getLogger(__name__)


class ChatStream:
    """Finite, single-use sequence of text fragments from one provider call.

    Iterate it to completion or call :meth:`close` to abort; closing drops
    the underlying HTTP response. Once exhausted or closed it stays empty.
    """

    def __init__(self, fragments: Iterator[str], provider: str, model: str):
        self._fragments = fragments
        self.provider = provider
        self.model = model
        self.closed = False
        self.fragment_count = 0

    def __iter__(self) -> "ChatStream":
        return self

    def __next__(self) -> str:
        if self.closed:
            raise StopIteration
        try:
            fragment = next(self._fragments)
        except StopIteration:
            self.close()
            raise
        self.fragment_count += 1
        return fragment

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close = getattr(self._fragments, "close", None)
        if close is not None:
            close()


class ChatRelay:
    def __init__(self, registry: ProviderRegistry | None = None, env: Mapping[str, str] | None = None):
        self.registry = registry or get_registry()
        self.env = env

    def open_stream(self, request: ChatRequest) -> ChatStream:
        """Validate *request* and return its (not yet started) fragment stream.

        Raises :class:`ProviderNotEnabledError` before any provider call when
        the provider is disabled or unknown.
        """
        if not self.registry.is_enabled(request.provider, self.env):
            raise ProviderNotEnabledError(request.provider)

        handle = self.registry.get_model(request.provider, request.model, self.env)
        temperature = request.temperature if request.temperature is not None else self.registry.defaults.temperature
        max_tokens = request.max_tokens if request.max_tokens is not None else self.registry.defaults.max_tokens
        logger.info(
            "[chat] provider=%s model=%s messages=%d temperature=%s max_tokens=%s",
            request.provider,
            request.model,
            len(request.messages),
            temperature,
            max_tokens,
        )
        fragments = handle.stream(
            [m.to_provider() for m in request.messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return ChatStream(iter(fragments), provider=request.provider, model=request.model)


def stream_events(stream: ChatStream) -> Iterator[Dict[str, Any]]:
    """Wrap a fragment stream in token/done/error event envelopes."""
    try:
        for fragment in stream:
            yield {"type": "token", "token": fragment}
    except Exception as exc:
        logger.error(
            "[chat] provider=%s model=%s stream failed after %d fragment(s): %s",
            stream.provider,
            stream.model,
            stream.fragment_count,
            exc,
        )
        yield {"type": "error", "message": str(exc) or type(exc).__name__}
        return
    finally:
        stream.close()
    logger.debug("[chat] provider=%s sent %d fragment(s)", stream.provider, stream.fragment_count)
    yield {"type": "done"}
