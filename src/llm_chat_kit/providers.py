from __future__ import annotations

"""Provider registry: which providers exist, which are usable, and how to reach them.

A provider is *enabled* when it needs no credential (the local Ollama
server) or when its credential variable is non-empty in the environment
snapshot passed in. Everything here is a pure function of the static
config plus that snapshot; the registry never mutates after load.
"""

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from .config import ChatDefaults, BuiltinPrompt, ProviderConfig, StaticConfig, load_static_config
from .errors import UnknownProviderError
from .llm import AnthropicClient, GeminiClient, LLMClient, OllamaClient, OpenAIClient


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OLLAMA = "ollama"

    @classmethod
    def parse(cls, value: Union[str, "ProviderName"]) -> "ProviderName":
        try:
            return cls(value)
        except ValueError:
            raise UnknownProviderError(str(value)) from None


ClientFactory = Callable[..., LLMClient]


def _credential(config: ProviderConfig, env: Mapping[str, str]) -> Optional[str]:
    return env.get(config.key_name) if config.key_name else None


# ---------------------------------------------------------------------------
# One constructor per provider
# ---------------------------------------------------------------------------


def _openai(config: ProviderConfig, model_id: str, env: Mapping[str, str], **options: Any) -> LLMClient:
    return OpenAIClient(api_key=_credential(config, env), model=model_id, base_url=config.base_url, **options)


def _anthropic(config: ProviderConfig, model_id: str, env: Mapping[str, str], **options: Any) -> LLMClient:
    return AnthropicClient(api_key=_credential(config, env), model=model_id, **options)


def _google(config: ProviderConfig, model_id: str, env: Mapping[str, str], **options: Any) -> LLMClient:
    return GeminiClient(api_key=_credential(config, env), model=model_id, **options)


def _ollama(config: ProviderConfig, model_id: str, env: Mapping[str, str], **options: Any) -> LLMClient:
    return OllamaClient(model=model_id, base_url=config.base_url or "http://localhost:11434", **options)


CLIENT_FACTORIES: Dict[ProviderName, ClientFactory] = {
    ProviderName.OPENAI: _openai,
    ProviderName.ANTHROPIC: _anthropic,
    ProviderName.GOOGLE: _google,
    ProviderName.OLLAMA: _ollama,
}


@dataclass(frozen=True)
class ModelHandle:
    """A provider client bound to one model id."""

    provider: ProviderName
    model_id: str
    client: LLMClient

    def stream(
        self,
        messages: List[Dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        return self.client.stream_chat(messages, temperature=temperature, max_tokens=max_tokens)


def _key(provider: Union[str, ProviderName]) -> str:
    return provider.value if isinstance(provider, ProviderName) else str(provider)


class ProviderRegistry:
    """Read-only view over the static provider table."""

    def __init__(
        self,
        config: StaticConfig,
        factories: Mapping[ProviderName, ClientFactory] | None = None,
        request_timeout: float | None = 60.0,
    ):
        for provider in config.providers:
            ProviderName.parse(provider.name)
        self._configs = MappingProxyType({p.name: p for p in config.providers})
        self._order = tuple(p.name for p in config.providers)
        self._factories = MappingProxyType({**CLIENT_FACTORIES, **(factories or {})})
        self.defaults: ChatDefaults = config.defaults
        self.prompts: tuple[BuiltinPrompt, ...] = config.prompts
        self.request_timeout = request_timeout

    @classmethod
    def load(
        cls,
        path: str | None = None,
        env: Mapping[str, str] | None = None,
        factories: Mapping[ProviderName, ClientFactory] | None = None,
        request_timeout: float | None = 60.0,
    ) -> "ProviderRegistry":
        return cls(load_static_config(path, env), factories=factories, request_timeout=request_timeout)

    @property
    def names(self) -> List[str]:
        return list(self._order)

    def get_config(self, provider: Union[str, ProviderName]) -> Optional[ProviderConfig]:
        return self._configs.get(_key(provider))

    def is_enabled(self, provider: Union[str, ProviderName], env: Mapping[str, str] | None = None) -> bool:
        config = self.get_config(provider)
        if config is None:
            return False
        # Local provider has no credential - always enabled
        if config.key_name is None:
            return True
        env = os.environ if env is None else env
        return bool(env.get(config.key_name))

    def enabled_providers(self, env: Mapping[str, str] | None = None) -> List[str]:
        return [name for name in self._order if self.is_enabled(name, env)]

    def get_client(
        self,
        provider: Union[str, ProviderName],
        model_id: str = "",
        env: Mapping[str, str] | None = None,
        **options: Any,
    ) -> LLMClient:
        name = ProviderName.parse(_key(provider))
        config = self.get_config(name)
        if config is None:
            raise UnknownProviderError(name.value)
        env = os.environ if env is None else env
        options.setdefault("temperature", self.defaults.temperature)
        options.setdefault("max_tokens", self.defaults.max_tokens)
        options.setdefault("timeout", self.request_timeout)
        return self._factories[name](config, model_id, env, **options)

    def get_model(
        self,
        provider: Union[str, ProviderName],
        model_id: str,
        env: Mapping[str, str] | None = None,
    ) -> ModelHandle:
        name = ProviderName.parse(_key(provider))
        return ModelHandle(provider=name, model_id=model_id, client=self.get_client(name, model_id, env))


@lru_cache()
def get_registry() -> ProviderRegistry:
    """Process-wide registry, loaded on first use."""
    timeout = float(os.environ.get("REQUEST_TIMEOUT", "60"))
    return ProviderRegistry.load(request_timeout=timeout)


# ---------------------------------------------------------------------------
# Module-level shortcuts over the process-wide registry
# ---------------------------------------------------------------------------


def is_enabled(provider: str, env: Mapping[str, str] | None = None) -> bool:
    return get_registry().is_enabled(provider, env)


def enabled_providers(env: Mapping[str, str] | None = None) -> List[str]:
    return get_registry().enabled_providers(env)


def get_config(provider: str) -> Optional[ProviderConfig]:
    return get_registry().get_config(provider)


def get_model(provider: str, model_id: str, env: Mapping[str, str] | None = None) -> ModelHandle:
    return get_registry().get_model(provider, model_id, env)
