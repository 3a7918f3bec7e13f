from __future__ import annotations

"""Static provider/prompt configuration and environment-driven runtime config.

The provider table lives in ``config.yaml`` next to this module and is read
once. Everything mutable about a running process (database URL, log level,
bind address) comes from the environment via :class:`AppConfig`.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

CONFIG_PATH = Path(__file__).with_name("config.yaml")
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_DATABASE_URL = "sqlite:///./llm_chat_kit.db"


@dataclass(frozen=True)
class ProviderConfig:
    """One provider entry from ``config.yaml``."""

    name: str
    key_name: Optional[str]
    docs_url: str
    base_url: Optional[str] = None
    models: Tuple[str, ...] = ()

    @property
    def needs_credential(self) -> bool:
        return self.key_name is not None


@dataclass(frozen=True)
class ChatDefaults:
    temperature: float = 0.7
    max_tokens: int = 2048


@dataclass(frozen=True)
class BuiltinPrompt:
    id: str
    name: str
    prompt: str
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "prompt": self.prompt, "isDefault": self.is_default}


@dataclass(frozen=True)
class StaticConfig:
    providers: Tuple[ProviderConfig, ...]
    defaults: ChatDefaults
    prompts: Tuple[BuiltinPrompt, ...] = ()


def load_static_config(path: Path | str | None = None, env: Mapping[str, str] | None = None) -> StaticConfig:
    """Parse the YAML provider table.

    ``OLLAMA_BASE_URL`` in *env* replaces the configured base URL of any
    provider that has one and needs no credential (the local server).
    """

    env = os.environ if env is None else env
    with open(path or CONFIG_PATH, "r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}

    providers: List[ProviderConfig] = []
    for name, entry in (raw.get("providers") or {}).items():
        entry = entry or {}
        base_url = entry.get("base_url")
        if entry.get("key_name") is None:
            base_url = env.get("OLLAMA_BASE_URL") or base_url or DEFAULT_OLLAMA_BASE_URL
        providers.append(
            ProviderConfig(
                name=name,
                key_name=entry.get("key_name"),
                docs_url=entry.get("docs_url", ""),
                base_url=base_url.rstrip("/") if base_url else None,
                models=tuple(entry.get("models") or ()),
            )
        )

    defaults_raw = raw.get("defaults") or {}
    defaults = ChatDefaults(
        temperature=float(defaults_raw.get("temperature", ChatDefaults.temperature)),
        max_tokens=int(defaults_raw.get("max_tokens", ChatDefaults.max_tokens)),
    )

    prompts = tuple(
        BuiltinPrompt(
            id=str(p["id"]),
            name=p["name"],
            prompt=p["prompt"].strip(),
            is_default=bool(p.get("is_default", False)),
        )
        for p in raw.get("prompts") or []
    )
    return StaticConfig(providers=tuple(providers), defaults=defaults, prompts=prompts)


@dataclass
class AppConfig:
    """Process-level settings read from environment variables."""

    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    request_timeout: float = 60.0
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        env = os.environ if env is None else env
        origins = env.get("ALLOWED_ORIGINS")
        return cls(
            database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            host=env.get("HOST", "127.0.0.1"),
            port=int(env.get("PORT", "8000")),
            request_timeout=float(env.get("REQUEST_TIMEOUT", "60")),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else ["*"],
        )
