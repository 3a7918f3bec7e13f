from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional

TEMPERATURE_RANGE = (0.0, 2.0)
MAX_TOKENS_RANGE = (256, 8192)

_WIRE_NAMES = {"max_tokens": "maxTokens", "active_prompt_id": "activePromptId"}


def _clamp(value, low, high):
    return max(low, min(high, value))


@dataclass(frozen=True)
class ChatSettings:
    """Client-side chat settings. The server never stores these."""

    provider: str = "ollama"  # replaced by the server's first enabled provider on first run
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 2048
    active_prompt_id: str = "default"

    def updated(self, **changes: Any) -> "ChatSettings":
        """Return a copy with *changes* applied and numbers clamped into range."""
        new = replace(self, **changes)
        return replace(
            new,
            temperature=float(_clamp(new.temperature, *TEMPERATURE_RANGE)),
            max_tokens=int(_clamp(new.max_tokens, *MAX_TOKENS_RANGE)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {_WIRE_NAMES.get(k, k): v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ChatSettings"]:
        """Parse a stored record; anything malformed yields ``None``."""
        if not isinstance(data, dict):
            return None
        try:
            provider = data["provider"]
            model = data["model"]
            temperature = data["temperature"]
            max_tokens = data["maxTokens"]
            active_prompt_id = data["activePromptId"]
        except KeyError:
            return None
        if not all(isinstance(v, str) for v in (provider, model, active_prompt_id)):
            return None
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            return None
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
            return None
        return cls(
            provider=provider,
            model=model,
            temperature=float(temperature),
            max_tokens=max_tokens,
            active_prompt_id=active_prompt_id,
        )
