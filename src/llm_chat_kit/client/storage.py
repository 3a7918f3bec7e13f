"""Best-effort local persistence for the terminal client.

Mirrors a browser's local storage: each record lives under a fixed key as a
JSON document (one file per key). Read failures and corrupt documents are
treated as "nothing saved"; write failures are logged and dropped.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from ..settings import ChatSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "chat-ui-settings"
CONVERSATION_KEY = "chat-ui-conversation"

Role = Literal["user", "assistant", "system"]
_ROLES = ("user", "assistant", "system")


def now_ms() -> int:
    return int(time.time() * 1000)


def default_storage_dir() -> Path:
    return Path(os.environ.get("CHAT_KIT_HOME") or Path.home() / ".llm_chat_kit")


@dataclass
class Message:
    role: Role
    content: str
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


@dataclass
class Conversation:
    messages: List[Message] = field(default_factory=list)
    updated_at: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {"messages": [m.to_dict() for m in self.messages], "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Conversation"]:
        if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
            return None
        messages: List[Message] = []
        for item in data["messages"]:
            if not isinstance(item, dict) or item.get("role") not in _ROLES or not isinstance(item.get("content"), str):
                return None
            timestamp = item.get("timestamp")
            messages.append(
                Message(role=item["role"], content=item["content"], timestamp=timestamp if isinstance(timestamp, int) else 0)
            )
        updated_at = data.get("updatedAt")
        return cls(messages=messages, updated_at=updated_at if isinstance(updated_at, int) else 0)


class LocalStorage:
    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory else default_storage_dir()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    # ------------------------------------------------------------------
    # Raw key/value access
    # ------------------------------------------------------------------
    def get_item(self, key: str) -> Any:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fp:
                return json.load(fp)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable %s: %s", path, exc)
            return None

    def set_item(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as fp:
                json.dump(value, fp)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error("Failed to clear %s: %s", key, exc)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def get_settings(self) -> Optional[ChatSettings]:
        return ChatSettings.from_dict(self.get_item(SETTINGS_KEY))

    def save_settings(self, settings: ChatSettings) -> None:
        self.set_item(SETTINGS_KEY, settings.to_dict())

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    def get_conversation(self) -> Optional[Conversation]:
        return Conversation.from_dict(self.get_item(CONVERSATION_KEY))

    def save_conversation(self, conversation: Conversation) -> None:
        self.set_item(CONVERSATION_KEY, conversation.to_dict())

    def clear_conversation(self) -> None:
        self.remove_item(CONVERSATION_KEY)

    def clear_all(self) -> None:
        self.remove_item(SETTINGS_KEY)
        self.remove_item(CONVERSATION_KEY)
