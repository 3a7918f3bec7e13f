"""Client-side conversation and settings state.

The session owns one :class:`ChatSettings` value and one transcript. Both are
persisted explicitly at the points where they change: settings on every
update, the transcript before and after each streamed reply.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..settings import ChatSettings
from .api import ApiError, ChatApiClient
from .storage import Conversation, LocalStorage, Message, now_ms

logger = logging.getLogger(__name__)

FALLBACK_SYSTEM_PROMPT = "You are a helpful assistant."


class StreamInProgressError(RuntimeError):
    pass


class ChatSession:
    def __init__(self, api: ChatApiClient, storage: LocalStorage):
        self.api = api
        self.storage = storage
        saved = storage.get_settings()
        self._has_saved_settings = saved is not None
        self.settings: ChatSettings = saved or ChatSettings()
        self.conversation: Conversation = storage.get_conversation() or Conversation()
        self.providers: List[Dict[str, Any]] = []
        self.prompts: List[Dict[str, Any]] = []
        self.is_streaming = False

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def update_settings(self, **changes: Any) -> ChatSettings:
        self.settings = self.settings.updated(**changes)
        self.storage.save_settings(self.settings)
        self._has_saved_settings = True
        return self.settings

    @property
    def enabled_provider_names(self) -> List[str]:
        return [p["name"] for p in self.providers]

    def sync_providers(self) -> List[Dict[str, Any]]:
        """Fetch the enabled providers and repair settings that point elsewhere.

        A saved provider that is no longer enabled falls back to the first
        enabled one. Server defaults only apply when nothing was saved.
        """
        data = self.api.get_providers()
        self.providers = data.get("providers", [])
        defaults = data.get("defaults") or {}

        changes: Dict[str, Any] = {}
        if not self._has_saved_settings:
            changes.update(temperature=defaults.get("temperature", self.settings.temperature),
                           max_tokens=defaults.get("maxTokens", self.settings.max_tokens))
            if defaults.get("provider"):
                changes.update(provider=defaults["provider"], model="")
        names = self.enabled_provider_names
        if names and self.settings.provider not in names:
            logger.info("Provider %s is not enabled; falling back to %s", self.settings.provider, names[0])
            changes.update(provider=defaults.get("provider") or names[0], model="")
        if changes:
            self.update_settings(**changes)
        return self.providers

    def select_provider(self, provider: str) -> ChatSettings:
        if self.providers and provider not in self.enabled_provider_names:
            raise ValueError(f'Provider "{provider}" is not enabled')
        return self.update_settings(provider=provider, model="")

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------
    def load_prompts(self) -> List[Dict[str, Any]]:
        self.prompts = self.api.list_prompts()
        return self.prompts

    @property
    def active_prompt(self) -> Optional[Dict[str, Any]]:
        """Saved prompt id, else the default prompt, else the first one."""
        by_id = {p["id"]: p for p in self.prompts}
        return (
            by_id.get(self.settings.active_prompt_id)
            or next((p for p in self.prompts if p.get("isDefault")), None)
            or (self.prompts[0] if self.prompts else None)
        )

    def select_prompt(self, prompt_id: str) -> Dict[str, Any]:
        prompt = next((p for p in self.prompts if p["id"] == prompt_id), None)
        if prompt is None:
            raise KeyError(prompt_id)
        self.update_settings(active_prompt_id=prompt_id)
        return prompt

    def create_prompt(self, name: str, text: str) -> Dict[str, Any]:
        prompt = self.api.create_prompt(name, text)
        self.prompts.append(prompt)
        return prompt

    def update_prompt(self, prompt_id: str, name: str, text: str) -> Dict[str, Any]:
        prompt = self.api.update_prompt(prompt_id, name, text)
        self.prompts = [prompt if p["id"] == prompt_id else p for p in self.prompts]
        return prompt

    def delete_prompt(self, prompt_id: str) -> None:
        self.api.delete_prompt(prompt_id)
        self.prompts = [p for p in self.prompts if p["id"] != prompt_id]
        if self.settings.active_prompt_id == prompt_id:
            fallback = self.active_prompt
            if fallback is not None:
                self.update_settings(active_prompt_id=fallback["id"])

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    @property
    def messages(self) -> List[Message]:
        return self.conversation.messages

    def _save_conversation(self) -> None:
        self.conversation.updated_at = now_ms()
        self.storage.save_conversation(self.conversation)

    def build_request(self) -> Dict[str, Any]:
        """Wire payload for the transcript so far, system prompt first, placeholder excluded."""
        prompt = self.active_prompt
        system_text = prompt["prompt"] if prompt else FALLBACK_SYSTEM_PROMPT
        history = [{"role": m.role, "content": m.content} for m in self.messages[:-1]]
        return {
            "provider": self.settings.provider,
            "model": self.settings.model,
            "messages": [{"role": "system", "content": system_text}, *history],
            "temperature": self.settings.temperature,
            "maxTokens": self.settings.max_tokens,
        }

    def send(self, content: str, on_fragment: Optional[Callable[[str], None]] = None) -> Message:
        """Send *content* and stream the reply into a new assistant message.

        Errors do not raise: the assistant message content becomes
        ``Error: <message>`` and is returned like any other reply.
        """
        if self.is_streaming:
            raise StreamInProgressError("A reply is still streaming")

        self.messages.append(Message(role="user", content=content))
        reply = Message(role="assistant", content="")
        self.messages.append(reply)
        self.is_streaming = True
        self._save_conversation()

        try:
            for fragment in self.api.stream_chat(self.build_request()):
                reply.content += fragment
                if on_fragment is not None:
                    on_fragment(fragment)
        except ApiError as exc:
            logger.warning("Chat stream failed: %s", exc)
            reply.content = f"Error: {exc}"
        finally:
            self.is_streaming = False
            self._save_conversation()
        return reply

    def clear(self) -> None:
        self.conversation = Conversation()
        self.storage.clear_conversation()
