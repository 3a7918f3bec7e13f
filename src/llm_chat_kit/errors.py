from __future__ import annotations

"""Error types shared by the relay, model lister and prompt library.

Each error carries the HTTP status the API layer answers with; the FastAPI
exception handler renders them all as ``{"error": <message>}``.
"""


class ChatKitError(Exception):
    status_code = 500


class UnknownProviderError(ChatKitError, ValueError):
    status_code = 400

    def __init__(self, provider: str):
        super().__init__(f"Unknown provider: {provider}")
        self.provider = provider


class ProviderNotEnabledError(ChatKitError):
    status_code = 400

    def __init__(self, provider: str):
        super().__init__(f'Provider "{provider}" is not enabled')
        self.provider = provider


class ProviderError(ChatKitError):
    """Transport or provider-side failure (unreachable host, non-2xx, error event)."""

    status_code = 502


class PromptNotFoundError(ChatKitError):
    status_code = 404

    def __init__(self, prompt_id: str):
        super().__init__(f'Prompt "{prompt_id}" not found')
        self.prompt_id = prompt_id


class ReadOnlyPromptError(ChatKitError):
    status_code = 403

    def __init__(self, prompt_id: str):
        super().__init__(f'Prompt "{prompt_id}" is built in and cannot be changed')
        self.prompt_id = prompt_id
