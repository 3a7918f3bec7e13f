"""Terminal chat client for the relay server."""

from .api import ApiError, ChatApiClient
from .session import ChatSession
from .storage import Conversation, LocalStorage, Message

__all__ = ["ApiError", "ChatApiClient", "ChatSession", "Conversation", "LocalStorage", "Message"]
