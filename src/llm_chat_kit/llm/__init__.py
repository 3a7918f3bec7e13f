"""Streaming clients for the supported LLM providers."""

from .anthropic_client import AnthropicClient
from .base import LLMClient
from .gemini_client import GeminiClient
from .ollama_client import OllamaClient
from .openai_client import OpenAIClient

__all__ = [
    "LLMClient",
    "OpenAIClient",
    "AnthropicClient",
    "GeminiClient",
    "OllamaClient",
]
