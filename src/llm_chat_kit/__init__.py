"""Chat client and streaming relay for hosted and local LLM providers."""

__version__ = "0.1.0"
