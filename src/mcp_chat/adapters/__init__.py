"""Pure transformation adapters for different model providers."""

from .openai import OpenAIRequestAdapter
from .anthropic import AnthropicRequestAdapter
from .gemini import GeminiRequestAdapter

__all__ = [
    "OpenAIRequestAdapter",
    "AnthropicRequestAdapter",
    "GeminiRequestAdapter",
]
