"""Gemini adapter for pure request/response transformations.

Since Gemini uses OpenAI-compatible endpoints, we just re-export the OpenAI adapter.
"""

from .openai import OpenAIRequestAdapter

GeminiRequestAdapter = OpenAIRequestAdapter
