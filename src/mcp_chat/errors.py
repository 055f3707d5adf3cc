"""
Exceptions raised by mcp-chat.

Noisy provider tracebacks are translated into a unified `BackendError`,
while preserving the original exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

import anthropic
import openai

__all__: tuple[str, ...] = (
    "MCPChatError",
    "BackendError",
    "ToolHostConnectionError",
    "ToolInvocationError",
    "classify_error",
)


class MCPChatError(Exception):
    """Base class for all mcp-chat errors."""


class BackendError(MCPChatError, RuntimeError):
    """A chat completion request failed.

    Attributes:
        original_exc: The underlying provider exception, if any.
    """

    original_exc: Optional[Exception]

    def __init__(self, message: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.__cause__ = original_exc


class ToolHostConnectionError(MCPChatError, ConnectionError):
    """The tool host could not be started or the handshake failed."""


class ToolInvocationError(MCPChatError):
    """A single tool call could not be executed."""


API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIError,
    anthropic.APIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> BackendError:
    """Wrap an SDK exception in BackendError with a friendly, concise message."""
    log = logger or logging.getLogger("mcp_chat.errors")

    # RateLimitError and APIConnectionError are APIError subclasses
    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem - unable to reach the model provider"
    elif isinstance(exc, API_ERRORS):
        status = getattr(exc, "status_code", None)
        msg = f"Provider reported an error ({status})" if status else "Provider reported an error"
    else:
        msg = exc.__class__.__name__

    log.warning("Model backend request failed: %s: %s", msg, exc)
    return BackendError(f"{msg}: {exc}", exc)
