"""Runtime configuration read from the environment (and a local ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final, Mapping, Optional

from mcp_chat.providers import Provider

__all__ = ["Settings", "DEFAULT_MODEL", "DEFAULT_MAX_TOKENS"]

DEFAULT_MODEL: Final = "qwen-max"
DEFAULT_MAX_TOKENS: Final = 1000


@dataclass(frozen=True)
class Settings:
    """Model backend and logging settings for one CLI run."""

    provider: Provider = Provider.OPENAI
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from ``MCP_CHAT_*`` variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``, which
                already holds ``.env`` values loaded by :mod:`mcp_chat.providers`.

        Raises:
            ValueError: If a variable holds an unusable value.
        """
        if environ is None:
            environ = os.environ

        raw_provider = environ.get("MCP_CHAT_PROVIDER", Provider.OPENAI.value)
        try:
            provider = Provider(raw_provider.strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in Provider)
            raise ValueError(
                f"MCP_CHAT_PROVIDER must be one of {choices}; got {raw_provider!r}"
            ) from None

        raw_max_tokens = environ.get("MCP_CHAT_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))
        try:
            max_tokens = int(raw_max_tokens)
        except ValueError:
            raise ValueError(
                f"MCP_CHAT_MAX_TOKENS must be an integer; got {raw_max_tokens!r}"
            ) from None
        if max_tokens <= 0:
            raise ValueError(f"MCP_CHAT_MAX_TOKENS must be positive; got {max_tokens}")

        raw_level = environ.get("MCP_CHAT_LOG_LEVEL", "WARNING").strip().upper()
        log_level = logging.getLevelName(raw_level)
        if not isinstance(log_level, int):
            raise ValueError(f"MCP_CHAT_LOG_LEVEL is not a log level: {raw_level!r}")

        return cls(
            provider=provider,
            model=environ.get("MCP_CHAT_MODEL") or DEFAULT_MODEL,
            max_tokens=max_tokens,
            log_level=log_level,
        )
