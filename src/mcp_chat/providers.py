from __future__ import annotations

import os
from enum import StrEnum
from typing import Final

from dotenv import load_dotenv

load_dotenv()


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


_ENV_VARS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
}

_BASE_URL_VARS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OPENAI_BASE_URL",
    Provider.ANTHROPIC: "ANTHROPIC_BASE_URL",
    Provider.GEMINI: "GEMINI_BASE_URL",
}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* or raise RuntimeError."""
    try:
        env_var = _ENV_VARS[provider]
    except KeyError:
        raise RuntimeError(f"No config for {provider!s}") from None

    try:
        return os.environ[env_var]
    except KeyError as exc:
        raise RuntimeError(f"{env_var} missing") from exc


def get_base_url(provider: Provider) -> str | None:
    """Return the endpoint override for *provider*, if one is configured."""
    env_var = _BASE_URL_VARS.get(provider)
    return (os.environ.get(env_var) or None) if env_var else None


__all__ = ["Provider", "get_api_key", "get_base_url"]
