"""
Model backends: chat-completion clients behind one create_completion() call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message as AnthropicMessage
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from mcp_chat.adapters import (
    AnthropicRequestAdapter,
    GeminiRequestAdapter,
    OpenAIRequestAdapter,
)
from mcp_chat.errors import BackendError, classify_error
from mcp_chat.params import merge_params
from mcp_chat.providers import Provider, get_api_key, get_base_url
from mcp_chat.response import ChatResponse
from mcp_chat.types import Message, ToolSpec


class RequestAdapter(Protocol):
    """Protocol for adapting between typed messages and provider-specific format."""

    def to_provider(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert typed messages and normalized params to provider-specific request format."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...


class ModelBackend(ABC):
    """
    Abstract base class for async-first chat-completion clients.
    """

    def __init__(
        self,
        model: str,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> None:
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__
        self.defaults = dict(defaults or {})

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
    ) -> Any:
        """
        Send one request to the provider and return its raw response.

        Args:
            messages: The conversation so far.
            params: Normalized parameters for the completion request.
        """
        ...

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    async def create_completion(
        self,
        messages: Sequence[Message],
        *,
        tools: Sequence[ToolSpec] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        max_tokens: int | None = None,
    ) -> ChatResponse:
        """
        Request one completion.

        Raises:
            BackendError: If the request failed for any reason.
        """
        params: dict[str, Any] = {"max_tokens": max_tokens}
        if tools:
            params["tools"] = list(tools)
            params["tool_choice"] = tool_choice
        merged = merge_params(self.defaults, params)
        try:
            raw = await self._chat_impl(messages, merged)
            return self.adapter.from_provider(raw)
        except BackendError:
            raise
        except Exception as exc:
            raise classify_error(exc, self.logger) from exc

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close the underlying async HTTP client. Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "ModelBackend":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class OpenAILLM(ModelBackend):
    """
    OpenAI chat-completions backend (also any OpenAI-compatible endpoint).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name, defaults=defaults)
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = OpenAIRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> Self:
        """
        Build an ``OpenAILLM`` around an already-configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        ModelBackend.__init__(self, model=model, logger=logger, name=name, defaults=defaults)
        self._client = client
        self._adapter = OpenAIRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
    ) -> ChatCompletion:
        args = {"model": self.model, **self._adapter.to_provider(messages, params)}

        self._log(
            f"Sending {len(messages)} message(s) to {self.model} "
            f"(tools: {len(args.get('tools', []))})",
            logging.DEBUG,
        )
        response: ChatCompletion = await self._client.chat.completions.create(**args)
        return response


_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GeminiLLM(OpenAILLM):
    """
    Gemini backend via the OpenAI-compatible endpoint.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            model,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            logger=logger,
            name=name,
            base_url=base_url or _DEFAULT_GEMINI_BASE_URL,
            defaults=defaults,
        )
        self._adapter = GeminiRequestAdapter()


class AnthropicLLM(ModelBackend):
    """
    Anthropic messages backend.

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name, defaults=defaults)
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        defaults: Optional[dict[str, Any]] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        ModelBackend.__init__(self, model=model, logger=logger, name=name, defaults=defaults)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
    ) -> AnthropicMessage:
        args = {"model": self.model, **self._adapter.to_provider(messages, params)}

        self._log(
            f"Sending {len(messages)} message(s) to {self.model} "
            f"(tools: {len(args.get('tools', []))})",
            logging.DEBUG,
        )
        response: AnthropicMessage = await self._client.messages.create(**args)
        return response


# Factory for creating backend instances

_BACKEND_REGISTRY: dict[Provider, type[ModelBackend]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GEMINI: GeminiLLM,
}


def create_backend(
    provider: Provider,
    model: str,
    *,
    api_key: str | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    logger: logging.Logger | None = None,
    **provider_kwargs: Any,
) -> ModelBackend:
    """
    Factory for creating any supported model backend.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        model: Model identifier (e.g. "qwen-max", "gpt-4.1-mini").
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        client: Optional pre-configured SDK client to wrap.
            - For Provider.OPENAI and Provider.GEMINI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
        logger: Optional custom logger.
        **provider_kwargs: Extra args passed through (timeout, max_retries,
            base_url, defaults).
    """
    try:
        backend_cls = _BACKEND_REGISTRY[provider]
    except KeyError as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller-supplied client verbatim
        return backend_cls.from_client(model, client, logger=logger, **provider_kwargs)

    provider_kwargs.setdefault("base_url", get_base_url(provider))
    key = api_key or get_api_key(provider)
    return backend_cls(model, api_key=key, logger=logger, **provider_kwargs)
