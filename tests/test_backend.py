"""Tests for the model backend base class and factory."""

import logging

import pytest
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from mcp_chat.backend import AnthropicLLM, GeminiLLM, ModelBackend, OpenAILLM, create_backend
from mcp_chat.errors import BackendError, classify_error
from mcp_chat.providers import Provider
from mcp_chat.adapters import OpenAIRequestAdapter
from mcp_chat.types import ToolSpec, UserMessage


class ScriptedLLM(ModelBackend):
    """Backend whose transport returns (or raises) a prepared value."""

    def __init__(self, result, **kwargs):
        super().__init__("test-model", **kwargs)
        self.result = result
        self.sent = []
        self._adapter = OpenAIRequestAdapter()

    @property
    def adapter(self):
        return self._adapter

    async def _chat_impl(self, messages, params):
        self.sent.append(self._adapter.to_provider(messages, params))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def completion(content: str) -> ChatCompletion:
    return ChatCompletion.model_validate(
        {
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": content},
                }
            ],
        }
    )


@pytest.mark.asyncio
async def test_create_completion_returns_response():
    llm = ScriptedLLM(completion("4"))

    response = await llm.create_completion(
        [UserMessage(content="2+2")],
        tools=[ToolSpec(name="calc", description="")],
        tool_choice="auto",
        max_tokens=1000,
    )

    assert response.content == "4"
    sent = llm.sent[0]
    assert sent["tool_choice"] == "auto"
    assert sent["max_tokens"] == 1000
    assert sent["tools"][0]["function"]["name"] == "calc"


@pytest.mark.asyncio
async def test_create_completion_without_tools_sends_no_tool_choice():
    llm = ScriptedLLM(completion("ok"))

    await llm.create_completion([UserMessage(content="hi")], tool_choice="auto")

    assert "tools" not in llm.sent[0]
    assert "tool_choice" not in llm.sent[0]


@pytest.mark.asyncio
async def test_create_completion_raises_backend_error():
    original = ConnectionError("network down")
    llm = ScriptedLLM(original)

    with pytest.raises(BackendError) as excinfo:
        await llm.create_completion([UserMessage(content="hi")])

    assert excinfo.value.original_exc is original
    assert excinfo.value.__cause__ is original


@pytest.mark.asyncio
async def test_create_completion_names_unexpected_errors():
    llm = ScriptedLLM(ValueError("bad request"))

    with pytest.raises(BackendError, match="ValueError: bad request"):
        await llm.create_completion([UserMessage(content="hi")])


@pytest.mark.asyncio
async def test_defaults_are_merged_with_call_params():
    llm = ScriptedLLM(completion("ok"), defaults={"temperature": 0.2, "max_tokens": 50})

    await llm.create_completion([UserMessage(content="hi")], max_tokens=10)

    assert llm.sent[0]["temperature"] == 0.2
    assert llm.sent[0]["max_tokens"] == 10


def test_classify_error_messages():
    logger = logging.getLogger("test")

    assert str(classify_error(TimeoutError("slow"), logger)).startswith("Connection problem")
    assert str(classify_error(KeyError("x"), logger)).startswith("KeyError")


class TestFactory:
    def test_wraps_supplied_openai_client(self):
        client = AsyncOpenAI(api_key="sk-test")

        llm = create_backend(Provider.OPENAI, "qwen-max", client=client)

        assert isinstance(llm, OpenAILLM)
        assert llm.model == "qwen-max"

    def test_wraps_supplied_anthropic_client(self):
        client = AsyncAnthropic(api_key="sk-test")

        llm = create_backend(Provider.ANTHROPIC, "claude-3-5-haiku-latest", client=client)

        assert isinstance(llm, AnthropicLLM)

    def test_rejects_mismatched_client(self):
        with pytest.raises(TypeError):
            create_backend(Provider.ANTHROPIC, "claude", client=AsyncOpenAI(api_key="sk-test"))

    def test_reads_key_and_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("OPENAI_BASE_URL", "https://example.test/v1")

        llm = create_backend(Provider.OPENAI, "qwen-max")

        assert str(llm._client.base_url).startswith("https://example.test/v1")

    def test_gemini_uses_compatible_endpoint(self, monkeypatch):
        monkeypatch.delenv("GEMINI_BASE_URL", raising=False)

        llm = create_backend(Provider.GEMINI, "gemini-2.0-flash", api_key="key")

        assert isinstance(llm, GeminiLLM)
        assert "generativelanguage.googleapis.com" in str(llm._client.base_url)

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY missing"):
            create_backend(Provider.ANTHROPIC, "claude")
