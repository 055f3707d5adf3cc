"""Shared fakes: a tool host and a model backend that never touch the network."""

from __future__ import annotations

import json
from typing import Any, Sequence

import pytest

from mcp_chat.errors import BackendError
from mcp_chat.response import ChatResponse
from mcp_chat.types import Message, ToolCallRequest, ToolDescriptor, ToolOutput, ToolSpec


class FakeHost:
    """In-memory tool host. Handlers may return content or raise."""

    def __init__(self, tools: dict[str, Any] | None = None, resources: list | None = None):
        self.handlers = dict(tools or {})
        self.resources = list(resources or [])
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = 0

    async def list_tools(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(
                name=name,
                description=f"{name} tool",
                input_schema={"type": "object", "properties": {}},
            )
            for name in self.handlers
        ]

    async def list_resources(self) -> list[Any]:
        return self.resources

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        self.calls.append((name, arguments))
        handler = self.handlers[name]
        result = handler(arguments)
        if isinstance(result, ToolOutput):
            return result
        return ToolOutput(content=result)

    async def aclose(self) -> None:
        self.closed += 1


class FakeSession:
    """Minimal stand-in for SessionManager, backed by a FakeHost."""

    def __init__(self, host: FakeHost):
        self.host = host
        self.tools = tuple(
            ToolSpec(name=name, description=f"{name} tool") for name in host.handlers
        )

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        return await self.host.call_tool(name, arguments)


class FakeBackend:
    """Replays scripted replies; an exception in the script is raised instead."""

    def __init__(self, *replies: ChatResponse | Exception):
        self.replies = list(replies)
        self.requests: list[dict[str, Any]] = []

    async def create_completion(
        self,
        messages: Sequence[Message],
        *,
        tools: Sequence[ToolSpec] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        max_tokens: int | None = None,
    ) -> ChatResponse:
        self.requests.append(
            {
                "messages": list(messages),
                "tools": tools,
                "tool_choice": tool_choice,
                "max_tokens": max_tokens,
            }
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def text_reply(content: str) -> ChatResponse:
    return ChatResponse(content=content)


def tool_reply(*calls: tuple[str, str, Any], content: str = "") -> ChatResponse:
    """Build a reply requesting (id, name, arguments) tool calls.

    Non-string arguments are serialized to JSON the way a model would send them.
    """
    return ChatResponse(
        content=content,
        tool_calls=[
            ToolCallRequest(
                id=call_id,
                name=name,
                raw_arguments=args if isinstance(args, str) else json.dumps(args),
            )
            for call_id, name, args in calls
        ],
    )


def backend_failure(message: str = "boom") -> BackendError:
    return BackendError(message, ConnectionError(message))


@pytest.fixture
def host() -> FakeHost:
    def get_user(args: dict[str, Any]) -> Any:
        if args["id"] != 42:
            raise KeyError(args["id"])
        return [{"name": "Ann"}]

    def explode(args: dict[str, Any]) -> Any:
        raise RuntimeError("tool host went away")

    return FakeHost(
        tools={
            "get_user": get_user,
            "echo": lambda args: [args],
            "explode": explode,
            "reject": lambda args: ToolOutput(
                content=[{"type": "text", "text": "bad input"}], is_error=True
            ),
        },
        resources=[{"uri": "users://count", "name": "user_count"}],
    )


@pytest.fixture
def session(host: FakeHost) -> FakeSession:
    return FakeSession(host)
