"""Typed chat messages, one variant per role."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from mcp_chat.types.tool import ToolCallRequest, ToolCallResult

__all__ = [
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "Message",
    "Conversation",
]


@dataclass(frozen=True, slots=True)
class UserMessage:
    """Free text typed by the user."""

    role: ClassVar[str] = "user"
    content: str


@dataclass(frozen=True, slots=True)
class AssistantMessage:
    """
    A model reply: optional text plus zero or more tool call requests.

    Tool calls are kept exactly as the model emitted them so that later tool
    messages can be correlated by id.
    """

    role: ClassVar[str] = "assistant"
    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True, slots=True)
class ToolMessage:
    """The answer to one tool call, referenced by call id."""

    role: ClassVar[str] = "tool"
    tool_call_id: str
    name: str
    content: str

    @classmethod
    def from_result(cls, result: ToolCallResult) -> "ToolMessage":
        return cls(tool_call_id=result.id, name=result.name, content=result.payload())


Message = Union[UserMessage, AssistantMessage, ToolMessage]

# Append-only within one query
Conversation = list[Message]
