from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcp_chat.types import AssistantMessage, ToolCallRequest


@dataclass
class ChatResponse:
    """Unified response object for all model backends."""

    content: str
    tool_calls: list[ToolCallRequest] | None = None
    raw: Any = None

    def to_message(self) -> AssistantMessage:
        """The assistant message to append to the conversation."""
        return AssistantMessage(
            content=self.content or None,
            tool_calls=tuple(self.tool_calls or ()),
        )
