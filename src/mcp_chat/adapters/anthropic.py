"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from anthropic.types import Message as AnthropicMessage

from mcp_chat.errors import ToolInvocationError
from mcp_chat.response import ChatResponse
from mcp_chat.types import (
    AssistantMessage,
    Message,
    ToolCallRequest,
    ToolMessage,
    ToolSpec,
    UserMessage,
)

logger = logging.getLogger(__name__)

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096


class AnthropicRequestAdapter:
    """Adapter for converting between typed messages and Anthropic format."""

    def build_messages(self, messages: Sequence[Message]) -> list[dict[str, Any]]:
        """
        Convert typed messages to Anthropic turns.

        Tool results travel as ``tool_result`` blocks inside a user turn;
        consecutive results are folded into the same turn.
        """
        anthropic_messages: list[dict[str, Any]] = []

        for msg in messages:
            if isinstance(msg, UserMessage):
                anthropic_messages.append({"role": "user", "content": msg.content})

            elif isinstance(msg, AssistantMessage):
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": tc.id,
                            "name": tc.name,
                            "input": self._decode_input(tc),
                        }
                    )
                anthropic_messages.append({"role": "assistant", "content": blocks})

            elif isinstance(msg, ToolMessage):
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                previous = anthropic_messages[-1] if anthropic_messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                ):
                    previous["content"].append(block)
                else:
                    anthropic_messages.append({"role": "user", "content": [block]})

            else:
                raise TypeError(f"Unsupported message type: {type(msg).__name__}")

        return anthropic_messages

    def build_tools(self, tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters or {"type": "object"},
            }
            for tool in tools
        ]

    def to_provider(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert typed messages and normalized params to Anthropic request format."""
        base_params = dict(params)
        extras = base_params.pop("extra", {})

        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        base_params.pop("parallel_tool_calls", None)
        base_params.pop("seed", None)
        base_params.pop("user", None)

        tools = base_params.pop("tools", None)
        tool_choice = base_params.pop("tool_choice", None)
        if tools:
            base_params["tools"] = self.build_tools(tools)
            if isinstance(tool_choice, str):
                base_params["tool_choice"] = {"type": tool_choice}
            elif tool_choice is not None:
                base_params["tool_choice"] = tool_choice

        for k, v in extras.items():
            base_params.setdefault(k, v)

        return {"messages": self.build_messages(messages), **base_params}

    def from_provider(self, raw: AnthropicMessage) -> ChatResponse:
        """Convert Anthropic response to unified ChatResponse."""
        text_parts: list[str] = []
        tool_calls: list[ToolCallRequest] = []

        for block in raw.content or ():
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=block.id,
                        name=block.name,
                        raw_arguments=json.dumps(block.input, ensure_ascii=False),
                    )
                )

        return ChatResponse(
            content="".join(text_parts),
            tool_calls=tool_calls or None,
            raw=raw,
        )

    @staticmethod
    def _decode_input(tc: ToolCallRequest) -> dict[str, Any]:
        try:
            return tc.parse_arguments()
        except ToolInvocationError:
            logger.warning("Sending empty input for tool_use %s with bad arguments", tc.id)
            return {}
