"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from openai.types.chat import ChatCompletion

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


class OpenAIRequestAdapter:
    """Adapter for converting between typed messages and OpenAI format."""

    def build_message(self, msg: Message) -> dict[str, Any]:
        """Convert one typed message to OpenAI's expected format."""
        if isinstance(msg, UserMessage):
            return {"role": "user", "content": msg.content}

        if isinstance(msg, AssistantMessage):
            openai_msg: dict[str, Any] = {"role": "assistant", "content": msg.content}
            if msg.tool_calls:
                openai_msg["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.name, "arguments": tc.raw_arguments},
                    }
                    for tc in msg.tool_calls
                ]
            elif openai_msg["content"] is None:
                # content may only be null when tool_calls is present
                openai_msg["content"] = ""
            return openai_msg

        if isinstance(msg, ToolMessage):
            return {
                "role": "tool",
                "tool_call_id": msg.tool_call_id,
                "name": msg.name,
                "content": msg.content,
            }

        raise TypeError(f"Unsupported message type: {type(msg).__name__}")

    def build_tools(self, tools: Sequence[ToolSpec]) -> list[dict[str, Any]]:
        return [tool.as_function() for tool in tools]

    def to_provider(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert typed messages and normalized params to OpenAI request format."""
        base_params = dict(params)
        extras = base_params.pop("extra", {})

        tools = base_params.pop("tools", None)
        if tools:
            base_params["tools"] = self.build_tools(tools)
        else:
            # tool_choice without tools is rejected by the API
            base_params.pop("tool_choice", None)
            base_params.pop("parallel_tool_calls", None)

        for k, v in extras.items():
            base_params.setdefault(k, v)

        return {
            "messages": [self.build_message(msg) for msg in messages],
            **base_params,
        }

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert OpenAI response to unified ChatResponse."""
        content = ""
        tool_calls = None

        if raw.choices and raw.choices[0].message:
            message = raw.choices[0].message
            content = message.content or ""

            # Arguments stay serialized; the orchestrator decodes them per call
            tool_calls = []
            for tc in message.tool_calls or ():
                function = getattr(tc, "function", None)
                if function is None:
                    logger.warning(
                        "Ignoring unsupported %s tool call %s",
                        getattr(tc, "type", "unknown"),
                        tc.id,
                    )
                    continue
                tool_calls.append(
                    ToolCallRequest(
                        id=tc.id,
                        name=function.name,
                        raw_arguments=function.arguments or "",
                    )
                )

        return ChatResponse(content=content, tool_calls=tool_calls or None, raw=raw)
