"""
Provider-neutral dataclasses for tools hosted by an MCP server.

They are intentionally minimal: everything provider-specific lives in adapters.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from mcp_chat.errors import ToolInvocationError

__all__ = [
    "ToolDescriptor",
    "ToolSpec",
    "ToolCallRequest",
    "ToolOutput",
    "ToolCallResult",
]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """A tool exactly as the tool host advertises it."""
    name: str
    description: str | None
    input_schema: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A callable tool as offered to the model. Built once per connection."""
    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_descriptor(cls, tool: ToolDescriptor) -> "ToolSpec":
        return cls(
            name=tool.name,
            description=tool.description or "",
            parameters=dict(tool.input_schema or {}),
        )

    def as_function(self) -> dict[str, Any]:
        """OpenAI function-tool shape."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """A model-agnostic request emitted by the LLM to call a hosted tool."""
    id: str
    name: str
    raw_arguments: str  # serialized JSON, verbatim from the model

    def parse_arguments(self) -> dict[str, Any]:
        """
        Decode ``raw_arguments``.

        Blank input means "no arguments". Anything that is not a JSON object
        raises ToolInvocationError.
        """
        if not self.raw_arguments or not self.raw_arguments.strip():
            return {}
        try:
            arguments = json.loads(self.raw_arguments)
        except json.JSONDecodeError as exc:
            raise ToolInvocationError(
                f"invalid arguments for {self.name}: {exc}"
            ) from exc
        if not isinstance(arguments, dict):
            raise ToolInvocationError(
                f"arguments for {self.name} must be a JSON object, "
                f"got {type(arguments).__name__}"
            )
        return arguments


@dataclass(slots=True)
class ToolOutput:
    """What the tool host returned for one call."""
    content: list[Any]
    is_error: bool = False


@dataclass(slots=True)
class ToolCallResult:
    """Outcome of one tool call: either content or an error, never both."""
    id: str                     # must match the request id
    name: str
    content: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def payload(self) -> str:
        """Serialized body of the tool message sent back to the model."""
        if self.error is not None:
            return json.dumps({"error": self.error}, ensure_ascii=False)
        return json.dumps(self.content, ensure_ascii=False)
