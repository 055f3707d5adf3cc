"""
The tool-call loop.

One query is answered in at most two completion rounds:

1. The model sees the user's query and the tool catalog and either answers
   directly or asks for tool calls.
2. If it asked for tools, each call is executed against the tool host in the
   order requested, its result appended to the conversation, and the model is
   asked once more (without tools) to answer from those results.

Tool failures never abort the loop. They are reported back to the model as
an error payload and to the user as a failure line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Final, Optional, Protocol, Sequence

from mcp_chat.errors import BackendError, ToolInvocationError
from mcp_chat.response import ChatResponse
from mcp_chat.types import (
    Conversation,
    Message,
    ToolCallRequest,
    ToolCallResult,
    ToolMessage,
    ToolOutput,
    ToolSpec,
    UserMessage,
)

__all__ = ["Orchestrator", "QueryResult", "APOLOGY", "OUTPUT_SEPARATOR"]

APOLOGY: Final = "Sorry, there was an error processing your request. Please try again."
OUTPUT_SEPARATOR: Final = "\n\n"
TOOL_FAILURE_PREFIX: Final = "Tool call failed"


class CompletionBackend(Protocol):
    async def create_completion(
        self,
        messages: Sequence[Message],
        *,
        tools: Sequence[ToolSpec] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        max_tokens: int | None = None,
    ) -> ChatResponse: ...


class ToolSession(Protocol):
    @property
    def tools(self) -> Sequence[ToolSpec]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput: ...


@dataclass
class QueryResult:
    """Final answer text plus the conversation that produced it."""

    text: str
    conversation: Conversation = field(default_factory=list)
    tool_results: list[ToolCallResult] = field(default_factory=list)


def _compact(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class Orchestrator:
    """Answers queries with a model backend and the tools of one session."""

    def __init__(
        self,
        session: ToolSession,
        backend: CompletionBackend,
        *,
        max_tokens: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session
        self.backend = backend
        self.max_tokens = max_tokens
        self.logger = logger or logging.getLogger(__name__)

    async def process_query(self, query: str) -> str:
        """Answer *query* and return the text to show the user."""
        result = await self.run(query)
        return result.text

    async def run(self, query: str) -> QueryResult:
        """Answer *query*, keeping the full conversation for inspection."""
        self.logger.debug("Processing query: %r", query)
        conversation: Conversation = [UserMessage(content=query)]
        output: list[str] = []

        try:
            first = await self.backend.create_completion(
                conversation,
                tools=self.session.tools,
                tool_choice="auto",
                max_tokens=self.max_tokens,
            )
        except BackendError as exc:
            self.logger.error("First completion round failed: %s", exc)
            return QueryResult(text=APOLOGY, conversation=conversation)

        if not first.tool_calls:
            if first.content:
                output.append(first.content)
            return QueryResult(text=OUTPUT_SEPARATOR.join(output), conversation=conversation)

        conversation.append(first.to_message())

        # Strictly sequential: tool messages must follow the order of the calls.
        results: list[ToolCallResult] = []
        for call in first.tool_calls:
            result = await self._execute(call)
            results.append(result)
            conversation.append(ToolMessage.from_result(result))
            output.append(self._summarize(result))

        try:
            final = await self.backend.create_completion(
                conversation, max_tokens=self.max_tokens
            )
        except BackendError as exc:
            self.logger.error("Final completion round failed: %s", exc)
            output.append(APOLOGY)
        else:
            if final.tool_calls:
                self.logger.warning(
                    "Ignoring %d tool call(s) requested in the final round",
                    len(final.tool_calls),
                )
            if final.content:
                output.append(final.content)

        return QueryResult(
            text=OUTPUT_SEPARATOR.join(output),
            conversation=conversation,
            tool_results=results,
        )

    async def _execute(self, call: ToolCallRequest) -> ToolCallResult:
        """Run one tool call; any failure becomes an error result."""
        self.logger.info("Calling tool %s (id=%s)", call.name, call.id)
        try:
            arguments = call.parse_arguments()
            self.logger.debug("Arguments for %s: %s", call.name, arguments)
            tool_output = await self.session.call_tool(call.name, arguments)
            if tool_output.is_error:
                raise ToolInvocationError(_compact(tool_output.content))
        except Exception as exc:
            self.logger.warning("Tool %s failed: %s", call.name, exc)
            return ToolCallResult(
                id=call.id,
                name=call.name,
                error=f"{TOOL_FAILURE_PREFIX}: {exc}",
            )

        self.logger.debug("Result of %s: %s", call.name, tool_output.content)
        return ToolCallResult(id=call.id, name=call.name, content=tool_output.content)

    @staticmethod
    def _summarize(result: ToolCallResult) -> str:
        if result.ok:
            return f"tool {result.name} result: {_compact(result.content)}"
        detail = (result.error or "").removeprefix(f"{TOOL_FAILURE_PREFIX}: ")
        return f"tool {result.name} failed: {detail}"
