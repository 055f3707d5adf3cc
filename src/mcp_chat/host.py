"""
Tool hosts: MCP servers reached over a transport.

``StdioToolHost`` spawns the server as a subprocess and speaks MCP over its
stdin/stdout. Everything above this module sees plain dataclasses.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import Any, Optional, Protocol, Sequence

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from mcp_chat.types import ToolDescriptor, ToolOutput

__all__ = ["ToolHost", "HostOpener", "StdioToolHost"]

logger = logging.getLogger(__name__)

CLIENT_NAME = "mcp-chat"


class ToolHost(Protocol):
    """The narrow surface the session needs from a connected tool host."""

    async def list_tools(self) -> list[ToolDescriptor]: ...

    async def list_resources(self) -> list[Any]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput: ...

    async def aclose(self) -> None: ...


class HostOpener(Protocol):
    async def __call__(self, command: str, args: Sequence[str]) -> ToolHost: ...


def _dump(block: Any) -> Any:
    """Pydantic content block -> plain JSON data."""
    dump = getattr(block, "model_dump", None)
    if dump is None:
        return block
    return dump(mode="json", exclude_none=True)


class StdioToolHost:
    """An MCP client session over a subprocess's stdio pipes."""

    def __init__(self, session: ClientSession, exit_stack: AsyncExitStack) -> None:
        self._session = session
        self._exit_stack = exit_stack
        self.server_name: Optional[str] = None

    @classmethod
    async def open(
        cls,
        command: str,
        args: Sequence[str],
        env: Optional[dict[str, str]] = None,
    ) -> "StdioToolHost":
        """
        Spawn ``command args...`` and complete the MCP handshake.

        The subprocess and pipes are released again if any step fails.
        """
        params = StdioServerParameters(command=command, args=list(args), env=env)
        exit_stack = AsyncExitStack()
        try:
            read, write = await exit_stack.enter_async_context(stdio_client(params))
            session = await exit_stack.enter_async_context(ClientSession(read, write))
            init_result = await session.initialize()
        except BaseException:
            await exit_stack.aclose()
            raise

        host = cls(session, exit_stack)
        host.server_name = init_result.serverInfo.name
        logger.info(
            "Connected to %s %s", init_result.serverInfo.name, init_result.serverInfo.version
        )
        return host

    async def list_tools(self) -> list[ToolDescriptor]:
        result = await self._session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                input_schema=tool.inputSchema,
            )
            for tool in result.tools
        ]

    async def list_resources(self) -> list[Any]:
        result = await self._session.list_resources()
        return [_dump(resource) for resource in result.resources]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        result = await self._session.call_tool(name, arguments)
        return ToolOutput(
            content=[_dump(block) for block in result.content],
            is_error=bool(result.isError),
        )

    async def aclose(self) -> None:
        await self._exit_stack.aclose()
