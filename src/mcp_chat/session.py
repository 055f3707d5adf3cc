"""Session manager: owns the tool host connection and its tool catalog."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional, Sequence

from mcp.shared.exceptions import McpError

from mcp_chat.errors import ToolHostConnectionError
from mcp_chat.host import HostOpener, StdioToolHost, ToolHost
from mcp_chat.types import ToolOutput, ToolSpec

__all__ = ["SessionManager", "resolve_host_command"]

_logger = logging.getLogger(__name__)

_NODE_SUFFIXES = (".js", ".mjs", ".cjs")


def resolve_host_command(path: str, extra_arg: Optional[str] = None) -> tuple[str, list[str]]:
    """
    Map a tool host path to the command line that starts it.

    Python scripts run under the current interpreter and JavaScript under
    ``node``; anything else is executed directly.
    """
    suffix = os.path.splitext(path)[1].lower()
    if suffix == ".py":
        command, args = sys.executable, [path]
    elif suffix in _NODE_SUFFIXES:
        command, args = "node", [path]
    else:
        command, args = path, []
    if extra_arg:
        args.append(extra_arg)
    return command, args


class SessionManager:
    """
    Connection to one tool host plus the tool catalog it advertised.

    The catalog is built once in :meth:`connect` and never refreshed.
    :meth:`cleanup` may be called any number of times; only the first call
    closes the host.
    """

    def __init__(
        self,
        *,
        opener: Optional[HostOpener] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._opener: HostOpener = opener or StdioToolHost.open
        self._host: Optional[ToolHost] = None
        self._tools: tuple[ToolSpec, ...] = ()
        self.resources: list[Any] = []
        self.logger = logger or _logger

    @property
    def connected(self) -> bool:
        return self._host is not None

    @property
    def tools(self) -> tuple[ToolSpec, ...]:
        return self._tools

    @property
    def function_specs(self) -> list[dict[str, Any]]:
        return [tool.as_function() for tool in self._tools]

    async def connect(self, command: str, args: Sequence[str] = ()) -> None:
        """
        Start the tool host, then cache its tools and resources.

        Raises:
            ToolHostConnectionError: The host could not be started, the
                handshake failed, or the tool or resource list could not be
                read.
        """
        if self._host is not None:
            raise ToolHostConnectionError("session is already connected")

        self.logger.info("Starting tool host: %s %s", command, " ".join(args))
        try:
            self._host = await self._opener(command, list(args))
        except Exception as exc:
            self.logger.error("Failed to connect to tool host: %s", exc)
            raise ToolHostConnectionError(
                f"cannot connect to tool host {command!r}: {exc}"
            ) from exc

        try:
            descriptors = await self._host.list_tools()
        except Exception as exc:
            self.logger.error("Failed to list tools: %s", exc)
            await self.cleanup()
            raise ToolHostConnectionError(f"cannot list tools: {exc}") from exc

        self._tools = tuple(ToolSpec.from_descriptor(d) for d in descriptors)
        self.logger.info(
            "Connected to tool host with tools: %s", [t.name for t in self._tools]
        )

        try:
            self.resources = await self._host.list_resources()
        except McpError as exc:
            self.logger.warning("Tool host does not list resources: %s", exc)
            self.resources = []
        except Exception as exc:
            self.logger.error("Failed to list resources: %s", exc)
            await self.cleanup()
            raise ToolHostConnectionError(f"cannot list resources: {exc}") from exc
        self.logger.info("Tool host resources: %s", self.resources)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        """Invoke a tool on the host. Errors are left to the caller."""
        if self._host is None:
            raise ToolHostConnectionError("session is not connected")
        return await self._host.call_tool(name, arguments)

    async def cleanup(self) -> None:
        """Release the tool host connection."""
        host, self._host = self._host, None
        if host is None:
            return
        self.logger.debug("Closing tool host connection")
        await host.aclose()

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()
