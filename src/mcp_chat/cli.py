"""
Interactive command line client.

    mcp-chat <path-to-tool-host> [extra-arg]

The extra argument is passed to the tool host unchanged (for example a
database URL the server should use).
"""

from __future__ import annotations

import argparse
import asyncio
import codecs
import logging
import os
import sys
import threading
from typing import Any, Awaitable, Callable, Optional, Sequence

from mcp_chat.backend import ModelBackend, create_backend
from mcp_chat.errors import ToolHostConnectionError
from mcp_chat.orchestrator import Orchestrator
from mcp_chat.session import SessionManager, resolve_host_command
from mcp_chat.settings import Settings

logger = logging.getLogger(__name__)

PROMPT = "\nQuery: "
QUIT_COMMAND = "quit"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("httpx", "openai", "anthropic", "mcp")

ReadLine = Callable[[str], Awaitable[str]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-chat",
        description="Chat with a language model that can call tools of an MCP server.",
    )
    parser.add_argument(
        "server",
        nargs="?",
        help="path to the tool host (a .py or .js script, or an executable)",
    )
    parser.add_argument(
        "extra_arg",
        nargs="?",
        help="additional argument forwarded to the tool host",
    )
    return parser


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


class StdinLines:
    """
    Line reader for standard input, fed by a daemon thread.

    The thread reads the raw file descriptor and hands decoded lines to the
    event loop, so a read still blocked at shutdown does not delay exit.
    """

    def __init__(self, fd: Optional[int] = None, encoding: Optional[str] = None) -> None:
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._encoding = encoding or sys.stdin.encoding or "utf-8"
        self._queue: Optional[asyncio.Queue] = None

    async def __call__(self, prompt: str) -> str:
        if self._queue is None:
            self._start(asyncio.get_running_loop())
        print(prompt, end="", flush=True)

        item = await self._queue.get()
        if item is None:
            # Later reads see end of input as well
            self._queue.put_nowait(None)
            raise EOFError
        if isinstance(item, Exception):
            raise item
        return item

    def _start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._queue = asyncio.Queue()
        thread = threading.Thread(
            target=self._pump, args=(loop, self._queue), name="mcp-chat-stdin", daemon=True
        )
        thread.start()

    def _pump(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        pending = ""
        while True:
            try:
                chunk = os.read(self._fd, 4096)
            except OSError as exc:
                self._deliver(loop, queue, exc)
                return
            if not chunk:
                break
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                if not self._deliver(loop, queue, line.rstrip("\r")):
                    return
        pending += decoder.decode(b"", final=True)
        if pending:
            self._deliver(loop, queue, pending)
        self._deliver(loop, queue, None)

    @staticmethod
    def _deliver(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, item: Any) -> bool:
        """Hand ``item`` to the loop; False once the loop is gone."""
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Event loop already closed
            return False
        return True


def is_quit(line: str) -> bool:
    return line.strip().lower() == QUIT_COMMAND


async def chat_loop(orchestrator: Orchestrator, read_line: ReadLine) -> None:
    """Read queries until ``quit`` or end of input, printing each answer."""
    print("\nMCP Client Started!")
    print(f"Type your queries or '{QUIT_COMMAND}' to exit.")

    while True:
        try:
            line = await read_line(PROMPT)
        except EOFError:
            break
        logger.debug("Received message: %r", line)
        if is_quit(line):
            break
        response = await orchestrator.process_query(line)
        print("\n" + response)


async def main(
    argv: Optional[Sequence[str]] = None,
    *,
    session: Optional[SessionManager] = None,
    backend: Optional[ModelBackend] = None,
    read_line: Optional[ReadLine] = None,
) -> int:
    """Run the client; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.server:
        parser.print_usage()
        return 0

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    if backend is None:
        try:
            backend = create_backend(settings.provider, settings.model)
        except RuntimeError as exc:
            logger.error("Cannot create model backend: %s", exc)
            return 1

    session = session or SessionManager()
    command, host_args = resolve_host_command(args.server, args.extra_arg)
    try:
        await session.connect(command, host_args)
        orchestrator = Orchestrator(session, backend, max_tokens=settings.max_tokens)
        await chat_loop(orchestrator, read_line or StdinLines())
    except ToolHostConnectionError as exc:
        print(f"Failed to connect to MCP server: {exc}", file=sys.stderr)
        return 1
    finally:
        await session.cleanup()
        await backend.aclose()
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        status = asyncio.run(main())
    except KeyboardInterrupt:
        status = 0
    sys.exit(status)


if __name__ == "__main__":
    run()
