"""Tests for the interactive command line."""

import os
import select
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from conftest import FakeBackend, text_reply
from mcp_chat.cli import StdinLines, chat_loop, is_quit, main
from mcp_chat.orchestrator import Orchestrator
from mcp_chat.session import SessionManager


def scripted_input(*lines):
    remaining = list(lines)
    prompts = []

    async def read_line(prompt):
        prompts.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    read_line.prompts = prompts
    return read_line


DEMO_SERVER = Path(__file__).resolve().parents[1] / "examples" / "demo_server.py"


class ClosingBackend(FakeBackend):
    closed = 0

    async def aclose(self):
        self.closed += 1


@pytest.mark.parametrize("line", ["quit", "QUIT", "Quit", "  quit  "])
def test_quit_in_any_case(line):
    assert is_quit(line)


@pytest.mark.parametrize("line", ["", "quitting", "please quit"])
def test_other_lines_are_queries(line):
    assert not is_quit(line)


@pytest.mark.asyncio
async def test_quit_stops_without_processing(session, capsys):
    backend = FakeBackend()
    read_line = scripted_input("QUIT", "never read")

    await chat_loop(Orchestrator(session, backend), read_line)

    assert backend.requests == []
    assert read_line.prompts == ["\nQuery: "]


@pytest.mark.asyncio
async def test_answers_are_printed(session, capsys):
    backend = FakeBackend(text_reply("4"), text_reply("5"))

    await chat_loop(Orchestrator(session, backend), scripted_input("2+2", "2+3", "quit"))

    out = capsys.readouterr().out
    assert "\n4\n" in out
    assert "\n5\n" in out


@pytest.mark.asyncio
async def test_end_of_input_ends_loop(session):
    backend = FakeBackend(text_reply("4"))

    await chat_loop(Orchestrator(session, backend), scripted_input("2+2"))

    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_missing_server_prints_usage(capsys):
    status = await main([])

    assert status == 0
    assert "usage: mcp-chat" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_main_runs_session_and_cleans_up(host, monkeypatch):
    monkeypatch.delenv("MCP_CHAT_PROVIDER", raising=False)
    opened = []

    async def opener(command, args):
        opened.append((command, args))
        return host

    backend = ClosingBackend(text_reply("hello"))

    status = await main(
        ["server.js", "postgres://db"],
        session=SessionManager(opener=opener),
        backend=backend,
        read_line=scripted_input("hi", "quit"),
    )

    assert status == 0
    assert opened == [("node", ["server.js", "postgres://db"])]
    assert host.closed == 1
    assert backend.closed == 1


@pytest.mark.asyncio
async def test_connection_failure_exits_with_error(capsys):
    async def opener(command, args):
        raise OSError("cannot spawn")

    backend = ClosingBackend()

    status = await main(
        ["server.py"],
        session=SessionManager(opener=opener),
        backend=backend,
        read_line=scripted_input(),
    )

    assert status == 1
    assert "Failed to connect to MCP server" in capsys.readouterr().err
    assert backend.closed == 1


@pytest.mark.asyncio
async def test_cleanup_runs_when_loop_raises(host):
    async def opener(command, args):
        return host

    async def read_line(prompt):
        raise RuntimeError("terminal closed")

    backend = ClosingBackend()

    with pytest.raises(RuntimeError):
        await main(
            ["server.py"],
            session=SessionManager(opener=opener),
            backend=backend,
            read_line=read_line,
        )

    assert host.closed == 1
    assert backend.closed == 1


class TestStdinLines:
    @pytest.mark.asyncio
    async def test_reads_lines_then_end_of_input(self, capsys):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, "2+2\r\nwer ist Jürgen?\nquit".encode("utf-8"))
        os.close(write_fd)
        read_line = StdinLines(read_fd, encoding="utf-8")

        try:
            lines = [await read_line("> ") for _ in range(3)]
            with pytest.raises(EOFError):
                await read_line("> ")
            with pytest.raises(EOFError):
                await read_line("> ")
        finally:
            os.close(read_fd)

        assert lines == ["2+2", "wer ist Jürgen?", "quit"]
        assert capsys.readouterr().out == "> " * 5

    @pytest.mark.asyncio
    async def test_blank_line_is_returned(self):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"\n")
        os.close(write_fd)
        read_line = StdinLines(read_fd, encoding="utf-8")

        try:
            assert await read_line("") == ""
            with pytest.raises(EOFError):
                await read_line("")
        finally:
            os.close(read_fd)


def read_until(stream, marker: bytes, timeout: float) -> bytes:
    deadline = time.monotonic() + timeout
    seen = b""
    while marker not in seen:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssertionError(f"no {marker!r} after {timeout}s, got {seen!r}")
        ready, _, _ = select.select([stream], [], [], remaining)
        if ready:
            chunk = os.read(stream.fileno(), 4096)
            if not chunk:
                raise AssertionError(f"output closed before {marker!r}, got {seen!r}")
            seen += chunk
    return seen


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
def test_ctrl_c_at_prompt_exits_promptly():
    env = dict(
        os.environ,
        MCP_CHAT_PROVIDER="openai",
        MCP_CHAT_LOG_LEVEL="WARNING",
        OPENAI_API_KEY="sk-test",
    )
    proc = subprocess.Popen(
        [sys.executable, "-m", "mcp_chat", str(DEMO_SERVER)],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        env=env,
    )
    try:
        read_until(proc.stdout, b"Query: ", timeout=30)
        proc.send_signal(signal.SIGINT)
        status = proc.wait(timeout=10)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stdin.close()
        proc.stdout.close()

    assert status == 0
