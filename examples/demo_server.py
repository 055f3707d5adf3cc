"""
A tiny MCP server to try the client against.

    mcp-chat examples/demo_server.py
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

mcp = FastMCP("demo")

USERS = {
    42: {"name": "Ann", "email": "ann@example.com"},
    7: {"name": "Bob", "email": "bob@example.com"},
}


@mcp.tool()
def get_user(id: int) -> dict:
    """Look up a user by numeric id."""
    try:
        return USERS[id]
    except KeyError:
        raise ValueError(f"no user with id {id}") from None


@mcp.tool()
def add(a: float, b: float) -> float:
    """Add two numbers."""
    return a + b


@mcp.resource("users://count")
def user_count() -> str:
    """Number of known users."""
    return str(len(USERS))


if __name__ == "__main__":
    mcp.run()
