from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib

from mcp_chat import Orchestrator, Provider, SessionManager, create_backend
from mcp_chat.session import resolve_host_command

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

DEMO_SERVER = pathlib.Path(__file__).with_name("demo_server.py")


async def single_query(provider: Provider, model: str, query: str) -> None:
    """
    Answer one query against the demo server.

    1) Start the server and read its tools
    2) Let the model pick tools, run them, and answer
    3) Print the answer and the conversation it produced
    """
    backend = create_backend(provider, model)
    command, args = resolve_host_command(str(DEMO_SERVER))

    async with SessionManager() as session, backend:
        await session.connect(command, args)
        orchestrator = Orchestrator(session, backend, max_tokens=1000)
        result = await orchestrator.run(query)

    for message in result.conversation:
        logger.info("%s: %s", message.role, message)
    print(result.text)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.OPENAI.value,
    )
    parser.add_argument("--model", default="gpt-4.1-mini")
    parser.add_argument("query", nargs="?", default="look up user 42")
    args = parser.parse_args()

    asyncio.run(single_query(Provider(args.provider), args.model, args.query))
