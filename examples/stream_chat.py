"""
Example: Stream an agent run with a shared provider registry.

Connects the providers in casual_hub_providers.json through a
ConnectionRegistry, runs one message through the tool calling agent and
prints the wire frames as they arrive.
"""

import asyncio
import os

from dotenv import load_dotenv

from casual_hub.agent import ToolCallingAgent
from casual_hub.config import load_providers_file, load_settings
from casual_hub.logging import configure_logging
from casual_hub.model_factory import ModelFactory
from casual_hub.registry import ConnectionRegistry
from casual_hub.streaming import stream_run

load_dotenv()
configure_logging(level=os.getenv("LOG_LEVEL", "WARNING"))  # type: ignore

MESSAGE = os.getenv("MESSAGE", "What tools do you have? Use one of them.")


async def main():
    settings = load_settings()
    providers = load_providers_file("casual_hub_providers.json")

    async with ConnectionRegistry(connect_timeout=settings.connect_timeout) as registry:
        handles = await registry.reconcile(providers)
        print(f"Connected {len(handles)} of {len(providers)} providers\n")

        agent = ToolCallingAgent(
            model=ModelFactory(settings).get_model(),
            instructions=settings.system_prompt,
            providers=handles,
            max_tool_rounds=settings.max_tool_rounds,
        )

        async for line in stream_run(agent.stream(MESSAGE)):
            print(line, end="")


if __name__ == "__main__":
    asyncio.run(main())
