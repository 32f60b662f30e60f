"""
Example: Discover the tools of a single provider.

Connects to the MCP "everything" test server over stdio, lists its tools
and disconnects again, without involving the connection registry.
"""

import asyncio
import os

from dotenv import load_dotenv

from casual_hub.discovery import discover_tools
from casual_hub.logging import configure_logging
from casual_hub.models.provider_config import StdioProviderConfig

load_dotenv()
configure_logging(level=os.getenv("LOG_LEVEL", "WARNING"))  # type: ignore


async def main():
    provider = StdioProviderConfig(
        id="everything",
        name="Everything",
        command="npx",
        args=["-y", "@modelcontextprotocol/server-everything"],
    )

    tools = await discover_tools(provider)

    print(f"{provider.name} offers {len(tools)} tools:")
    for tool in tools:
        print(f"  - {tool.name}: {tool.description}")


if __name__ == "__main__":
    asyncio.run(main())
