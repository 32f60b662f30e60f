"""One-off tool discovery for a provider that is not (yet) registered."""

from collections.abc import Mapping
from typing import Any

from casual_hub.config import DEFAULT_CONNECT_TIMEOUT
from casual_hub.errors import ConfigValidationError, DiscoveryError
from casual_hub.logging import get_logger
from casual_hub.models.provider_config import BaseProviderConfig, parse_provider_config
from casual_hub.models.tool_info import ToolInfo
from casual_hub.provider_handle import ProviderHandle, create_handle

logger = get_logger("discovery")


async def discover_tools(
    config: BaseProviderConfig | Mapping[str, Any] | None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> list[ToolInfo]:
    """Connect to a provider, list its tools and disconnect.

    The connection is owned by this call alone and is closed on every exit
    path. The registry is never touched.

    Raises:
        ConfigValidationError: The configuration is incomplete; no connection
            was attempted.
        DiscoveryError: Connecting or listing tools failed.
    """
    provider = parse_provider_config(config)
    provider.require_transport_fields()

    handle: ProviderHandle | None = None
    try:
        handle = create_handle(provider, connect_timeout)
        await handle.connect()
        tools = await handle.list_tools()
    except ConfigValidationError:
        raise
    except Exception as e:
        logger.error(f"MCP discovery error for {provider.display_name}: {e}")
        raise DiscoveryError(f"Failed to discover tools: {e}") from e
    finally:
        if handle is not None:
            await handle.close()

    logger.info(f"Discovered {len(tools)} tools from {provider.display_name}")
    return tools
