"""Live connections to MCP tool providers.

A ``ProviderHandle`` wraps a ``fastmcp.Client`` whose session is held open
by an ``AsyncExitStack`` so it can outlive the request that opened it. The
two transports differ only in how the fastmcp transport is built.
"""

import json
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from typing import Any

from fastmcp import Client
from fastmcp.client.transports import ClientTransport, StdioTransport, StreamableHttpTransport

from casual_hub.config import DEFAULT_CONNECT_TIMEOUT
from casual_hub.errors import CasualHubError, ProviderConnectionError, ProviderProtocolError
from casual_hub.logging import get_logger
from casual_hub.models.provider_config import (
    BaseProviderConfig,
    HttpProviderConfig,
    StdioProviderConfig,
)
from casual_hub.models.tool_info import ToolInfo

logger = get_logger("provider_handle")


class ProviderHandle(ABC):
    def __init__(
        self,
        config: BaseProviderConfig,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.config = config
        self.connect_timeout = connect_timeout
        self._client: Client[Any] | None = None
        self._stack: AsyncExitStack | None = None

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.display_name

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @abstractmethod
    def _build_transport(self) -> ClientTransport:
        pass

    async def connect(self) -> "ProviderHandle":
        """Open the session and wait for the MCP handshake to complete."""
        if self.is_connected:
            return self

        self.config.require_transport_fields()

        client: Client[Any] = Client(self._build_transport(), init_timeout=self.connect_timeout)
        stack = AsyncExitStack()
        # Unwinds after the session exits so the transport (and subprocess) goes too
        stack.push_async_callback(client.close)
        try:
            await stack.enter_async_context(client)
        except BaseException as e:
            await _quiet_aclose(stack, self.name)
            if not isinstance(e, Exception):
                raise
            raise ProviderConnectionError(self.name, str(e) or type(e).__name__) from e

        self._client = client
        self._stack = stack
        logger.info(f"Connected to MCP provider: {self.name}")
        return self

    def _require_client(self) -> Client[Any]:
        if self._client is None:
            raise ProviderProtocolError(f"Provider '{self.name}' is not connected")
        return self._client

    async def list_tools(self) -> list[ToolInfo]:
        client = self._require_client()
        try:
            tools = await client.list_tools()
        except Exception as e:
            raise ProviderProtocolError(f"Could not list tools from '{self.name}': {e}") from e

        return [ToolInfo.from_mcp(tool) for tool in tools]

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> str:
        client = self._require_client()
        try:
            result = await client.call_tool(tool_name, arguments)
        except Exception as e:
            raise ProviderProtocolError(f"Tool '{tool_name}' on '{self.name}' failed: {e}") from e

        logger.debug(f"Tool Call Result: {result}")
        return render_tool_result(result)

    async def close(self) -> None:
        """Release the session. Safe to call repeatedly; never raises."""
        stack, self._stack, self._client = self._stack, None, None
        if stack is None:
            return

        if await _quiet_aclose(stack, self.name):
            logger.info(f"Closed MCP provider: {self.name}")

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "closed"
        return f"<{type(self).__name__} id={self.id!r} {state}>"


class StdioProviderHandle(ProviderHandle):
    config: StdioProviderConfig

    def _build_transport(self) -> ClientTransport:
        return StdioTransport(
            command=self.config.command or "",
            args=list(self.config.args),
            env=dict(self.config.env) if self.config.env else None,
        )


class HttpProviderHandle(ProviderHandle):
    config: HttpProviderConfig

    def _build_transport(self) -> ClientTransport:
        return StreamableHttpTransport(url=self.config.url or "")


async def _quiet_aclose(stack: AsyncExitStack, name: str) -> bool:
    try:
        await stack.aclose()
    except Exception as e:
        logger.error(f"Error closing MCP provider {name}: {e}")
        return False
    return True


def create_handle(
    config: BaseProviderConfig,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> ProviderHandle:
    match config:
        case StdioProviderConfig():
            return StdioProviderHandle(config, connect_timeout)
        case HttpProviderConfig():
            return HttpProviderHandle(config, connect_timeout)
        case _:
            raise CasualHubError(f"Unsupported provider config: {type(config).__name__}")


async def connect_provider(
    config: BaseProviderConfig,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> ProviderHandle:
    """Build the handle for ``config`` and connect it."""
    handle = create_handle(config, connect_timeout)
    await handle.connect()
    return handle


def render_tool_result(result: Any) -> str:
    """Render a tool call result as text for the model.

    Structured content is preferred; otherwise text parts are joined and
    non-text parts are described by their type.
    """
    structured = getattr(result, "structured_content", None)
    if structured:
        return json.dumps(structured)

    parts: list[str] = []
    for item in getattr(result, "content", None) or []:
        text = getattr(item, "text", None)
        if text is not None:
            parts.append(text)
        else:
            info = {"type": getattr(item, "type", type(item).__name__)}
            mime_type = getattr(item, "mimeType", None)
            if mime_type:
                info["mime_type"] = mime_type
            parts.append(json.dumps(info))

    return "\n".join(parts)
