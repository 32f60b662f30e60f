"""Tests for one-off provider tool discovery."""

from unittest.mock import AsyncMock, patch

import pytest
from helpers import make_handle

from casual_hub.discovery import discover_tools
from casual_hub.errors import (
    ConfigValidationError,
    DiscoveryError,
    ProviderConnectionError,
    ProviderProtocolError,
)
from casual_hub.models.tool_info import ToolInfo


class TestDiscoverTools:
    async def test_returns_tools_and_closes(self, http_config):
        handle = make_handle("a", tools=[ToolInfo(name="echo", description="Echo")])
        handle.connect = AsyncMock(return_value=handle)

        with patch("casual_hub.discovery.create_handle", return_value=handle):
            tools = await discover_tools(http_config)

        assert [t.name for t in tools] == ["echo"]
        handle.connect.assert_awaited_once()
        handle.close.assert_awaited_once()

    async def test_accepts_raw_mapping(self):
        handle = make_handle("a", tools=[ToolInfo(name="echo", description="Echo")])
        handle.connect = AsyncMock(return_value=handle)

        with patch("casual_hub.discovery.create_handle", return_value=handle) as create:
            await discover_tools({"id": "a", "name": "A", "type": "http", "url": "http://x"})

        assert create.call_args.args[0].url == "http://x"

    async def test_list_failure_still_closes_once(self, http_config):
        handle = make_handle("a")
        handle.connect = AsyncMock(return_value=handle)
        handle.list_tools = AsyncMock(side_effect=ProviderProtocolError("garbled catalog"))

        with patch("casual_hub.discovery.create_handle", return_value=handle):
            with pytest.raises(DiscoveryError, match="Failed to discover tools: garbled catalog"):
                await discover_tools(http_config)

        handle.close.assert_awaited_once()

    async def test_connect_failure_surfaces_discovery_error(self, http_config):
        handle = make_handle("a")
        handle.connect = AsyncMock(side_effect=ProviderConnectionError("Alpha", "refused"))

        with patch("casual_hub.discovery.create_handle", return_value=handle):
            with pytest.raises(DiscoveryError, match="refused"):
                await discover_tools(http_config)

        handle.list_tools.assert_not_called()
        handle.close.assert_awaited_once()

    async def test_stdio_without_command_never_connects(self):
        with patch("casual_hub.discovery.create_handle") as create:
            with pytest.raises(ConfigValidationError, match="no command"):
                await discover_tools({"id": "s", "name": "S", "type": "stdio"})

        create.assert_not_called()

    async def test_http_without_url_never_connects(self):
        with patch("casual_hub.discovery.create_handle") as create:
            with pytest.raises(ConfigValidationError, match="no url"):
                await discover_tools({"id": "h", "type": "http"})

        create.assert_not_called()

    async def test_unknown_type_is_rejected(self):
        with pytest.raises(ConfigValidationError):
            await discover_tools({"id": "w", "type": "websocket", "url": "ws://x"})

    async def test_missing_config_is_rejected(self):
        with pytest.raises(ConfigValidationError, match="required"):
            await discover_tools(None)

    async def test_discovery_does_not_touch_the_registry(self, http_config, connector):
        from casual_hub.registry import ConnectionRegistry

        registry = ConnectionRegistry(connector=connector)
        handle = make_handle("a")
        handle.connect = AsyncMock(return_value=handle)

        with patch("casual_hub.discovery.create_handle", return_value=handle):
            await discover_tools(http_config)

        assert registry.get_handles() == []
        assert connector.calls == []
