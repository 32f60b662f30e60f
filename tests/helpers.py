"""Test doubles shared across test modules."""

from unittest.mock import AsyncMock, Mock

from casual_hub.errors import ProviderConnectionError
from casual_hub.models.tool_info import ToolInfo
from casual_hub.provider_handle import ProviderHandle


def make_handle(provider_id: str, tools: list[ToolInfo] | None = None) -> Mock:
    """Create a mock provider handle with async lifecycle methods."""
    handle = Mock(spec=ProviderHandle)
    handle.id = provider_id
    handle.name = provider_id
    handle.list_tools = AsyncMock(return_value=tools or [])
    handle.call_tool = AsyncMock(return_value="result")
    handle.close = AsyncMock(return_value=None)
    return handle


class FakeConnector:
    """Connector that records calls and fails for selected provider ids."""

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.calls: list[str] = []
        self.handles: list[Mock] = []

    async def __call__(self, config):
        self.calls.append(config.id)
        if config.id in self.failing:
            raise ProviderConnectionError(config.display_name, "connection refused")
        handle = make_handle(config.id)
        self.handles.append(handle)
        return handle
