"""Shared pytest fixtures."""

from unittest.mock import AsyncMock

import pytest
from helpers import FakeConnector

from casual_hub.models.provider_config import HttpProviderConfig, StdioProviderConfig


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def mock_client():
    """Create a mock MCP client with async context manager support."""
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.close = AsyncMock(return_value=None)
    return client


@pytest.fixture
def http_config():
    return HttpProviderConfig(id="a", name="Alpha", url="http://x")


@pytest.fixture
def stdio_config():
    return StdioProviderConfig(
        id="b",
        name="Beta",
        command="npx",
        args=["-y", "@modelcontextprotocol/server-everything"],
        env={"DEBUG": "1"},
    )
