from . import models
from .agent import AgentRunDriver, ToolCallingAgent
from .discovery import discover_tools
from .provider_handle import ProviderHandle, connect_provider
from .registry import ConnectionRegistry
from .streaming import stream_run, translate_events

__all__ = [
    "AgentRunDriver",
    "ConnectionRegistry",
    "ProviderHandle",
    "ToolCallingAgent",
    "connect_provider",
    "discover_tools",
    "models",
    "stream_run",
    "translate_events",
]
