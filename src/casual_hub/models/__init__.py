from .events import (
    Citation,
    MessageChunk,
    RunEvent,
    ToolInvocationFinished,
    ToolInvocationStarted,
    Unrecognized,
)
from .frames import (
    ContentFrame,
    DoneFrame,
    ErrorFrame,
    ToolCallDoneFrame,
    ToolUrlsFrame,
    UrlCitation,
    WireFrame,
)
from .provider_config import (
    HttpProviderConfig,
    ProviderConfig,
    StdioProviderConfig,
)
from .tool_info import ToolInfo

__all__ = [
    "Citation",
    "MessageChunk",
    "RunEvent",
    "ToolInvocationFinished",
    "ToolInvocationStarted",
    "Unrecognized",
    "ContentFrame",
    "DoneFrame",
    "ErrorFrame",
    "ToolCallDoneFrame",
    "ToolUrlsFrame",
    "UrlCitation",
    "WireFrame",
    "HttpProviderConfig",
    "ProviderConfig",
    "StdioProviderConfig",
    "ToolInfo",
]
