"""Events produced by an agent run.

The union is closed: the streaming translator matches on every variant and
routes anything it does not know to the ``Unrecognized`` arm.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Citation:
    url: str
    title: str = ""


@dataclass(frozen=True, slots=True)
class ToolInvocationStarted:
    tool_name: str
    call_id: str | None = None
    arguments: str | None = None


@dataclass(frozen=True, slots=True)
class ToolInvocationFinished:
    """A tool call completed.

    Attributes:
        tool_name: Name of the invoked tool, when known.
        item_type: Raw item tag from the driver, e.g. ``"function_call"``
            or ``"web_search_call"`` for the built-in web search.
        call_id: Provider supplied call id.
        arguments: JSON encoded arguments, when the driver has them.
        action: Structured action of a built-in web search.
        provider_data: Auxiliary data attached by the model provider.
        output: Explicit tool output.
        status: Provider supplied status.
    """

    tool_name: str | None = None
    item_type: str | None = None
    call_id: str | None = None
    arguments: str | None = None
    action: dict[str, Any] | None = None
    provider_data: dict[str, Any] | None = None
    output: Any = None
    status: str | None = None


@dataclass(frozen=True, slots=True)
class MessageChunk:
    """Assistant text observed so far, with any URL citations."""

    text: str
    citations: list[Citation] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Unrecognized:
    payload: Any = None


RunEvent = ToolInvocationStarted | ToolInvocationFinished | MessageChunk | Unrecognized
