"""Translate an agent run's events into the client wire protocol.

Translation is a single forward pass: each event is turned into zero or
more frames and yielded immediately, so the client sees tool activity and
text as soon as the agent produces them.
"""

import json
import time
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from casual_hub.logging import get_logger
from casual_hub.models.events import (
    MessageChunk,
    RunEvent,
    ToolInvocationFinished,
    ToolInvocationStarted,
    Unrecognized,
)
from casual_hub.models.frames import (
    ContentFrame,
    DoneFrame,
    ErrorFrame,
    ToolCallDoneFrame,
    ToolUrlsFrame,
    UrlCitation,
    WireFrame,
    to_sse,
)

logger = get_logger("streaming")

DEFAULT_TOOL_RESULT = "Tool executed successfully"
WEB_SEARCH_CALL = "web_search_call"
HOSTED_TOOL_CALL = "hosted_tool_call"


def _web_search_summary(action: dict[str, Any]) -> str:
    return (
        f'Web search performed for: "{action.get("query", "")}"\n\n'
        "Results are integrated into the response below."
    )


def _hosted_search_summary(action: dict[str, Any]) -> str:
    return f'Search query: "{action.get("query", "")}"\n\nResults integrated into response.'


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def tool_call_frame(event: ToolInvocationFinished) -> ToolCallDoneFrame:
    """Build the display frame for a finished tool call."""
    arguments = "{}"
    result = DEFAULT_TOOL_RESULT

    hosted_action = (event.provider_data or {}).get("action")
    if event.item_type == WEB_SEARCH_CALL and event.action:
        arguments = json.dumps(event.action)
        result = _web_search_summary(event.action)
    elif event.item_type == HOSTED_TOOL_CALL and isinstance(hosted_action, dict):
        arguments = json.dumps(hosted_action)
        result = _hosted_search_summary(hosted_action)
    elif event.arguments is not None:
        arguments = event.arguments
    elif event.provider_data:
        arguments = json.dumps(event.provider_data, default=str)

    if event.output is not None and event.output != "":
        result = _as_text(event.output)

    return ToolCallDoneFrame(
        tool_name=event.tool_name or event.item_type or "unknown",
        tool_call_id=event.call_id or str(int(time.time() * 1000)),
        arguments=arguments,
        result=result,
        status=event.status or "completed",
    )


def frames_for_event(event: RunEvent) -> list[WireFrame]:
    match event:
        case ToolInvocationFinished():
            return [tool_call_frame(event)]
        case MessageChunk(text=text, citations=citations):
            frames: list[WireFrame] = []
            if citations:
                # Citations precede the text that references them
                frames.append(
                    ToolUrlsFrame(
                        urls=[UrlCitation(url=c.url, title=c.title) for c in citations]
                    )
                )
            if text:
                frames.append(ContentFrame(content=text))
            return frames
        case ToolInvocationStarted() | Unrecognized():
            return []
        case _:
            logger.debug(f"Ignoring unknown run event: {event!r}")
            return []


async def translate_events(events: AsyncIterable[RunEvent]) -> AsyncIterator[WireFrame]:
    """Yield wire frames for ``events``, ending with ``done`` or ``error``.

    Exceptions raised while iterating ``events`` become a single ``error``
    frame. Cancellation is not caught. The event source is closed once
    translation ends, whatever the outcome.
    """
    iterator = aiter(events)
    try:
        try:
            async for event in iterator:
                for frame in frames_for_event(event):
                    yield frame
        except Exception as e:
            logger.error(f"Streaming error: {e}")
            yield ErrorFrame(error=str(e) or type(e).__name__)
            return

        yield DoneFrame(finish_reason="stop")
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


async def encode_sse(frames: AsyncIterable[WireFrame]) -> AsyncIterator[str]:
    async for frame in frames:
        yield to_sse(frame)


def stream_run(events: AsyncIterable[RunEvent]) -> AsyncIterator[str]:
    """Server-sent-events body for one agent run."""
    return encode_sse(translate_events(events))
