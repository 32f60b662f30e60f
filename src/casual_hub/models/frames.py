"""Wire frames streamed to the client.

Every frame is sent as one server-sent-events line, ``data: <json>``
followed by a blank line.
"""

from typing import Literal

from pydantic import BaseModel, Field


class UrlCitation(BaseModel):
    url: str
    title: str = ""


class ToolCallDoneFrame(BaseModel):
    type: Literal["tool_call_done"] = "tool_call_done"
    tool_name: str
    tool_call_id: str
    arguments: str
    result: str
    status: str


class ToolUrlsFrame(BaseModel):
    type: Literal["tool_urls"] = "tool_urls"
    urls: list[UrlCitation] = Field(default_factory=list)


class ContentFrame(BaseModel):
    type: Literal["content"] = "content"
    content: str


class DoneFrame(BaseModel):
    type: Literal["done"] = "done"
    finish_reason: str = "stop"


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    error: str


WireFrame = ToolCallDoneFrame | ToolUrlsFrame | ContentFrame | DoneFrame | ErrorFrame


def to_sse(frame: WireFrame) -> str:
    return f"data: {frame.model_dump_json()}\n\n"
