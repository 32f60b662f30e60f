from typing import Any

from pydantic import BaseModel, Field

UNKNOWN_TOOL_NAME = "Unknown Tool"
NO_DESCRIPTION = "No description available"


class ToolInfo(BaseModel):
    """A tool advertised by a provider.

    ``input_schema`` is kept for handing the tool to the model but is not
    part of the serialised catalogue returned to clients.
    """

    name: str = UNKNOWN_TOOL_NAME
    description: str = NO_DESCRIPTION
    input_schema: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_mcp(cls, tool: Any) -> "ToolInfo":
        input_schema = getattr(tool, "input_schema", None)
        if not isinstance(input_schema, dict):
            # Older mcp releases only expose the camelCase field
            input_schema = getattr(tool, "inputSchema", None)
        return cls(
            name=getattr(tool, "name", None) or UNKNOWN_TOOL_NAME,
            description=getattr(tool, "description", None) or NO_DESCRIPTION,
            input_schema=input_schema if isinstance(input_schema, dict) else {},
        )
