from collections.abc import Sequence

from casual_llm import Tool

from casual_hub.logging import get_logger
from casual_hub.models.tool_info import ToolInfo

logger = get_logger("convert_tools")


def tool_from_info(info: ToolInfo) -> Tool:
    """
    Convert a provider tool to casual-llm Tool format.

    Args:
        info: Tool as listed by a provider handle

    Returns:
        casual-llm Tool instance
    """
    return Tool.from_input_schema(
        name=info.name,
        description=info.description,
        input_schema=info.input_schema,
    )


def tools_from_infos(infos: Sequence[ToolInfo]) -> list[Tool]:
    tools = []

    for info in infos:
        try:
            tools.append(tool_from_info(info))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid MCP tool {info.name}: {e}")

    return tools
