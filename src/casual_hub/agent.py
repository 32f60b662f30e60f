"""The agent run driver.

``ToolCallingAgent`` runs a casual-llm model against the tools of a set of
provider handles and reports what it does as a stream of ``RunEvent``s.
Handles are borrowed from the registry: the agent calls their tools but
never opens or closes them.
"""

import json
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from typing import Any, Protocol

from casual_llm import (
    AssistantToolCall,
    ChatMessage,
    Model,
    SystemMessage,
    ToolResultMessage,
    UserMessage,
)

from casual_hub.config import DEFAULT_MAX_TOOL_ROUNDS
from casual_hub.convert_tools import tools_from_infos
from casual_hub.errors import CasualHubError, classify_upstream_error
from casual_hub.logging import get_logger
from casual_hub.models.events import (
    MessageChunk,
    RunEvent,
    ToolInvocationFinished,
    ToolInvocationStarted,
)
from casual_hub.models.tool_info import ToolInfo
from casual_hub.provider_handle import ProviderHandle

logger = get_logger("agent")


class AgentRunDriver(Protocol):
    def stream(self, message: str) -> AsyncIterator[RunEvent]:
        """Run the agent on ``message``, yielding events as they happen."""
        ...

    async def run(self, message: str) -> str:
        """Run the agent to completion and return its final text."""
        ...


class ToolCallingAgent:
    def __init__(
        self,
        model: Model,
        instructions: str | None = None,
        providers: Sequence[ProviderHandle] = (),
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        self.model = model
        self.instructions = instructions
        self.providers = list(providers)
        self.max_tool_rounds = max_tool_rounds

    async def _collect_tools(self) -> tuple[list[ToolInfo], dict[str, ProviderHandle]]:
        """List tools from every provider and remember which one owns each."""
        infos: list[ToolInfo] = []
        routes: dict[str, ProviderHandle] = {}
        for handle in self.providers:
            try:
                tools = await handle.list_tools()
            except CasualHubError as e:
                logger.warning(f"Skipping tools from {handle.name}: {e}")
                continue

            for tool in tools:
                if tool.name in routes:
                    logger.warning(
                        f"Tool '{tool.name}' from {handle.name} shadowed by "
                        f"{routes[tool.name].name}"
                    )
                    continue
                routes[tool.name] = handle
                infos.append(tool)

        logger.info(f"Collected {len(infos)} tools from {len(self.providers)} providers")
        return infos, routes

    async def _call_model(self, messages: list[ChatMessage], tools: list[Any]) -> Any:
        try:
            return await self.model.chat(messages=list(messages), tools=tools)
        except Exception as e:
            classified = classify_upstream_error(e)
            if classified is e:
                raise
            raise classified from e

    async def execute(
        self, tool_call: AssistantToolCall, routes: dict[str, ProviderHandle]
    ) -> ToolInvocationFinished:
        tool_name = tool_call.function.name
        status = "completed"
        handle = routes.get(tool_name)
        if handle is None:
            output = f"Tool '{tool_name}' is not available"
            status = "failed"
        else:
            try:
                arguments = json.loads(tool_call.function.arguments or "{}")
                output = await handle.call_tool(tool_name, arguments)
            except (json.JSONDecodeError, CasualHubError) as e:
                logger.warning(f"Error calling tool {tool_name}: {e}")
                output = str(e)
                status = "failed"

        return ToolInvocationFinished(
            tool_name=tool_name,
            item_type="function_call",
            call_id=tool_call.id,
            arguments=tool_call.function.arguments,
            output=output,
            status=status,
        )

    async def stream(self, message: str) -> AsyncGenerator[RunEvent, None]:
        infos, routes = await self._collect_tools()
        tools = tools_from_infos(infos)

        messages: list[ChatMessage] = []
        if self.instructions:
            messages.append(SystemMessage(content=self.instructions))
        messages.append(UserMessage(content=message))

        logger.info("Start Run")
        for _ in range(self.max_tool_rounds):
            logger.debug("Calling the LLM")
            ai_message = await self._call_model(messages, tools)
            messages.append(ai_message)

            if ai_message.content:
                yield MessageChunk(text=ai_message.content)

            if not ai_message.tool_calls:
                return

            logger.info(f"Executing {len(ai_message.tool_calls)} tool calls")
            for tool_call in ai_message.tool_calls:
                yield ToolInvocationStarted(
                    tool_name=tool_call.function.name,
                    call_id=tool_call.id,
                    arguments=tool_call.function.arguments,
                )
                finished = await self.execute(tool_call, routes)
                messages.append(
                    ToolResultMessage(
                        name=tool_call.function.name,
                        tool_call_id=tool_call.id,
                        content=str(finished.output),
                    )
                )
                yield finished

        logger.warning(f"Stopped after {self.max_tool_rounds} tool rounds")

    async def run(self, message: str) -> str:
        final_text = ""
        events = self.stream(message)
        try:
            async for event in events:
                if isinstance(event, MessageChunk):
                    final_text = event.text
        finally:
            await events.aclose()
        return final_text
