"""Tests for the ToolCallingAgent run driver."""

from unittest.mock import AsyncMock

import pytest
from casual_llm import (
    AssistantMessage,
    AssistantToolCall,
    AssistantToolCallFunction,
    Model,
)
from helpers import make_handle

from casual_hub.agent import ToolCallingAgent
from casual_hub.errors import ProviderProtocolError, RateLimitError, UpstreamAuthError
from casual_hub.models.events import MessageChunk, ToolInvocationFinished, ToolInvocationStarted
from casual_hub.models.tool_info import ToolInfo


@pytest.fixture
def mock_model():
    return AsyncMock(spec=Model)


def _tool_call(name: str, arguments: str = "{}", call_id: str = "call_1") -> AssistantToolCall:
    return AssistantToolCall(
        id=call_id, function=AssistantToolCallFunction(name=name, arguments=arguments)
    )


async def _events(agent: ToolCallingAgent, message: str = "Hello") -> list:
    return [event async for event in agent.stream(message)]


class TestStream:
    async def test_plain_answer(self, mock_model):
        mock_model.chat = AsyncMock(return_value=AssistantMessage(content="Hi there"))
        agent = ToolCallingAgent(mock_model, instructions="Be brief")

        events = await _events(agent)

        assert events == [MessageChunk(text="Hi there")]
        messages = mock_model.chat.call_args.kwargs["messages"]
        assert messages[0].role == "system"
        assert messages[0].content == "Be brief"
        assert messages[1].role == "user"

    async def test_no_system_message_without_instructions(self, mock_model):
        mock_model.chat = AsyncMock(return_value=AssistantMessage(content="ok"))

        await _events(ToolCallingAgent(mock_model))

        messages = mock_model.chat.call_args.kwargs["messages"]
        assert [m.role for m in messages] == ["user"]

    async def test_tool_call_is_routed_to_owning_provider(self, mock_model):
        weather = make_handle("weather", tools=[ToolInfo(name="get_weather", description="w")])
        weather.call_tool = AsyncMock(return_value="Sunny")
        other = make_handle("other", tools=[ToolInfo(name="echo", description="e")])
        mock_model.chat = AsyncMock(
            side_effect=[
                AssistantMessage(
                    content="", tool_calls=[_tool_call("get_weather", '{"city": "Paris"}')]
                ),
                AssistantMessage(content="It is sunny"),
            ]
        )
        agent = ToolCallingAgent(mock_model, providers=[weather, other])

        events = await _events(agent)

        weather.call_tool.assert_awaited_once_with("get_weather", {"city": "Paris"})
        other.call_tool.assert_not_called()
        assert isinstance(events[0], ToolInvocationStarted)
        finished = events[1]
        assert isinstance(finished, ToolInvocationFinished)
        assert finished.output == "Sunny"
        assert finished.call_id == "call_1"
        assert finished.status == "completed"
        assert events[2] == MessageChunk(text="It is sunny")

        tools = mock_model.chat.call_args_list[0].kwargs["tools"]
        assert sorted(t.name for t in tools) == ["echo", "get_weather"]

        second_messages = mock_model.chat.call_args_list[1].kwargs["messages"]
        assert second_messages[-1].role == "tool"
        assert second_messages[-1].content == "Sunny"

    async def test_unknown_tool_reports_failure(self, mock_model):
        mock_model.chat = AsyncMock(
            side_effect=[
                AssistantMessage(content="", tool_calls=[_tool_call("missing")]),
                AssistantMessage(content="Sorry"),
            ]
        )

        events = await _events(ToolCallingAgent(mock_model))

        finished = events[1]
        assert finished.status == "failed"
        assert "not available" in finished.output

    async def test_tool_error_is_returned_to_the_model(self, mock_model):
        handle = make_handle("p", tools=[ToolInfo(name="echo", description="e")])
        handle.call_tool = AsyncMock(side_effect=ProviderProtocolError("tool crashed"))
        mock_model.chat = AsyncMock(
            side_effect=[
                AssistantMessage(content="", tool_calls=[_tool_call("echo")]),
                AssistantMessage(content="Recovered"),
            ]
        )

        events = await _events(ToolCallingAgent(mock_model, providers=[handle]))

        assert events[1].status == "failed"
        assert events[1].output == "tool crashed"
        assert events[-1] == MessageChunk(text="Recovered")

    async def test_provider_listing_failure_skips_its_tools(self, mock_model):
        broken = make_handle("broken")
        broken.list_tools = AsyncMock(side_effect=ProviderProtocolError("gone"))
        healthy = make_handle("healthy", tools=[ToolInfo(name="echo", description="e")])
        mock_model.chat = AsyncMock(return_value=AssistantMessage(content="ok"))

        await _events(ToolCallingAgent(mock_model, providers=[broken, healthy]))

        tools = mock_model.chat.call_args.kwargs["tools"]
        assert [t.name for t in tools] == ["echo"]

    async def test_stops_after_max_tool_rounds(self, mock_model):
        mock_model.chat = AsyncMock(
            return_value=AssistantMessage(content="", tool_calls=[_tool_call("missing")])
        )

        await _events(ToolCallingAgent(mock_model, max_tool_rounds=2))

        assert mock_model.chat.call_count == 2

    async def test_auth_failure_is_classified(self, mock_model):
        class FakeAuthError(Exception):
            status_code = 401

        mock_model.chat = AsyncMock(side_effect=FakeAuthError("bad key"))

        with pytest.raises(UpstreamAuthError):
            await _events(ToolCallingAgent(mock_model))

    async def test_rate_limit_is_classified(self, mock_model):
        class FakeRateLimit(Exception):
            status = 429

        mock_model.chat = AsyncMock(side_effect=FakeRateLimit("slow down"))

        with pytest.raises(RateLimitError):
            await _events(ToolCallingAgent(mock_model))

    async def test_other_errors_propagate_unchanged(self, mock_model):
        mock_model.chat = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await _events(ToolCallingAgent(mock_model))

    async def test_agent_never_closes_providers(self, mock_model):
        handle = make_handle("p")
        mock_model.chat = AsyncMock(return_value=AssistantMessage(content="ok"))

        await _events(ToolCallingAgent(mock_model, providers=[handle]))

        handle.close.assert_not_called()


class TestRun:
    async def test_run_returns_final_text(self, mock_model):
        mock_model.chat = AsyncMock(
            side_effect=[
                AssistantMessage(content="Let me check", tool_calls=[_tool_call("missing")]),
                AssistantMessage(content="Final answer"),
            ]
        )

        result = await ToolCallingAgent(mock_model).run("Question")

        assert result == "Final answer"
