import os
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import AliasChoices, BaseModel, Field

from casual_hub.agent import AgentRunDriver, ToolCallingAgent
from casual_hub.config import HubSettings, load_settings
from casual_hub.discovery import discover_tools
from casual_hub.errors import (
    ConfigValidationError,
    DiscoveryError,
    RateLimitError,
    UpstreamAuthError,
    UpstreamBadRequestError,
    UpstreamError,
)
from casual_hub.logging import configure_logging, get_logger
from casual_hub.model_factory import ModelFactory
from casual_hub.models.attachment import FileAttachment
from casual_hub.models.provider_config import ProviderConfig
from casual_hub.provider_handle import ProviderHandle
from casual_hub.registry import ConnectionRegistry
from casual_hub.streaming import stream_run
from casual_hub.utils import build_instructions, build_message_content

# Load environment variables
load_dotenv()

# Configure logging
configure_logging(
    os.getenv("LOG_LEVEL", "INFO"),
    provider_level=os.getenv("CASUAL_HUB_PROVIDER_LOG_LEVEL"),
)
logger = get_logger("main")


class ChatRequest(BaseModel):
    message: str | None = Field(default=None, title="User message")
    files: list[FileAttachment] = Field(default_factory=list, title="Attached files")
    memory_context: str | None = Field(
        default=None,
        validation_alias=AliasChoices("memory_context", "memoryContext"),
        title="Conversation context appended to the instructions",
    )
    api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("api_key", "apiKey"), title="LLM API key"
    )
    model: str | None = Field(default=None, title="Model to use")
    system_prompt: str | None = Field(
        default=None,
        validation_alias=AliasChoices("system_prompt", "systemPrompt"),
        title="System Prompt to use",
    )
    mcp_servers: list[ProviderConfig] | None = Field(
        default=None,
        validation_alias=AliasChoices("mcp_servers", "mcpServersConfig", "mcpServers"),
        title="Tool providers to attach",
    )
    stream: bool = Field(default=True, title="Stream events instead of a single response")


class ManageRequest(BaseModel):
    action: str | None = None
    servers: list[ProviderConfig] | None = None


class DiscoverRequest(BaseModel):
    server: dict[str, Any] | None = None


class AppState:
    """Holds application-wide state initialised during the lifespan."""

    settings: HubSettings
    registry: ConnectionRegistry
    model_factory: ModelFactory

    def build_agent(self, req: ChatRequest, providers: Sequence[ProviderHandle]) -> AgentRunDriver:
        return ToolCallingAgent(
            model=self.model_factory.get_model(req.model, api_key=req.api_key),
            instructions=build_instructions(
                req.system_prompt, req.memory_context, self.settings.system_prompt
            ),
            providers=providers,
            max_tool_rounds=self.settings.max_tool_rounds,
        )


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the provider registry on startup; close every provider on shutdown."""
    state.settings = load_settings()
    state.registry = ConnectionRegistry(connect_timeout=state.settings.connect_timeout)
    state.model_factory = ModelFactory(state.settings)
    async with state.registry:
        logger.info("Application started")
        yield
        logger.info("Application shut down")


app = FastAPI(lifespan=lifespan)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def upstream_error_response(e: UpstreamError) -> JSONResponse:
    if isinstance(e, UpstreamAuthError):
        return error_response(401, "Invalid API key")
    if isinstance(e, RateLimitError):
        return error_response(429, "Rate limit exceeded")
    if isinstance(e, UpstreamBadRequestError):
        return error_response(400, f"Bad request: {e}")
    return error_response(e.status_code, f"Upstream error: {e}")


@app.post("/chat", response_model=None)
async def chat(req: ChatRequest) -> StreamingResponse | JSONResponse | dict[str, Any]:
    if not req.message and not req.files:
        return error_response(400, "Message or files are required")

    if state.settings.llm_provider == "openai" and not (req.api_key or state.settings.api_key):
        return error_response(400, "API key is required")

    try:
        if req.mcp_servers:
            providers = await state.registry.reconcile(req.mcp_servers)
        else:
            providers = state.registry.get_handles()

        agent = state.build_agent(req, providers)
        content = build_message_content(req.message, req.files)

        if req.stream:
            return StreamingResponse(
                stream_run(agent.stream(content)),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
            )

        final_text = await agent.run(content)
    except UpstreamError as e:
        logger.warning(f"Upstream error in /chat: {e}")
        return upstream_error_response(e)
    except (ConfigValidationError, ValueError) as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception(f"Unexpected error in /chat: {e}")
        return error_response(500, f"Internal server error: {e}")

    return {"success": True, "message": final_text}


@app.post("/mcp/manage", response_model=None)
async def manage_providers(req: ManageRequest) -> JSONResponse | dict[str, Any]:
    try:
        if req.action == "close_all":
            await state.registry.close_all()
            return {"success": True, "message": "All MCP servers closed"}

        if req.action == "update":
            await state.registry.update(req.servers or [])
            return {"success": True, "message": "MCP servers updated"}
    except Exception as e:
        logger.exception(f"MCP management error: {e}")
        return error_response(500, f"Failed to manage MCP servers: {e}")

    return error_response(400, "Invalid action")


@app.post("/mcp/discover", response_model=None)
async def discover(req: DiscoverRequest) -> JSONResponse | dict[str, Any]:
    try:
        tools = await discover_tools(req.server, connect_timeout=state.settings.connect_timeout)
    except ConfigValidationError as e:
        return error_response(400, str(e), tools=[])
    except DiscoveryError as e:
        return error_response(500, str(e), tools=[])

    return {"success": True, "tools": [tool.model_dump() for tool in tools]}
