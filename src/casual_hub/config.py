"""Runtime settings and provider file loading.

Settings come from environment variables (a ``.env`` file is loaded by the
API and CLI entry points before ``load_settings`` is called).
"""

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from casual_hub.logging import get_logger
from casual_hub.models.provider_config import (
    HttpProviderConfig,
    StdioProviderConfig,
    parse_provider_configs,
)

logger = get_logger("config")

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_MAX_TOOL_ROUNDS = 10

DEFAULT_SYSTEM_PROMPT = """You are a helpful assistant.

Use the tools you have been given when they help answer the user's question.
"""


class HubSettings(BaseModel):
    log_level: str = "INFO"
    llm_provider: Literal["openai", "ollama"] = "openai"
    llm_base_url: str | None = None
    api_key: str | None = None
    default_model: str = "gpt-4o-mini"
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    max_tool_rounds: int = Field(default=DEFAULT_MAX_TOOL_ROUNDS, ge=1)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


def _parse_positive(name: str, value: str | None, default: float) -> float:
    """Convert an environment value to a positive number, else the default."""
    if value is None or value == "":
        return default

    try:
        parsed = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid {name} value '{value}'. Falling back to default of {default}.")
        return default

    if parsed <= 0:
        logger.warning(f"{name} must be positive, got '{value}'. Falling back to {default}.")
        return default

    return parsed


def load_settings() -> HubSettings:
    provider = os.getenv("CASUAL_HUB_LLM_PROVIDER", "openai").lower()
    if provider not in ("openai", "ollama"):
        logger.warning(f"Unknown LLM provider '{provider}', using openai")
        provider = "openai"

    return HubSettings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        llm_provider=provider,
        llm_base_url=os.getenv("CASUAL_HUB_LLM_BASE_URL") or None,
        api_key=os.getenv("OPENAI_API_KEY") or None,
        default_model=os.getenv("CASUAL_HUB_DEFAULT_MODEL", "gpt-4o-mini"),
        connect_timeout=_parse_positive(
            "CASUAL_HUB_CONNECT_TIMEOUT",
            os.getenv("CASUAL_HUB_CONNECT_TIMEOUT"),
            DEFAULT_CONNECT_TIMEOUT,
        ),
        max_tool_rounds=int(
            _parse_positive(
                "CASUAL_HUB_MAX_TOOL_ROUNDS",
                os.getenv("CASUAL_HUB_MAX_TOOL_ROUNDS"),
                DEFAULT_MAX_TOOL_ROUNDS,
            )
        ),
        system_prompt=os.getenv("CASUAL_HUB_SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
    )


def load_providers_file(path: str | Path) -> list[StdioProviderConfig | HttpProviderConfig]:
    """Load a JSON list of provider configurations.

    The file may hold the list itself or an object with a ``servers`` key.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Providers file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse providers JSON: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("servers", [])

    return parse_provider_configs(raw)
