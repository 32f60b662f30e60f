"""Tool provider configuration models.

A provider is either a local MCP server spoken to over a subprocess's
standard streams (``stdio``) or a remote MCP server reached over
streamable HTTP (``http``). Configurations are authored by the client and
sent whole on every run or management request; they are never mutated.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from casual_hub.errors import ConfigValidationError


class BaseProviderConfig(BaseModel, ABC):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @abstractmethod
    def require_transport_fields(self) -> None:
        """Raise ``ConfigValidationError`` if a transport field is missing."""


class StdioProviderConfig(BaseProviderConfig):
    """Configuration for a subprocess based MCP server.

    Attributes:
        command: Executable to spawn (e.g. ``"npx"``).
        args: Ordered command-line arguments.
        env: Extra environment variables for the process.
    """

    type: Literal["stdio"] = "stdio"
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] | None = None

    def require_transport_fields(self) -> None:
        if not self.command:
            raise ConfigValidationError(
                f"Provider '{self.display_name}' uses stdio but has no command"
            )


class HttpProviderConfig(BaseProviderConfig):
    """Configuration for a remote MCP server over streamable HTTP."""

    type: Literal["http"] = "http"
    url: str | None = None

    def require_transport_fields(self) -> None:
        if not self.url:
            raise ConfigValidationError(
                f"Provider '{self.display_name}' uses http but has no url"
            )


ProviderConfig = Annotated[
    StdioProviderConfig | HttpProviderConfig,
    Field(discriminator="type"),
]

_provider_adapter: TypeAdapter[StdioProviderConfig | HttpProviderConfig] = TypeAdapter(
    ProviderConfig
)
_provider_list_adapter: TypeAdapter[list[StdioProviderConfig | HttpProviderConfig]] = (
    TypeAdapter(list[ProviderConfig])
)


def parse_provider_config(data: Any) -> StdioProviderConfig | HttpProviderConfig:
    """Validate a raw mapping into a provider config.

    Raises:
        ConfigValidationError: If the mapping is missing, has an unknown
            ``type`` or has fields of the wrong shape.
    """
    if isinstance(data, BaseProviderConfig):
        return data
    if not isinstance(data, Mapping):
        raise ConfigValidationError("Server configuration is required")
    try:
        return _provider_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise ConfigValidationError(f"Invalid server configuration: {e}") from e


def parse_provider_configs(data: Any) -> list[StdioProviderConfig | HttpProviderConfig]:
    try:
        return _provider_list_adapter.validate_python(data or [])
    except PydanticValidationError as e:
        raise ConfigValidationError(f"Invalid server configuration: {e}") from e


def fingerprint(configs: Sequence[BaseProviderConfig]) -> str:
    """Return a deterministic, order-sensitive identifier for a config list."""
    return json.dumps(
        [config.model_dump(mode="json") for config in configs],
        sort_keys=True,
        separators=(",", ":"),
    )
