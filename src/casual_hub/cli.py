import asyncio
import gc
import os
import warnings
from pathlib import Path
from typing import Any

import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from casual_hub.config import load_providers_file, load_settings
from casual_hub.discovery import discover_tools
from casual_hub.errors import CasualHubError
from casual_hub.logging import configure_logging
from casual_hub.models.provider_config import (
    HttpProviderConfig,
    StdioProviderConfig,
)
from casual_hub.models.tool_info import ToolInfo

app = typer.Typer()
console = Console()

DEFAULT_PROVIDERS_FILE = "casual_hub_providers.json"


@app.callback()
def main() -> None:
    load_dotenv()
    configure_logging(
        os.getenv("LOG_LEVEL", "WARNING"),
        provider_level=os.getenv("CASUAL_HUB_PROVIDER_LOG_LEVEL"),
    )


@app.command()
def serve(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """
    Start the Casual Hub API server.
    """
    uvicorn.run("casual_hub.main:app", host=host, port=port, reload=reload)


@app.command()
def servers(path: Path = Path(DEFAULT_PROVIDERS_FILE)) -> None:
    """
    Return a table of all providers in a providers file
    """
    table = Table("Id", "Name", "Type", "Command / Url", "Env")

    for provider in load_providers_file(path):
        if isinstance(provider, HttpProviderConfig):
            target = provider.url or ""
            env = ""
        else:
            target = f"{provider.command or ''} {' '.join(provider.args)}".strip()
            env = ", ".join(sorted((provider.env or {}).keys()))

        table.add_row(provider.id, provider.name, provider.type, target, env)

    console.print(table)


@app.command()
def tools(path: Path = Path(DEFAULT_PROVIDERS_FILE)) -> None:
    """
    Discover and list the tools of every provider in a providers file
    """
    timeout = load_settings().connect_timeout
    table = Table("Provider", "Name", "Description")

    for provider in load_providers_file(path):
        try:
            tool_list = run_async_with_cleanup(discover_tools(provider, timeout))
        except CasualHubError as e:
            console.print(f"[red]{provider.display_name}: {e}[/red]")
            continue

        for tool in tool_list:
            table.add_row(provider.display_name, tool.name, tool.description)

    console.print(table)


@app.command()
def discover(
    command: str | None = typer.Option(None, help="Command for a stdio provider"),
    arg: list[str] = typer.Option([], help="Argument for the command (repeatable)"),
    env: list[str] = typer.Option([], help="KEY=VALUE environment entry (repeatable)"),
    url: str | None = typer.Option(None, help="URL of a streamable HTTP provider"),
    name: str = "cli",
) -> None:
    """
    Connect to one provider, list its tools and disconnect
    """
    provider: StdioProviderConfig | HttpProviderConfig
    if url:
        provider = HttpProviderConfig(id=name, name=name, url=url)
    else:
        provider = StdioProviderConfig(
            id=name, name=name, command=command, args=arg, env=_parse_env(env) or None
        )

    try:
        tool_list = run_async_with_cleanup(discover_tools(provider, load_settings().connect_timeout))
    except CasualHubError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    _print_tools(tool_list)


def _parse_env(entries: list[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{entry}'", param_hint="--env")
        env[key] = value
    return env


def _print_tools(tool_list: list[ToolInfo]) -> None:
    table = Table("Name", "Description")
    for tool in tool_list:
        table.add_row(tool.name, tool.description)
    console.print(table)


def run_async_with_cleanup(coro: Any) -> Any:
    """Run async coroutine with proper subprocess cleanup.

    This wrapper filters/ignores the "Event loop is closed" warning that occurs
    when subprocess transports don't finish cleanup before the event loop closes.
    It also forces gc.collect() after execution to help clean up remaining transports.
    """
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message="Event loop is closed")
        try:
            return asyncio.run(coro)
        finally:
            gc.collect()


if __name__ == "__main__":
    app()
