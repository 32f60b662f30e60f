import logging

from rich.console import Console
from rich.logging import RichHandler

# Libraries that log on behalf of provider sessions
PROVIDER_LOGGERS = ("fastmcp", "mcp")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"casual_hub.{name}")


def configure_logging(
    level: str | int = "INFO",
    logger: logging.Logger | None = None,
    provider_level: str | int | None = None,
) -> None:
    """Send hub logs to stderr through rich.

    ``provider_level`` applies to the MCP client libraries and defaults to
    ``level``.
    """
    if logger is None:
        logger = logging.getLogger("casual_hub")

    console = Console(stderr=True)
    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger.setLevel(level)
    logger.handlers = [handler]

    for name in PROVIDER_LOGGERS:
        logging.getLogger(name).setLevel(provider_level or level)

    logger.debug("Hub logging at %s, provider libraries at %s", level, provider_level or level)
