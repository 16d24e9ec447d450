"""Logging configuration shared by the chat client and the MCP server."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING") -> None:
    """
    Route all log records to stderr through rich.

    stdout stays clean: it carries the chat output in client mode and the
    JSON-RPC stream in server mode.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    logging.basicConfig(
        level=numeric_level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
