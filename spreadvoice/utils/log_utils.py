"""Logging utilities shared across the spreadvoice package."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from rich.logging import RichHandler


_CONFIGURED: bool = False

DEFAULT_CONSOLE_LEVEL = "INFO"
DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_PATH = "debug_logs.log"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    "markup": False,
    "show_time": False,
}


def _configure_logging(*, force: bool = False, console_level: str = DEFAULT_CONSOLE_LEVEL) -> None:
    """Configure the shared logger once per process."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    logger.remove()

    logger.add(
        RichHandler(**_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=console_level,
        format="{message}",
    )

    if DEFAULT_FILE_PATH:
        resolved_file_path = Path(DEFAULT_FILE_PATH).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {thread.name} | {name} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


def set_console_level(level: str) -> None:
    """Rebuild the sinks with the console showing ``level`` and above.

    The debug file sink is unaffected.
    """
    _configure_logging(force=True, console_level=level.upper())


__all__ = ["logger", "set_console_level"]

# Configure logging on import so callers only need to import `logger`.
_configure_logging()
