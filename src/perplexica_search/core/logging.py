"""
Logging for perplexica-search.

Everything logs below the ``perplexica_search`` logger. ``setup_logging``
attaches a console handler (Rich by default) and, optionally, a file
handler writing one JSON object per record. Batch and retry code log
through ``ContextualLogger`` so each record carries the query it concerns.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rich.console import Console


ROOT_LOGGER = "perplexica_search"

# Extra record attributes copied into JSON log lines
CONTEXT_FIELDS = ("query", "attempt", "position", "checkpoint_file")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# Formatters and handlers
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with query context when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RichConsoleHandler(logging.Handler):
    """Writes records to a Rich console, styled by level."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Queries and answers may contain square brackets
            self.console.print(
                self.format(record),
                style=LEVEL_STYLES.get(record.levelno),
                markup=False,
                highlight=False,
            )
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


def _console_handler(rich_console: bool) -> logging.Handler:
    if rich_console:
        handler: logging.Handler = RichConsoleHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    return handler


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the ``perplexica_search`` logger.

    Replaces any handlers from an earlier call, so it is safe to call once
    per CLI invocation.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file receiving every record down to DEBUG
        json_format: Write the file as JSON lines instead of plain text
        rich_console: Use Rich for console output

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console = _console_handler(rich_console)
    console.setLevel(numeric_level)
    logger.addHandler(console)

    if log_file:
        logger.addHandler(_file_handler(log_file, json_format))

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or the child ``perplexica_search.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


# =============================================================================
# Query context
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Adds ``query`` and batch ``position`` to every record it logs."""

    def __init__(
        self,
        logger: logging.Logger,
        query: str | None = None,
        position: int | None = None,
    ):
        super().__init__(logger, {})
        self.query = query
        self.position = position

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        if self.query is not None:
            extra.setdefault("query", self.query)
        if self.position is not None:
            extra.setdefault("position", self.position)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        query: str | None = None,
        position: int | None = None,
    ) -> "ContextualLogger":
        """Copy of this adapter with some context replaced."""
        return ContextualLogger(
            self.logger,
            query=self.query if query is None else query,
            position=self.position if position is None else position,
        )


def get_contextual_logger(
    name: str | None = None,
    query: str | None = None,
    position: int | None = None,
) -> ContextualLogger:
    return ContextualLogger(get_logger(name), query=query, position=position)
