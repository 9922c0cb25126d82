"""
Structured logging configuration for Trace2Spec.

structlog events are rendered as key-value text on a terminal and as JSON lines
otherwise, then handed to a Rich handler writing to stderr so artifacts and
tables printed on stdout stay clean. Run and stage identifiers are carried as
context variables.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from .config import Config


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False, pad_event=40)


def setup_logging(config: Config | None = None, json_output: bool | None = None) -> None:
    """Configure structured logging for the application.

    Args:
        config: Optional configuration. If None, uses INFO level.
        json_output: Force JSON (True) or console (False) rendering. Defaults
            to console rendering when stderr is a terminal.
    """
    log_level = config.log_level if config else "INFO"
    level = getattr(logging, log_level, logging.INFO)
    if json_output is None:
        json_output = not sys.stderr.isatty()

    root = logging.getLogger()
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(
            RichHandler(
                console=Console(stderr=True),
                show_path=False,
                show_level=not json_output,
                show_time=not json_output,
                markup=False,
                rich_tracebacks=True,
                tracebacks_show_locals=log_level == "DEBUG",
            )
        )
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks if json_output else structlog.processors.format_exc_info,
            _renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured bound logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind context variables (run id, stage) to all subsequent log entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def stage_context(stage: str, **kwargs: object) -> Iterator[None]:
    """Tag every log entry emitted inside the block with ``stage``."""
    with structlog.contextvars.bound_contextvars(stage=stage, **kwargs):
        yield


def log_diagnostics(logger: structlog.stdlib.BoundLogger, diagnostics: Iterable[str]) -> int:
    """Emit each non-fatal diagnostic as a warning and return how many there were."""
    count = 0
    for count, diagnostic in enumerate(diagnostics, start=1):
        logger.warning("Diagnostic", detail=diagnostic)
    return count
