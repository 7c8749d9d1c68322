"""
utils/logging.py — structlog setup for pipeline processes.

Log events are rendered to stderr, as JSON or for a console depending on
settings.log_format; stdout stays free for command output such as
``pulse run --json``. configure_logging() is called once by the CLI; library
code only emits events.

httpx logs every request at INFO through the standard library. Those lines
are shown only at DEBUG, where they help trace a failing fetcher.

Usage:
    from pulse_pipeline.utils.logging import configure_logging, get_logger

    configure_logging("DEBUG", "json")
    log = get_logger(__name__, source_id="bike-share-toronto")
    log.info("gbfs_join_complete", stations=612, dropped=3)
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

from pulse_shared.config import settings

NOISY_LIBRARIES = ("httpx", "httpcore")


def _processors(fmt: str, stream: IO[str]) -> list[Any]:
    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    *,
    stream: IO[str] | None = None,
) -> None:
    """
    Configure structlog and stdlib logging for the process.

    Args:
        log_level:  Override settings.log_level ("DEBUG", "INFO", …).
        log_format: Override settings.log_format ("json" | "console").
        stream:     Destination for log lines; defaults to stderr.
    """
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    out = stream or sys.stderr

    logging.basicConfig(format="%(name)s %(message)s", stream=out, level=level, force=True)
    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=_processors(log_format or settings.log_format, out),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """Module logger, optionally pre-bound with context such as ``source_id``."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger  # type: ignore[return-value]
