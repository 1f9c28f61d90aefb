"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(*, debug: bool = False, json_logs: bool = False) -> None:
    """Configure structured logging for wtmigrate.

    Log output goes to stderr so it never mixes with command output.
    Best-effort migration failures are logged at warning level and are
    therefore visible without --verbose.

    Args:
        debug: Enable debug level logging (every git invocation is logged).
        json_logs: Output JSON format (for machine parsing).
    """
    log_level = logging.DEBUG if debug else logging.WARNING

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        processors = [
            *_shared_processors(),
            structlog.processors.format_exc_info,
            renderer,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
        processors = [*_shared_processors(), renderer]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Rebuild loggers per call so reconfiguring takes effect everywhere
        cache_logger_on_first_use=False,
    )

