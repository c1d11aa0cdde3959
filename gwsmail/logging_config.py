"""
Structured logging for the gwsmail CLI, using structlog on top of stdlib.

Library modules only ever call logging.getLogger(__name__); this module is
invoked once by the CLI to decide how those records are rendered. Logs go
to stderr so stdout stays clean for the composed message.

Environment:
    GWSMAIL_LOG_LEVEL   DEBUG, INFO, WARNING (default), ERROR
    GWSMAIL_LOG_FORMAT  "json" for one JSON object per line

Usage:
    from gwsmail.logging_config import setup_logging
    setup_logging(verbose=True)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog


# Third-party loggers that are too chatty at DEBUG
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    verbose: bool = False,
    stream: TextIO | None = None,
) -> None:
    if level is None:
        level = "DEBUG" if verbose else os.environ.get("GWSMAIL_LOG_LEVEL", "WARNING")

    if json_output is None:
        json_output = os.environ.get("GWSMAIL_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers get the same processors
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]
