"""
Structured logging configuration using structlog.

The service writes JSON lines to stdout. The CLI prints its tables to stdout,
so it sends console-rendered logs to stderr instead. Pipeline modules log
through stdlib ``logging`` and pick up the bound ``run_id``, ``request_id``,
``contract`` and ``owner`` context through the shared processor chain.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog

from .config import settings

# Loggers that are chatty at INFO for every RPC, gateway and marketplace call
NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "hpack")


def _use_console(log_format: str, level: int) -> bool:
    if log_format == "console":
        return True
    if log_format == "json":
        return False
    return level == logging.DEBUG


def setup_logging(
    log_level: Optional[str] = None,
    *,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: settings.log_level)
        log_format: "json", "console" or "auto" (default: settings.log_format).
            "auto" renders for the console only at DEBUG.
        stream: Where log lines go (default: stdout)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    console = _use_console((log_format or settings.log_format).lower(), level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if console:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Per-call request logs only matter when debugging a single run
    noisy_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
