"""
Structured logging configuration using structlog.

Produces JSON logs in production, human-readable colored logs in development.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure structlog for structured JSON logging.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    is_dev = level == logging.DEBUG

    # Shared processors for both structlog and stdlib
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        # Development: colored console output
        renderer = structlog.dev.ConsoleRenderer()
    else:
        # Production: JSON lines
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

    # Route stdlib logging (used throughout swap_engine) through structlog's formatter;
    # foreign_pre_chain gives those records the bound swap context too
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Quiet noisy third-party loggers
    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_session_context(*, slot: str, session_id: Optional[str]) -> None:
    """Attach the active swap slot/session to every log line in this context."""
    structlog.contextvars.bind_contextvars(swap_slot=slot, swap_session=session_id)
