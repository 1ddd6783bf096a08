"""
Structured logging configuration using structlog.

Emits JSON lines by default and colored console output when running at DEBUG,
which is how the plugin is usually exercised from a local agent.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure structlog and route stdlib loggers through it.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    is_dev = level == logging.DEBUG

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
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

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # The root logger belongs to the host agent
    package_logger = logging.getLogger("injecthive")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_action_context(action: str, **extra: object) -> None:
    """Attach the running action name to every log line emitted for this message."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(action=action, **extra)
