"""Structured logging setup shared by the CLI and the order service.

Modules log through ``structlog.get_logger(__name__)`` with dotted event names
and key/value context, e.g. ``log.info("split.completed", order_id=..., lines=3)``.
``configure_logging`` is called once by entrypoints; library code never calls it.
"""
from __future__ import annotations

import logging
import os
import sys

import structlog

SERVICE_NAME = "order-splitter"


def configure_logging(level: str | None = None, json: bool | None = None):
    """Configure stdlib logging plus structlog processors.

    Args:
        level: Log level name. Defaults to ``LOG_LEVEL`` env var, then INFO.
        json: Render JSON lines instead of console output. Defaults to
            ``LOG_FORMAT=json``.

    Returns:
        A structlog logger bound with service metadata.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json is None:
        json = os.getenv("LOG_FORMAT", "console").lower() == "json"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger().bind(service=SERVICE_NAME, env=os.getenv("ENV", "dev"))
