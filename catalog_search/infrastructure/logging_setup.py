"""Structured logging setup.

Modules log through ``structlog.get_logger()``; this module wires
structlog to the standard library so level filtering and handlers work
as usual. Call ``configure_logging()`` once at application start.
"""

import logging
import sys

import structlog

from catalog_search.infrastructure.config import settings


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog with stdlib integration.

    Args:
        level: Log level name (e.g. "DEBUG"). Defaults to ``settings.log_level``.
        json_output: Render JSON lines instead of the console format.
            Defaults to ``settings.log_json``.
    """
    level = level or settings.log_level
    if json_output is None:
        json_output = settings.log_json

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        stream=sys.stderr,
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
