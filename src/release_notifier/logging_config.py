"""Structured logging setup.

Development runs get colorized console lines, production runs
(``ENVIRONMENT=production``) get one JSON object per line. Events are
named in snake_case and carry their context as key/value pairs:

    logger = get_logger(__name__)
    logger.warning("fetch_skipped", repo="acme/widget", failure="auth")
"""

import logging
import os
import sys
from typing import Any, Optional

import structlog


def setup_logging(
    environment: Optional[str] = None,
    log_level: Optional[str] = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        environment: "development" or "production". Reads ENVIRONMENT if
                     not provided.
        log_level: DEBUG, INFO, WARNING or ERROR. Reads LOG_LEVEL if not
                   provided.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level_name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if env == "production":
        renderer: Any = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> Any:
    """Get a structlog bound logger."""
    return structlog.get_logger(name)
