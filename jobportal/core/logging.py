"""
Structured logging with structlog.

Call configure_logging() once at startup, then in any module:

    import structlog
    log = structlog.get_logger(__name__)
    log.info("candidate_approved", candidate_id=12, membership_no="JG-26-000001")

LOG_FORMAT=json gives one JSON object per line (production),
LOG_FORMAT=console gives coloured key=value output (development).
"""

import logging
import sys

import structlog

from jobportal.core.config import get_settings


def _log_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(log_format: str = None, log_level: str = None) -> None:
    """Configure structlog and route stdlib logging through the same level."""
    settings = get_settings()
    log_format = (log_format or settings.log_format).lower()
    level = _log_level(log_level or settings.log_level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        renderer = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
