"""
Structured logging for the API, the alert pipeline and the dispatch worker.

structlog renders everything, including records from modules that log
through the standard library (repositories, the pipeline, asyncpg), so
context bound for a request, a reading or a delivery appears on every
line written while it is being handled:

    request_id   bound by the API middleware
    location_id  bound while a reading is evaluated
    delivery_id  bound while the worker sends one claimed delivery
"""

import logging
import sys

import structlog
from structlog.types import Processor

from watersense.config.settings import get_settings

_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "influxdb_client")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging() -> None:
    """
    Configure structlog and route standard library logging through it.

    JSON lines in production, coloured console output otherwise. Safe to
    call more than once (the CLI calls it again after ``--debug``).

    Usage:
        setup_logging()
        with log_context(location_id="3"):
            logger.info("Reading ingested", level_cm=42.0)
    """
    settings = get_settings()
    shared = _shared_processors()

    if settings.is_production:
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *renderers,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_context(**kwargs):
    """
    Bind fields for the duration of a ``with`` block.

    Used around one reading's evaluation and one delivery's send so that
    concurrent tasks each carry their own ids.
    """
    return structlog.contextvars.bound_contextvars(**kwargs)


def bind_context(**kwargs) -> None:
    """Bind fields to all subsequent log lines in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
