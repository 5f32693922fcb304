"""
Structured logging for the ticketing core, built on structlog.

Production renders JSON lines; anything else gets the coloured console renderer.
A purchase binds its ID into the context so every reservation and inventory
event logged while handling it can be traced back to one purchaser.
"""

import logging
import sys
from typing import Optional

import structlog

from tickets.core.config import get_settings

_HANDLER_NAME = "tickets"

QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def _processors(json_output: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Route structlog through the stdlib root logger.

    Safe to call more than once: the ticketing handler is replaced, never duplicated.
    """
    settings = get_settings()
    if json_output is None:
        json_output = settings.ENVIRONMENT == "production"
    level = (level or settings.LOG_LEVEL).upper()

    structlog.configure(
        processors=[
            *_processors(json_output),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_purchase_context(purchase_id: str, **values) -> None:
    """Replace the bound context with this purchase's identifiers."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(purchase_id=purchase_id, **values)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
