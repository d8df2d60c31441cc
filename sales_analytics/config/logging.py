"""
Logging Configuration for Sales Warehouse Analytics

All modules log through ``structlog.get_logger(__name__)``. Events are routed
through the standard library so that uvicorn, SQLAlchemy and Prefect output
shares one handler and one renderer (JSON in deployments, console locally).
"""

import logging
import sys
from typing import Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level
from structlog.typing import EventDict, Processor, WrappedLogger

from sales_analytics.config.settings import Settings, get_settings


def _library_levels(settings: Settings, level: int) -> Dict[str, int]:
    """Levels for third-party loggers routed through our handler"""
    return {
        "uvicorn": level,
        "uvicorn.error": level,
        "uvicorn.access": level,
        # SQL statements only when explicitly echoed
        "sqlalchemy.engine": logging.INFO if settings.database.echo else logging.WARNING,
        "aiosqlite": logging.WARNING,
        "asyncio": logging.WARNING,
    }


def _app_context(settings: Settings) -> Processor:
    def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", settings.app_name)
        event_dict.setdefault("environment", settings.app_env)
        return event_dict
    return add_app_context


def _shared_processors(settings: Settings) -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        _app_context(settings),
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging for the API, the report flow and scripts.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override renderer, ``json`` or ``text``
    """
    settings = get_settings()
    level_name = (log_level or settings.monitoring.log_level).upper()
    log_format = log_format or settings.monitoring.log_format
    level = getattr(logging, level_name, logging.INFO)

    processors = _shared_processors(settings)

    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name, library_level in _library_levels(settings, level).items():
        library_logger = logging.getLogger(name)
        library_logger.handlers = []
        library_logger.propagate = True
        library_logger.setLevel(library_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level_name,
        format=log_format,
        source=settings.warehouse.source,
    )
