"""
Structured logging for the curation engine.

Every event carries the store backend and write mode it ran under, so
transactional and best-effort runs can be told apart when comparing
consistency incidents. Request and curator ids bound by the middleware
flow into engine log lines through contextvars. JSON in production,
console output elsewhere.
"""

import logging
import sys
from typing import Any, Callable, Dict, List

import structlog

from artspace.core.config import Settings, get_settings

EventDict = Dict[str, Any]

_HANDLER_FLAG = "_artspace_handler"

# Third-party loggers that drown out engine events at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def engine_mode_processor(settings: Settings) -> Callable[[Any, str, EventDict], EventDict]:
    """Stamp `store` and `write_mode` on events that do not set them."""
    store = settings.STORE_BACKEND.lower()
    write_mode = "transactional" if settings.USE_TRANSACTIONS else "best_effort"

    def add_engine_mode(_, __, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("store", store)
        event_dict.setdefault("write_mode", write_mode)
        return event_dict

    return add_engine_mode


def drop_blank_references(_, __, event_dict: EventDict) -> EventDict:
    """
    Remove empty `*_id` fields. Operations log every reference they accept,
    and an optional location or a cleared show id would otherwise show up
    as `location_id=''` on most lines.
    """
    for key in [k for k, v in event_dict.items() if k.endswith("_id") and v == ""]:
        del event_dict[key]
    return event_dict


def build_processors(settings: Settings) -> List[Callable]:
    processors: List[Callable] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        engine_mode_processor(settings),
        drop_blank_references,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.ENVIRONMENT == "production":
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging() -> None:
    settings = get_settings()

    structlog.configure(
        processors=[
            *build_processors(settings),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if settings.ENVIRONMENT == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer]
        )
    )
    setattr(handler, _HANDLER_FLAG, True)

    root_logger = logging.getLogger()
    # The app is started once per test client; keep a single handler
    for existing in [h for h in root_logger.handlers if getattr(h, _HANDLER_FLAG, False)]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
