# clinic_booking/logging_config.py
"""
structlog over the standard library, so uvicorn and SQLAlchemy records land
in the same stream as booking events.

Request-scoped fields (method and path) are bound with
``bind_request_context`` and merged into every event logged while the
request is handled; fail-open and ``admin_override`` events can then be
traced back to the call that produced them.
"""
import logging
import sys

import structlog

# chatty at INFO, and never useful next to booking events
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def setup_structured_logging(log_level: str = "INFO", json_logs: bool = True):
    level = getattr(logging, log_level.upper(), logging.INFO)
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(**fields) -> None:
    """Replace the per-request context with ``fields``."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
