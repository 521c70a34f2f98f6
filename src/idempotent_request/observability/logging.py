"""Structured logging for the idempotency engine.

Events are emitted through structlog with dotted names
(``idempotency.replayed``, ``idempotency.conflict``, ...). While a request
is inside the engine its method, path and storage key are bound to the
context, so every event carries them::

    {
        "event": "idempotency.replayed",
        "method": "POST",
        "path": "/api/hello",
        "storage_key": "POST-/api/hello-8e0f9c1e-...",
        "status": 200,
        "level": "info",
        "timestamp": "2024-01-01T00:00:00.000000Z"
    }

Examples:
    At application startup::

        configure_logging(level="INFO", json_output=True)
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Set up the structlog pipeline. Call once at startup.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines when True, colored console output otherwise
    """
    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def request_context(method: str, path: str, storage_key: str) -> Iterator[None]:
    """Bind the request's method, path and storage key to every event logged inside."""
    with structlog.contextvars.bound_contextvars(method=method, path=path, storage_key=storage_key):
        yield


def get_logger(name: str) -> Any:
    """Return a structlog logger named ``name``."""
    return structlog.get_logger(name)
