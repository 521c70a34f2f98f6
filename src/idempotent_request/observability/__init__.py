"""Observability utilities for idempotent request processing.

This package provides monitoring and debugging capabilities:
- Prometheus metrics for situations, execution time and held locks
- Structured logging with contextual information
"""

from idempotent_request.observability.logging import configure_logging, get_logger, request_context
from idempotent_request.observability.metrics import record_execution_time, record_request

__all__ = [
    "configure_logging",
    "get_logger",
    "request_context",
    "record_request",
    "record_execution_time",
]
