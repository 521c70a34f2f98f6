"""Prometheus metrics for idempotent request processing.

Metrics:

- ``idempotency_requests_total{situation,status_code}``: responses leaving
  the engine, by situation tag. Failed executions count as ``error`` even
  though the exception propagates
- ``idempotency_execution_time_ms``: handler execution time for fresh
  executions, failed ones included (replays are not observed)
- ``idempotency_locked_records``: records locked by this process and not
  yet unlocked

Examples:
    >>> record_request("retrieved_stored_response", 200)
    >>> record_execution_time(150)
"""

from prometheus_client import Counter, Gauge, Histogram

requests_total = Counter(
    "idempotency_requests_total",
    "Total number of responses returned by the idempotency engine",
    ["situation", "status_code"],
)

execution_time_ms = Histogram(
    "idempotency_execution_time_ms",
    "Handler execution time in milliseconds (fresh executions only)",
    buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

locked_records = Gauge(
    "idempotency_locked_records",
    "Number of records locked by this process and not yet unlocked",
)


def record_request(situation: str, status_code: int) -> None:
    """Count a response leaving the engine.

    Args:
        situation: Situation tag of the response
        status_code: HTTP status code of the response
    """
    requests_total.labels(situation=situation, status_code=str(status_code)).inc()


def record_execution_time(exec_time_ms: float) -> None:
    """Observe the execution time of a fresh handler run."""
    execution_time_ms.observe(exec_time_ms)


def increment_locked_records() -> None:
    locked_records.inc()


def decrement_locked_records() -> None:
    locked_records.dec()
