"""
Idempotent request processing for Python web applications.

This package guarantees at-most-once processing of mutating requests that
clients retry under the same Idempotency-Key: the first request runs the
handler, retries replay the stored response, and misuse is rejected with
problem responses.
"""

from idempotent_request.config import IdempotencyConfig
from idempotent_request.core.hooks import Hooks, ResponseSituation, status_header_hooks
from idempotent_request.core.middleware import IdempotencyMiddleware
from idempotent_request.core.request import Request
from idempotent_request.core.serializer import Response
from idempotent_request.exceptions import (
    ClientProtocolError,
    ConfigurationError,
    IdempotencyError,
    IdempotencyKeyConflictError,
    IdempotencyKeyMissingError,
    IdempotencyKeyPayloadMismatchError,
    StorageError,
    UnsafeImplementationError,
)
from idempotent_request.models import IdempotentRecord, RecordState, RequestIdentity, SerializedResponse
from idempotent_request.specification import DefaultServerSpecification, ServerSpecification
from idempotent_request.storage import MemoryStorageDriver, RecordStore, StorageDriver

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ClientProtocolError",
    "ConfigurationError",
    "DefaultServerSpecification",
    "Hooks",
    "IdempotencyConfig",
    "IdempotencyError",
    "IdempotencyKeyConflictError",
    "IdempotencyKeyMissingError",
    "IdempotencyKeyPayloadMismatchError",
    "IdempotencyMiddleware",
    "IdempotentRecord",
    "MemoryStorageDriver",
    "RecordState",
    "RecordStore",
    "Request",
    "RequestIdentity",
    "Response",
    "ResponseSituation",
    "SerializedResponse",
    "ServerSpecification",
    "StorageDriver",
    "StorageError",
    "UnsafeImplementationError",
    "status_header_hooks",
]
