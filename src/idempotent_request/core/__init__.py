"""Core engine for idempotent request processing.

This package contains the framework-agnostic logic:
- Request/Response: neutral request and response shapes
- Serializer: response (de)serialization and canned problem responses
- Hooks: response post-processing keyed by situation
- State machine: find-or-create, conflict/replay detection, lock, execute, persist
- Middleware: activation, key validation and identity derivation

Adapters for web frameworks wrap ``IdempotencyMiddleware``.
"""

from idempotent_request.core.hooks import Hooks, ResponseSituation, status_header_hooks
from idempotent_request.core.request import Request
from idempotent_request.core.serializer import Response, deserialize_response, serialize_response

__all__ = [
    "Hooks",
    "Request",
    "Response",
    "ResponseSituation",
    "deserialize_response",
    "serialize_response",
    "status_header_hooks",
]
