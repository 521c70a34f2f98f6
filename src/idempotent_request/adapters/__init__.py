"""Framework adapters for idempotent request processing.

- asgi.py: ASGI middleware for FastAPI, Starlette, etc.

The adapters convert framework-specific request/response objects to and
from the engine's neutral Request and Response.
"""

from idempotent_request.adapters.asgi import ASGIIdempotencyMiddleware

__all__ = ["ASGIIdempotencyMiddleware"]
