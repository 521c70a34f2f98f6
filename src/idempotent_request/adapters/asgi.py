"""ASGI middleware adapter for FastAPI and Starlette applications.

This module wraps the core idempotency middleware for ASGI frameworks.
The middleware:

1. Passes requests whose method is not in ``config.enabled_methods``
   straight to the application
2. Converts ASGI requests to the internal Request format
3. Processes through the core middleware
4. Converts internal responses back to Starlette responses

Examples:
    FastAPI integration::

        from fastapi import FastAPI
        from idempotent_request.adapters.asgi import ASGIIdempotencyMiddleware
        from idempotent_request.specification import DefaultServerSpecification
        from idempotent_request.storage.memory import MemoryStorageDriver

        app = FastAPI()

        app.add_middleware(
            ASGIIdempotencyMiddleware,
            specification=DefaultServerSpecification(),
            storage=MemoryStorageDriver(),
        )

        @app.post("/api/hello")
        async def hello(data: Greeting):
            return {"message": f"Hello, {data.name}!"}
"""

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from idempotent_request.activation import ActivationStrategy
from idempotent_request.config import IdempotencyConfig
from idempotent_request.core.hooks import Hooks
from idempotent_request.core.middleware import IdempotencyMiddleware
from idempotent_request.core.request import Request
from idempotent_request.core.serializer import Response
from idempotent_request.specification import ServerSpecification
from idempotent_request.storage.base import StorageDriver
from idempotent_request.utils.headers import expand_headers


class ASGIIdempotencyMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for idempotency handling.

    Attributes:
        config: Configuration object
        middleware: Core middleware instance
    """

    def __init__(
        self,
        app: Any,
        specification: ServerSpecification,
        storage: StorageDriver,
        config: IdempotencyConfig | None = None,
        activation_strategy: ActivationStrategy | None = None,
        hooks: Hooks | None = None,
    ) -> None:
        """Initialize the ASGI middleware.

        Args:
            app: The ASGI application
            specification: Server specification
            storage: Storage driver for idempotent records
            config: Configuration object (uses defaults if not provided)
            activation_strategy: Optional strategy overriding the config
            hooks: Optional response hooks
        """
        super().__init__(app)
        self.config = config or IdempotencyConfig()
        self.middleware = IdempotencyMiddleware(
            specification=specification,
            storage=storage,
            config=self.config,
            activation_strategy=activation_strategy,
            hooks=hooks,
        )

    async def dispatch(
        self,
        request: StarletteRequest,
        call_next: Callable[[StarletteRequest], Awaitable[StarletteResponse]],
    ) -> StarletteResponse:
        """Process an ASGI request with idempotency handling.

        Args:
            request: The Starlette request object
            call_next: Function to call the next middleware/handler

        Returns:
            Starlette Response object
        """
        if request.method.upper() not in self.config.enabled_methods:
            return await call_next(request)

        internal_request = await self._convert_request(request)

        async def handler(_req: Request) -> Response:
            response = await call_next(request)
            return await self._read_response(response)

        result = await self.middleware.process(internal_request, handler)

        return self._convert_response(result)

    async def _convert_request(self, request: StarletteRequest) -> Request:
        """Convert Starlette request to internal Request format."""
        body = await request.body()

        return Request(
            method=request.method,
            path=request.url.path,
            query_string=request.url.query or "",
            headers={name: ", ".join(request.headers.getlist(name)) for name in request.headers.keys()},
            body=body,
        )

    async def _read_response(self, response: StarletteResponse) -> Response:
        """Drain a Starlette response into the internal Response format."""
        body = b""
        if hasattr(response, "body_iterator"):
            async for chunk in response.body_iterator:
                if isinstance(chunk, str):
                    body += chunk.encode(getattr(response, "charset", "utf-8"))
                else:
                    body += bytes(chunk)
        else:
            body = bytes(getattr(response, "body", b""))

        return Response(
            status=response.status_code,
            headers=dict(response.headers.items()),
            body=body,
            raw_headers=[
                (name.decode("latin-1"), value.decode("latin-1")) for name, value in response.raw_headers
            ],
        )

    def _convert_response(self, response: Response) -> StarletteResponse:
        """Convert internal Response to Starlette Response.

        Repeated headers of a fresh response are restored from its raw
        header list. Content-Length is recomputed from the body.
        """
        converted = StarletteResponse(content=response.body, status_code=response.status)
        converted.raw_headers.extend(
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in expand_headers(response.headers, response.raw_headers)
            if name.lower() != "content-length"
        )
        return converted
