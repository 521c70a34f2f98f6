"""Framework-agnostic idempotency middleware.

This module provides the entry point that sits in front of a handler:

1. Ask the activation strategy whether idempotency applies
2. Read and validate the idempotency key (400 ``key_missing`` otherwise,
   without touching storage)
3. Derive the storage key and check that it embeds the idempotency key
4. Derive the request identity
5. Delegate to the state machine and return its response

Client misuse results in problem responses. Only two conditions raise:
``UnsafeImplementationError`` (the specification's storage key does not
embed the idempotency key) and ``StorageError`` (the driver failed).

Examples:
    Using the middleware directly::

        from idempotent_request.core.middleware import IdempotencyMiddleware
        from idempotent_request.specification import DefaultServerSpecification
        from idempotent_request.storage.memory import MemoryStorageDriver

        middleware = IdempotencyMiddleware(
            specification=DefaultServerSpecification(),
            storage=MemoryStorageDriver(),
        )

        async def handler(request):
            return Response(status=200, body=b'{"message":"Hello, Edison!"}')

        response = await middleware.process(request, handler)
"""

from idempotent_request.activation import ActivationStrategy, prepare_activation_strategy
from idempotent_request.config import IdempotencyConfig
from idempotent_request.core.hooks import Hooks, ResponseSituation, resolve_hooks, status_header_hooks
from idempotent_request.core.request import Request
from idempotent_request.core.serializer import Response, problem_response
from idempotent_request.core.state_machine import Handler, process_request
from idempotent_request.exceptions import IdempotencyKeyMissingError, UnsafeImplementationError
from idempotent_request.identity import derive_identity
from idempotent_request.observability.logging import get_logger, request_context
from idempotent_request.observability.metrics import record_request
from idempotent_request.specification import ServerSpecification
from idempotent_request.storage.base import StorageDriver
from idempotent_request.storage.store import RecordStore
from idempotent_request.utils.awaitable import resolve

logger = get_logger(__name__)


class IdempotencyMiddleware:
    """Framework-agnostic idempotency middleware.

    Attributes:
        specification: Server specification (key format, fingerprint, storage key)
        store: Record store wrapping the storage driver
        config: Configuration object
        hooks: Response hooks
    """

    def __init__(
        self,
        specification: ServerSpecification,
        storage: StorageDriver,
        config: IdempotencyConfig | None = None,
        activation_strategy: ActivationStrategy | None = None,
        hooks: Hooks | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            specification: Server specification
            storage: Storage driver for idempotent records
            config: Configuration object (defaults if not provided)
            activation_strategy: Overrides ``config.activation_strategy``;
                may be a predicate callable
            hooks: Response hooks. When ``config.status_header`` is set they
                are wrapped so the situation tag is reported in that header

        Raises:
            ConfigurationError: If the activation strategy is unknown
        """
        self.config = config or IdempotencyConfig()
        self.specification = specification
        self.store = RecordStore(storage)
        self._activate = prepare_activation_strategy(
            activation_strategy if activation_strategy is not None else self.config.activation_strategy,
            key_header=self.config.key_header,
        )
        if self.config.status_header:
            self.hooks = status_header_hooks(self.config.status_header, inner=hooks)
        else:
            self.hooks = resolve_hooks(hooks)

    async def process(self, request: Request, handler: Handler) -> Response:
        """Process a request with idempotency handling.

        Args:
            request: The incoming request
            handler: Async function producing the response when the request
                is executed; called at most once

        Returns:
            Response object (fresh, replayed or a problem response)

        Raises:
            UnsafeImplementationError: If the storage key does not embed the key
            StorageError: If the storage driver fails
            Exception: Whatever the handler raised, after its error response was stored
        """
        if not await self._activate(request):
            return await handler(request)

        key = request.header(self.config.key_header)
        if not key or not self.specification.satisfies_key_spec(key):
            logger.info("idempotency.key_missing", method=request.method, path=request.path)
            return await self._respond(
                problem_response(IdempotencyKeyMissingError()),
                ResponseSituation.KEY_MISSING,
            )

        storage_key = await resolve(self.specification.get_storage_key(key, request))
        if key not in storage_key:
            logger.critical("idempotency.unsafe_storage_key", path=request.path)
            raise UnsafeImplementationError(
                f"The storage key must include the value of the `{self.config.key_header}` header."
            )

        with request_context(request.method, request.path, storage_key):
            identity = await derive_identity(self.specification, key, request)
            result = await process_request(
                store=self.store,
                hooks=self.hooks,
                identity=identity,
                storage_key=storage_key,
                handler=handler,
                request=request,
            )

        record_request(result.situation.value, result.response.status)
        return result.response

    async def _respond(self, response: Response, situation: ResponseSituation) -> Response:
        response = await self.hooks.apply(response, situation)
        record_request(situation.value, response.status)
        return response
