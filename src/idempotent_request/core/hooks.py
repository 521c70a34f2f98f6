"""Response hooks keyed by the situation that produced a response.

Every response leaving the engine passes through ``Hooks.modify_response``
together with a ``ResponseSituation`` tag. Hooks are informational: they
may decorate a response (add a header, log, count) but do not influence the
idempotency decision.

Examples:
    Reporting the situation in a response header::

        from idempotent_request.core.hooks import status_header_hooks

        hooks = status_header_hooks("X-Idempotency-Status")
        middleware = IdempotencyMiddleware(spec, storage, hooks=hooks)

    A custom async hook::

        async def modify(response, situation):
            if situation is ResponseSituation.KEY_CONFLICT:
                response.headers["retry-after"] = "5"
            return response

        hooks = resolve_hooks(modify_response=modify)
"""

from collections.abc import Awaitable, Callable
from enum import Enum

from idempotent_request.core.serializer import Response
from idempotent_request.utils.awaitable import resolve
from idempotent_request.utils.headers import set_header


class ResponseSituation(str, Enum):
    """Why a response is being returned.

    Attributes:
        SUCCESS: The handler ran for the first time and returned normally.
        KEY_MISSING: The Idempotency-Key header was missing or invalid.
        KEY_CONFLICT: Another execution holds the lock for this key.
        KEY_PAYLOAD_MISMATCH: The key was reused for a different request.
        RETRIEVED_STORED_RESPONSE: A stored response is being replayed.
        ERROR: The handler raised; a generic error response is stored.
    """

    SUCCESS = "success"
    KEY_MISSING = "key_missing"
    KEY_CONFLICT = "key_conflict"
    KEY_PAYLOAD_MISMATCH = "key_payload_mismatch"
    RETRIEVED_STORED_RESPONSE = "retrieved_stored_response"
    ERROR = "error"


ModifyResponse = Callable[[Response, ResponseSituation], Response | Awaitable[Response]]


def _identity(response: Response, situation: ResponseSituation) -> Response:
    return response


class Hooks:
    """Container for response hooks.

    Attributes:
        modify_response: Called with every outgoing response and its situation.
            May be sync or async and must return a response.
    """

    def __init__(self, modify_response: ModifyResponse | None = None) -> None:
        self.modify_response: ModifyResponse = modify_response or _identity

    async def apply(self, response: Response, situation: ResponseSituation) -> Response:
        """Run ``modify_response`` and await it if needed."""
        return await resolve(self.modify_response(response, situation))


def resolve_hooks(hooks: Hooks | None = None, **overrides: ModifyResponse) -> Hooks:
    """Return ``hooks`` with defaults filled in.

    Args:
        hooks: Existing hooks, or None for the defaults.
        **overrides: Hook functions replacing those of ``hooks``.
    """
    modify_response = overrides.get("modify_response")
    if modify_response is None and hooks is not None:
        modify_response = hooks.modify_response
    return Hooks(modify_response=modify_response)


def status_header_hooks(
    header_name: str = "X-Idempotency-Status",
    inner: Hooks | None = None,
) -> Hooks:
    """Hooks that report the situation tag in a response header.

    Args:
        header_name: Name of the header to set.
        inner: Hooks to run before the header is added.
    """
    inner_hooks = resolve_hooks(inner)

    async def modify_response(response: Response, situation: ResponseSituation) -> Response:
        response = await inner_hooks.apply(response, situation)
        response.headers = set_header(response.headers, header_name, situation.value)
        return response

    return Hooks(modify_response=modify_response)
