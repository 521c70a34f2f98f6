"""Activation strategies deciding whether idempotency applies to a request.

Three forms are accepted:

- ``"always"``: every request entering the middleware is handled.
- ``"opt-in"``: only requests carrying the idempotency key header are
  handled. An empty header value counts as present.
- a callable ``(request) -> bool`` (sync or async). The callable is
  responsible for checking the key header itself if it wants strict gating;
  a request it activates without a key receives a 400 response.

Examples:
    Feature-flagged activation::

        def flagged(request: Request) -> bool:
            return (
                request.header("Idempotency-Key") is not None
                and request.header("X-Enable-Idempotency") == "true"
            )

        decide = prepare_activation_strategy(flagged)
        active = await decide(request)
"""

from collections.abc import Awaitable, Callable
from typing import Literal

from idempotent_request.core.request import Request
from idempotent_request.exceptions import ConfigurationError
from idempotent_request.utils.awaitable import resolve

ActivationPredicate = Callable[[Request], bool | Awaitable[bool]]
ActivationStrategy = Literal["always", "opt-in"] | ActivationPredicate

DEFAULT_KEY_HEADER = "Idempotency-Key"


def prepare_activation_strategy(
    strategy: ActivationStrategy = "always",
    key_header: str = DEFAULT_KEY_HEADER,
) -> Callable[[Request], Awaitable[bool]]:
    """Convert a strategy into an async predicate.

    Args:
        strategy: ``"always"``, ``"opt-in"`` or a predicate callable.
        key_header: Header checked by the ``"opt-in"`` strategy.

    Returns:
        An async function returning whether idempotency applies.

    Raises:
        ConfigurationError: If ``strategy`` is an unknown tag.
    """
    if callable(strategy):
        predicate = strategy

        async def custom(request: Request) -> bool:
            return bool(await resolve(predicate(request)))

        return custom

    if strategy == "always":

        async def always(request: Request) -> bool:
            return True

        return always

    if strategy == "opt-in":

        async def opt_in(request: Request) -> bool:
            return request.header(key_header) is not None

        return opt_in

    raise ConfigurationError(
        f"Unknown activation strategy {strategy!r}. "
        "Expected 'always', 'opt-in' or a callable."
    )
