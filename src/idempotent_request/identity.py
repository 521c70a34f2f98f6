"""Request identity derivation and comparison.

A request identity is what a retried request must match to be considered
"the same operation": method, path, idempotency key and payload
fingerprint. A stored record whose identity differs from the incoming
request's identity means the key is being reused for a different request.
"""

from idempotent_request.core.request import Request
from idempotent_request.models import RequestIdentity
from idempotent_request.specification import ServerSpecification
from idempotent_request.utils.awaitable import resolve


async def derive_identity(
    specification: ServerSpecification,
    idempotency_key: str,
    request: Request,
) -> RequestIdentity:
    """Derive the identity of ``request``.

    Method and path are read from the request as received, the fingerprint
    comes from the specification (None disables payload comparison) and the
    key is carried verbatim.

    Args:
        specification: Server specification providing the fingerprint.
        idempotency_key: The key sent by the client.
        request: The incoming request.

    Returns:
        The request's identity.
    """
    fingerprint = await resolve(specification.get_fingerprint(request))
    return RequestIdentity(
        method=request.method,
        path=request.path,
        idempotency_key=idempotency_key,
        fingerprint=fingerprint,
    )


def is_identical_request(target: RequestIdentity, candidate: RequestIdentity) -> bool:
    """Field-wise identity comparison.

    Example:
        >>> a = RequestIdentity(method="POST", path="/a", idempotency_key="k", fingerprint=None)
        >>> b = RequestIdentity(method="POST", path="/a", idempotency_key="k", fingerprint="f")
        >>> is_identical_request(a, a), is_identical_request(a, b)
        (True, False)
    """
    return (
        target.method == candidate.method
        and target.path == candidate.path
        and target.idempotency_key == candidate.idempotency_key
        and target.fingerprint == candidate.fingerprint
    )
