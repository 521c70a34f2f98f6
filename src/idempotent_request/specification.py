"""Server specification: key validation, fingerprints and storage keys.

The specification is the pluggable policy deciding what a valid
Idempotency-Key looks like, how a request is fingerprinted, and under which
storage key its record lives. Any object implementing ``ServerSpecification``
can be passed to the middleware; methods may be sync or async.

The storage key MUST contain the idempotency key. The middleware checks this
on every request and raises ``UnsafeImplementationError`` otherwise.

Examples:
    A specification scoping records per tenant::

        class TenantSpecification(DefaultServerSpecification):
            def get_storage_key(self, idempotency_key: str, request: Request) -> str:
                tenant = request.header("X-Tenant-Id") or "anonymous"
                return f"{tenant}:{idempotency_key}"
"""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable
from uuid import UUID

from idempotent_request.config import IdempotencyConfig
from idempotent_request.core.request import Request
from idempotent_request.fingerprint import DEFAULT_FINGERPRINT_HEADERS, compute_fingerprint


@runtime_checkable
class ServerSpecification(Protocol):
    """Protocol for server specifications."""

    def satisfies_key_spec(self, idempotency_key: str) -> bool:
        """Check whether the key satisfies the server-defined format."""
        ...

    def get_fingerprint(self, request: Request) -> str | None | Awaitable[str | None]:
        """Return a fingerprint of the request payload.

        Return None to opt out of payload-mismatch detection.
        """
        ...

    def get_storage_key(self, idempotency_key: str, request: Request) -> str | Awaitable[str]:
        """Return the key addressing the request's record in storage.

        The returned key must include ``idempotency_key``.
        """
        ...


class DefaultServerSpecification:
    """Canonical server specification.

    - Idempotency keys must be UUID version 4 strings.
    - Storage keys are ``"{METHOD}-{path}-{idempotency_key}"``.
    - Fingerprints are SHA-256 digests of the canonical request (method, path,
      sorted query, selected headers and body).

    Attributes:
        fingerprint_headers: Header names included in the fingerprint.
        use_fingerprint: When False, ``get_fingerprint`` returns None.
    """

    def __init__(
        self,
        fingerprint_headers: list[str] | None = None,
        use_fingerprint: bool = True,
    ) -> None:
        self.fingerprint_headers = (
            fingerprint_headers if fingerprint_headers is not None else DEFAULT_FINGERPRINT_HEADERS
        )
        self.use_fingerprint = use_fingerprint

    @classmethod
    def from_config(cls, config: IdempotencyConfig) -> "DefaultServerSpecification":
        """Create a specification fingerprinting ``config.fingerprint_headers``."""
        return cls(fingerprint_headers=config.fingerprint_headers)

    def satisfies_key_spec(self, idempotency_key: str) -> bool:
        """Accept only canonical UUIDv4 strings.

        Example:
            >>> DefaultServerSpecification().satisfies_key_spec("invalid-key")
            False
        """
        try:
            parsed = UUID(idempotency_key)
        except ValueError:
            return False
        return parsed.version == 4 and str(parsed) == idempotency_key.lower()

    def get_fingerprint(self, request: Request) -> str | None:
        if not self.use_fingerprint:
            return None
        return compute_fingerprint(
            method=request.method,
            path=request.path,
            query_string=request.query_string,
            headers=request.headers,
            body=request.body,
            included_headers=self.fingerprint_headers,
        )

    def get_storage_key(self, idempotency_key: str, request: Request) -> str:
        return f"{request.method.upper()}-{request.path}-{idempotency_key}"
