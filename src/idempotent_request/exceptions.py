"""Custom exceptions for idempotent request processing.

This module defines the exception hierarchy used throughout the package.
There are three families:

1. **Client protocol errors** (missing key, payload mismatch, conflict).
   These are expected outcomes of client misuse. The engine never raises
   them; it renders them to ``application/problem+json`` responses with a
   4xx status.
2. **UnsafeImplementationError**. The server specification produced a
   storage key that does not embed the idempotency key. This is a
   programming error and is raised to the operator.
3. **StorageError**. The storage driver failed. Raised with the failed
   operation, the storage key and the original cause.

Examples:
    Handling a storage error in application code::

        from idempotent_request.exceptions import StorageError

        try:
            response = await middleware.process(request, handler)
        except StorageError as e:
            logger.error(
                "idempotency.storage_failed",
                operation=e.operation,
                storage_key=e.storage_key,
            )
            raise

    Rendering a client error::

        from idempotent_request.core.serializer import problem_response
        from idempotent_request.exceptions import IdempotencyKeyConflictError

        response = problem_response(IdempotencyKeyConflictError())
        assert response.status == 409
"""

from typing import ClassVar


class IdempotencyError(Exception):
    """Base exception for all idempotency-related errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(IdempotencyError):
    """Invalid setup detected while constructing the middleware.

    Raised once at setup time (for example, an unknown activation strategy
    tag), never per request.
    """


class ClientProtocolError(IdempotencyError):
    """Client misuse of the Idempotency-Key protocol.

    Subclasses describe one problem each. The class attributes are used to
    build the problem response returned to the client.

    Attributes:
        status: HTTP status code of the problem response.
        situation: Tag reported to response hooks.
        title: Short, machine-readable problem title.
        detail: Human-readable problem description.
    """

    status: ClassVar[int] = 400
    situation: ClassVar[str] = "error"
    title: ClassVar[str] = "Idempotency-Key error"
    detail: ClassVar[str] = "The Idempotency-Key was used incorrectly."

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error, defaulting the message to the problem title.

        Args:
            message: Optional override for the error message.
        """
        super().__init__(message or self.title)


class IdempotencyKeyMissingError(ClientProtocolError):
    """The Idempotency-Key header is missing or does not satisfy the key spec."""

    status = 400
    situation = "key_missing"
    title = "Idempotency-Key is missing"
    detail = "This operation is idempotent and it requires correct usage of Idempotency Key."


class IdempotencyKeyPayloadMismatchError(ClientProtocolError):
    """The Idempotency-Key was reused for a different request."""

    status = 422
    situation = "key_payload_mismatch"
    title = "Idempotency-Key is already used"
    detail = (
        "This operation is idempotent and it requires correct usage of Idempotency Key. "
        "Idempotency Key MUST not be reused across different payloads of this operation."
    )


class IdempotencyKeyConflictError(ClientProtocolError):
    """A request with the same Idempotency-Key is still being processed."""

    status = 409
    situation = "key_conflict"
    title = "A request is outstanding for this Idempotency-Key"
    detail = (
        "A request with the same Idempotency-Key for the same operation "
        "is being processed or is outstanding."
    )


class UnsafeImplementationError(IdempotencyError):
    """The server specification violates a safety requirement.

    Raised when the storage key returned by the specification does not
    contain the idempotency key. Without this guarantee two clients could
    address each other's records. This is not a client error and is not
    translated into an HTTP status by the engine.

    Examples:
        >>> raise UnsafeImplementationError(
        ...     "The storage key must include the value of the Idempotency-Key header."
        ... )
    """


class StorageError(IdempotencyError):
    """Storage driver operation failed.

    Wraps any exception raised by the driver. Always propagated to the
    caller: whether to retry, return a 5xx or alert is the caller's policy.

    Attributes:
        message: Human-readable error description.
        operation: Name of the record store operation that failed.
        storage_key: Storage key of the record involved.
        cause: The underlying exception raised by the driver.

    Examples:
        Raising a storage error::

            try:
                await driver.save(record)
            except Exception as e:
                raise StorageError(
                    f"Failed to acquire a lock for the stored request: {record.storage_key}",
                    operation="acquire_lock",
                    storage_key=record.storage_key,
                    cause=e,
                ) from e
    """

    def __init__(
        self,
        message: str,
        operation: str,
        storage_key: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the storage error with details.

        Args:
            message: Human-readable error description.
            operation: Name of the failed operation.
            storage_key: Storage key of the record involved.
            cause: The underlying exception that caused the storage error.
        """
        super().__init__(message)
        self.operation = operation
        self.storage_key = storage_key
        self.cause = cause
