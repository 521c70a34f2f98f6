"""Record store: safe record operations on top of a raw storage driver.

The ``RecordStore`` turns a driver's get/save contract into the three
operations the engine needs:

- ``find_or_create``: return the stored record, or create an UNPROCESSED one
- ``acquire_lock``: UNPROCESSED -> PROCESSING
- ``set_response_and_unlock``: PROCESSING -> PROCESSED

Every write is a full-record replace. Any driver exception is re-raised as
``StorageError`` naming the operation and the storage key, chained to the
original exception.

The store does not implement compare-and-swap. ``find_or_create`` is only as
atomic as the driver's ``save`` for new keys, and ``acquire_lock`` writes
without re-checking the stored state.

Examples:
    Driving a record through its lifecycle::

        store = RecordStore(MemoryStorageDriver())

        result = await store.find_or_create(identity, storage_key)
        if result.created:
            locked = await store.acquire_lock(result.record)
            response = await handler(request)
            await store.set_response_and_unlock(locked, serialize_response(response))
"""

from collections.abc import Callable
from datetime import UTC, datetime

from idempotent_request.exceptions import StorageError
from idempotent_request.models import IdempotentRecord, RequestIdentity, SerializedResponse
from idempotent_request.observability.logging import get_logger
from idempotent_request.observability.metrics import decrement_locked_records, increment_locked_records
from idempotent_request.storage.base import StorageDriver
from idempotent_request.utils.awaitable import resolve

logger = get_logger(__name__)


class FindOrCreateResult:
    """Result of ``RecordStore.find_or_create``.

    Attributes:
        created: True if the record was created by this call.
        record: The created record (UNPROCESSED) or the stored one (any state).
    """

    def __init__(self, created: bool, record: IdempotentRecord) -> None:
        self.created = created
        self.record = record

    def __repr__(self) -> str:
        return f"FindOrCreateResult(created={self.created!r}, state={self.record.state.value})"


class RecordStore:
    """Orchestrates record transitions over a storage driver.

    Attributes:
        driver: The raw storage driver.
    """

    def __init__(
        self,
        driver: StorageDriver,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            driver: Storage driver used for all reads and writes.
            clock: Source of lock timestamps, for tests.
        """
        self.driver = driver
        self._clock = clock or (lambda: datetime.now(UTC))

    async def find_or_create(
        self,
        identity: RequestIdentity,
        storage_key: str,
    ) -> FindOrCreateResult:
        """Return the stored record, creating an UNPROCESSED one if absent.

        When a record exists it is returned as is and nothing is written.

        Args:
            identity: Identity of the incoming request.
            storage_key: Key addressing the record.

        Returns:
            FindOrCreateResult telling whether the record was created.

        Raises:
            StorageError: If the driver fails.
        """
        try:
            stored = await resolve(self.driver.get(storage_key))
            if stored is not None:
                return FindOrCreateResult(created=False, record=stored)

            record = IdempotentRecord.unprocessed(identity, storage_key)
            await resolve(self.driver.save(record))
            logger.debug("idempotency.record_created", storage_key=storage_key)
            return FindOrCreateResult(created=True, record=record)
        except Exception as e:
            raise self._storage_error(
                f"Failed to find or create the stored idempotent request: {storage_key}",
                operation="find_or_create",
                storage_key=storage_key,
                cause=e,
            ) from e

    async def acquire_lock(self, record: IdempotentRecord) -> IdempotentRecord:
        """Lock an UNPROCESSED record and persist it.

        Args:
            record: The UNPROCESSED record to lock.

        Returns:
            The PROCESSING record that was saved.

        Raises:
            ValueError: If ``record`` is not UNPROCESSED.
            StorageError: If the driver fails.
        """
        locked = record.locked(self._clock())
        try:
            await resolve(self.driver.save(locked))
        except Exception as e:
            raise self._storage_error(
                f"Failed to acquire a lock for the stored idempotent request: {record.storage_key}",
                operation="acquire_lock",
                storage_key=record.storage_key,
                cause=e,
            ) from e

        increment_locked_records()
        logger.debug("idempotency.lock_acquired", storage_key=record.storage_key)
        return locked

    async def set_response_and_unlock(
        self,
        record: IdempotentRecord,
        response: SerializedResponse,
    ) -> IdempotentRecord:
        """Store the response and release the lock of a PROCESSING record.

        No retry is attempted on failure: the record stays locked until an
        operator or a driver-level expiry clears it.

        Args:
            record: The PROCESSING record returned by ``acquire_lock``.
            response: The response to store.

        Returns:
            The PROCESSED record that was saved.

        Raises:
            ValueError: If ``record`` is not PROCESSING.
            StorageError: If the driver fails. The record is left locked.
        """
        processed = record.processed(response)
        try:
            await resolve(self.driver.save(processed))
        except Exception as e:
            raise self._storage_error(
                f"Failed to save the response of an idempotent request: {record.storage_key}. "
                "The request is left locked; you should unlock it manually.",
                operation="set_response_and_unlock",
                storage_key=record.storage_key,
                cause=e,
            ) from e

        decrement_locked_records()
        logger.debug("idempotency.lock_released", storage_key=record.storage_key)
        return processed

    def _storage_error(
        self,
        message: str,
        operation: str,
        storage_key: str,
        cause: Exception,
    ) -> StorageError:
        logger.error(
            "idempotency.storage_error",
            operation=operation,
            storage_key=storage_key,
            error=repr(cause),
        )
        return StorageError(message, operation=operation, storage_key=storage_key, cause=cause)
