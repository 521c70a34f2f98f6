"""Storage driver protocol for idempotent records.

A storage driver is the raw persistence collaborator. It only has to read
and write whole records:

- ``get(storage_key)`` returns the stored record or None
- ``save(record)`` stores the record under ``record.storage_key``, replacing
  any previous version

Both methods may be synchronous or asynchronous and may raise any
exception; the ``RecordStore`` wraps failures in ``StorageError``.
Persistence policies such as TTL belong to the driver.

Examples:
    A driver backed by a key-value client::

        class KVStorageDriver:
            def __init__(self, client):
                self.client = client

            async def get(self, storage_key: str) -> IdempotentRecord | None:
                data = await self.client.get(storage_key)
                if data is None:
                    return None
                return IdempotentRecord.model_validate_json(data)

            async def save(self, record: IdempotentRecord) -> None:
                await self.client.put(record.storage_key, record.model_dump_json())

Atomicity:
    ``RecordStore.find_or_create`` reads then writes. Two simultaneous first
    requests for the same key can both observe "absent" unless the driver's
    ``save`` is an atomic insert-if-absent for new records (unique
    constraint, conditional put). Production drivers should provide that.
    The read-after-write consistency of the driver also bounds how reliably
    a concurrent retry observes a lock.
"""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from idempotent_request.models import IdempotentRecord


@runtime_checkable
class StorageDriver(Protocol):
    """Protocol defining the raw get/save contract of storage backends."""

    def get(self, storage_key: str) -> IdempotentRecord | None | Awaitable[IdempotentRecord | None]:
        """Retrieve a record by storage key.

        Args:
            storage_key: Key of the record.

        Returns:
            The stored record if found, None otherwise.
        """
        ...

    def save(self, record: IdempotentRecord) -> None | Awaitable[None]:
        """Store ``record`` under ``record.storage_key`` (full replace).

        Args:
            record: The record to store.
        """
        ...
