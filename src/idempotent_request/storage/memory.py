"""In-memory storage driver.

Records are kept as JSON strings in a dictionary, so every ``get`` returns
an independent copy just like a remote backend would. Operations never
suspend between reading and writing the dictionary, which makes each call
atomic with respect to other coroutines on the same event loop.

The MemoryStorageDriver is suitable for:
    - Single-process applications
    - Development and testing

Examples:
    Basic usage::

        from idempotent_request.storage.memory import MemoryStorageDriver

        driver = MemoryStorageDriver(ttl_seconds=86400)
        middleware = IdempotencyMiddleware(spec, driver)

    Clearing a stuck lock by hand::

        await driver.delete("POST-/api/payments-8e0f9c1e-...")
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from idempotent_request.config import IdempotencyConfig
from idempotent_request.models import IdempotentRecord
from idempotent_request.observability.logging import get_logger

logger = get_logger(__name__)


class MemoryStorageDriver:
    """In-memory storage driver with optional TTL.

    Attributes:
        ttl_seconds: Lifetime of a record measured from its first save, or
            None to keep records forever.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize an empty driver.

        Args:
            ttl_seconds: Optional record lifetime in seconds.
            clock: Source of the current time, for tests.
        """
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or (lambda: datetime.now(UTC))
        self._store: dict[str, str] = {}
        self._expires_at: dict[str, datetime] = {}

    @classmethod
    def from_config(cls, config: IdempotencyConfig) -> "MemoryStorageDriver":
        """Create a driver using ``config.memory_ttl_seconds``."""
        return cls(ttl_seconds=config.memory_ttl_seconds)

    async def get(self, storage_key: str) -> IdempotentRecord | None:
        """Return the record stored under ``storage_key``, if not expired."""
        if self._is_expired(storage_key):
            self._remove(storage_key)
        data = self._store.get(storage_key)
        if data is None:
            return None
        return IdempotentRecord.model_validate_json(data)

    async def save(self, record: IdempotentRecord) -> None:
        """Store ``record``. The expiry is set when the key is first saved."""
        key = record.storage_key
        if self._is_expired(key):
            self._remove(key)
        if key not in self._store and self.ttl_seconds is not None:
            self._expires_at[key] = self._clock() + timedelta(seconds=self.ttl_seconds)
        self._store[key] = record.model_dump_json()

    async def delete(self, storage_key: str) -> bool:
        """Remove a record. Returns whether a record was removed."""
        removed = storage_key in self._store
        self._remove(storage_key)
        if removed:
            logger.info("idempotency.record_deleted", storage_key=storage_key)
        return removed

    async def cleanup_expired(self) -> int:
        """Remove all expired records.

        Returns:
            The number of records removed.
        """
        expired = [key for key in list(self._expires_at) if self._is_expired(key)]
        for key in expired:
            self._remove(key)
        if expired:
            logger.info("idempotency.cleanup", records_removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    def _is_expired(self, storage_key: str) -> bool:
        expires_at = self._expires_at.get(storage_key)
        return expires_at is not None and expires_at <= self._clock()

    def _remove(self, storage_key: str) -> None:
        self._store.pop(storage_key, None)
        self._expires_at.pop(storage_key, None)
