"""Storage layer for idempotent records.

- StorageDriver: raw get/save protocol implemented by backends
- RecordStore: find-or-create, lock and unlock-with-response on top of a driver
- MemoryStorageDriver: in-process driver with optional TTL
"""

from idempotent_request.storage.base import StorageDriver
from idempotent_request.storage.memory import MemoryStorageDriver
from idempotent_request.storage.store import FindOrCreateResult, RecordStore

__all__ = [
    "FindOrCreateResult",
    "MemoryStorageDriver",
    "RecordStore",
    "StorageDriver",
]
