"""Shoebox - namespaced key-value storage with TTL and debounced writes.

Backends (interchangeable):
    memory  - in-process dict
    redis   - network cache (redis.asyncio)
    sqlite  - embedded relational file (SQLAlchemy)

Usage::

    store = memory_store(namespace="app", debounce={"/^draft:/": 500})
    await store.set("draft:1", {"title": "hi"}, ttl=60_000)
    await store.get("draft:1")
    await store.close()  # flushes pending debounced writes
"""

from shoebox.main import (
    build_store,
    memory_store,
    memory_sync_store,
    redis_store,
    sqlite_store,
    sqlite_sync_store,
)
from shoebox.settings import StoreSettings
from shoebox.shared.errors import (
    BackingStoreIOError,
    SchemaInitError,
    SerializationError,
    ShoeboxError,
)
from shoebox.shared.types import MISSING, Record
from shoebox.store.debounce import DebounceCoalescer
from shoebox.store.facade import AsyncAdapter, AsyncStore, SyncStore

__all__ = [
    "MISSING",
    "AsyncAdapter",
    "AsyncStore",
    "BackingStoreIOError",
    "DebounceCoalescer",
    "Record",
    "SchemaInitError",
    "SerializationError",
    "ShoeboxError",
    "StoreSettings",
    "SyncStore",
    "build_store",
    "memory_store",
    "memory_sync_store",
    "redis_store",
    "sqlite_store",
    "sqlite_sync_store",
]

__version__ = "0.1.0"
