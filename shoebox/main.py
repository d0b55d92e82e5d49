"""Composition root -- wires backends, coalescer and facades into stores.

Async stores are assembled as:

    RawStore (memory via AsyncAdapter, aiosqlite SQLite, or Redis)
      -> DebounceCoalescer   (only when debounce rules are given)
      -> AsyncStore          (value-level get/set)

build_store() picks the backend from StoreSettings (env-driven).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shoebox.infra.cache.memory import MemoryRawStore
from shoebox.infra.cache.redis import RedisRawStore
from shoebox.infra.db import DEFAULT_DATABASE_URL, create_db_engine
from shoebox.infra.models import DEFAULT_TABLE
from shoebox.infra.sql.sqlite import AsyncSqliteRawStore, SqliteRawStore
from shoebox.settings import DEFAULT_REDIS_URL, StoreSettings
from shoebox.shared.types import DEFAULT_NAMESPACE
from shoebox.store.debounce import DebounceCoalescer
from shoebox.store.facade import AsyncAdapter, AsyncStore, SyncStore

if TYPE_CHECKING:
    from collections.abc import Mapping

    import redis.asyncio as aioredis
    from sqlalchemy.engine import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

    from shoebox.ports.raw_store_port import RawStorePort
    from shoebox.shared.types import Clock, Record

logger = logging.getLogger(__name__)


def _assemble(
    raw: RawStorePort,
    *,
    debounce: Mapping[str, int] | None,
    clock: Clock | None,
) -> AsyncStore:
    if debounce:
        raw = DebounceCoalescer(raw, debounce, clock=clock)
    return AsyncStore(raw, clock=clock)


def memory_sync_store(
    *,
    namespace: str = DEFAULT_NAMESPACE,
    client: dict[str, Record] | None = None,
    clock: Clock | None = None,
) -> SyncStore:
    """Synchronous in-process store."""
    return SyncStore(MemoryRawStore(client=client, namespace=namespace, clock=clock), clock=clock)


def memory_store(
    *,
    namespace: str = DEFAULT_NAMESPACE,
    client: dict[str, Record] | None = None,
    debounce: Mapping[str, int] | None = None,
    clock: Clock | None = None,
) -> AsyncStore:
    """Async in-process store."""
    raw = MemoryRawStore(client=client, namespace=namespace, clock=clock)
    return _assemble(AsyncAdapter(raw), debounce=debounce, clock=clock)


def redis_store(
    *,
    redis_url: str = DEFAULT_REDIS_URL,
    client: aioredis.Redis | None = None,
    namespace: str = DEFAULT_NAMESPACE,
    debounce: Mapping[str, int] | None = None,
    clock: Clock | None = None,
) -> AsyncStore:
    """Async Redis store (client injected or created lazily from URL)."""
    raw = RedisRawStore(redis_url, client=client, namespace=namespace, clock=clock)
    return _assemble(raw, debounce=debounce, clock=clock)


def sqlite_sync_store(
    *,
    engine: Engine | None = None,
    database_url: str = DEFAULT_DATABASE_URL,
    table: str = DEFAULT_TABLE,
    namespace: str = DEFAULT_NAMESPACE,
    clock: Clock | None = None,
) -> SyncStore:
    """Synchronous SQLite store."""
    raw = SqliteRawStore(
        engine if engine is not None else create_db_engine(database_url),
        table=table,
        namespace=namespace,
        clock=clock,
    )
    return SyncStore(raw, clock=clock)


def sqlite_store(
    *,
    engine: AsyncEngine | None = None,
    database_url: str = DEFAULT_DATABASE_URL,
    table: str = DEFAULT_TABLE,
    namespace: str = DEFAULT_NAMESPACE,
    debounce: Mapping[str, int] | None = None,
    clock: Clock | None = None,
) -> AsyncStore:
    """Async SQLite store on an aiosqlite engine (injected or owned from URL)."""
    raw = AsyncSqliteRawStore(
        engine,
        database_url=database_url,
        table=table,
        namespace=namespace,
        clock=clock,
    )
    return _assemble(raw, debounce=debounce, clock=clock)


def build_store(settings: StoreSettings | None = None, *, clock: Clock | None = None) -> AsyncStore:
    """Build the async store described by ``settings`` (env when omitted).

    This function is the single composition root for env-configured use.
    """
    settings = settings if settings is not None else StoreSettings.from_env()

    if settings.backend == "redis":
        store = redis_store(
            redis_url=settings.redis_url,
            namespace=settings.namespace,
            debounce=settings.debounce,
            clock=clock,
        )
    elif settings.backend == "sqlite":
        store = sqlite_store(
            database_url=settings.database_url,
            table=settings.table,
            namespace=settings.namespace,
            debounce=settings.debounce,
            clock=clock,
        )
    else:
        store = memory_store(namespace=settings.namespace, debounce=settings.debounce, clock=clock)

    logger.info(
        "Store built: backend=%s namespace=%s debounce_rules=%d",
        settings.backend,
        settings.namespace,
        len(settings.debounce),
    )
    return store
