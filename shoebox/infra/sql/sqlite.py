"""SQLite record stores via SQLAlchemy Core.

SqliteRawStore (SyncRawStorePort) runs on a pysqlite Engine;
AsyncSqliteRawStore (RawStorePort) runs the same statements on an
aiosqlite AsyncEngine, so AsyncStore never blocks the event loop.

- Namespace is a column, not a key prefix: no keyer, no membership set
- Table is created lazily on first use (CREATE TABLE IF NOT EXISTS);
  the "initialized" flag flips only after creation succeeded, so a failed
  first attempt is retried by the next call
- Only the value is codec-encoded; expiry lives in its own column
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from shoebox.core.codec import deserialize, serialize
from shoebox.core.expiry import ExpiryPolicy
from shoebox.infra.db import DEFAULT_DATABASE_URL, create_async_db_engine, create_db_engine
from shoebox.infra.models import DEFAULT_TABLE, build_records_table
from shoebox.ports.raw_store_port import RawStorePort, SyncRawStorePort
from shoebox.shared.errors import BackingStoreIOError, SchemaInitError
from shoebox.shared.types import DEFAULT_NAMESPACE, Record

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.engine import Connection, Engine, Row
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from shoebox.shared.types import Clock

logger = logging.getLogger(__name__)

_BACKEND = "sqlite"


# -- Statements shared by both stores --


def _row_filter(table: sa.Table, namespace: str, key: str) -> sa.ColumnElement[bool]:
    return sa.and_(table.c["namespace"] == namespace, table.c["key"] == key)


def _upsert(table: sa.Table, namespace: str, key: str, record: Record) -> sa.Executable:
    """INSERT ... ON CONFLICT DO UPDATE for one record."""
    stmt = sqlite_insert(table).values(
        namespace=namespace,
        key=key,
        value=serialize(record.value),
        expires_at=record.expires_at,
    )
    return stmt.on_conflict_do_update(
        index_elements=[table.c["namespace"], table.c["key"]],
        set_={
            "value": stmt.excluded["value"],
            "expires_at": stmt.excluded["expires_at"],
        },
    )


def _select(table: sa.Table, namespace: str, key: str) -> sa.Select[tuple[str, int | None]]:
    columns = table.c
    return sa.select(columns["value"], columns["expires_at"]).where(_row_filter(table, namespace, key)).limit(1)


def _delete_row(table: sa.Table, namespace: str, key: str) -> sa.Delete:
    return sa.delete(table).where(_row_filter(table, namespace, key))


def _delete_namespace(table: sa.Table, namespace: str) -> sa.Delete:
    return sa.delete(table).where(table.c["namespace"] == namespace)


def _to_record(row: Row[tuple[str, int | None]]) -> Record:
    encoded, expires_at = row
    return Record(value=deserialize(encoded), expires_at=expires_at)


def _io_error(operation: str, namespace: str, exc: SQLAlchemyError) -> BackingStoreIOError:
    return BackingStoreIOError(_BACKEND, f"SQLite {operation} failed in namespace {namespace}: {exc}")


def _schema_error(table: sa.Table, exc: SQLAlchemyError) -> SchemaInitError:
    return SchemaInitError(table.name, f"Failed to create table {table.name}: {exc}")


# -- Stores --


class SqliteRawStore(SyncRawStorePort):
    """SQLite-backed record store.

    Several stores may share one engine and table; each only ever touches
    rows of its own namespace.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        table: str = DEFAULT_TABLE,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Clock | None = None,
    ) -> None:
        self._engine = engine if engine is not None else create_db_engine()
        self._table = build_records_table(table)
        self._namespace = namespace
        self._expiry = ExpiryPolicy(clock)
        self._initialized = False

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def table(self) -> sa.Table:
        return self._table

    def _ensure_table(self) -> None:
        if self._initialized:
            return
        try:
            self._table.create(self._engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise _schema_error(self._table, exc) from exc
        self._initialized = True
        logger.debug("Table %s ready", self._table.name)

    @contextmanager
    def _begin(self, operation: str) -> Iterator[Connection]:
        self._ensure_table()
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise _io_error(operation, self._namespace, exc) from exc

    def import_(self, key: str, record: Record) -> None:
        """Upsert the record (INSERT ... ON CONFLICT DO UPDATE)."""
        stmt = _upsert(self._table, self._namespace, key, record)
        with self._begin("import") as conn:
            conn.execute(stmt)

    def export(self, key: str) -> Record | None:
        """Read a record, deleting the row if it has expired."""
        with self._begin("export") as conn:
            row = conn.execute(_select(self._table, self._namespace, key)).one_or_none()
        if row is None:
            return None
        return self._expiry.check(_to_record(row), on_expire=lambda: self._evict(key))

    def delete(self, key: str) -> None:
        with self._begin("delete") as conn:
            conn.execute(_delete_row(self._table, self._namespace, key))

    def clear(self) -> None:
        """Delete this namespace's rows only."""
        with self._begin("clear") as conn:
            conn.execute(_delete_namespace(self._table, self._namespace))

    def _evict(self, key: str) -> None:
        logger.debug("Evicting expired key %s from namespace %s", key, self._namespace)
        self.delete(key)


class AsyncSqliteRawStore(RawStorePort):
    """SQLite-backed record store on an aiosqlite AsyncEngine.

    Statements of one store run one at a time: SQLite has a single writer,
    and an in-memory database lives on a single shared connection.

    An engine created here from ``database_url`` is disposed by close();
    an injected engine belongs to the caller.
    """

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        *,
        database_url: str = DEFAULT_DATABASE_URL,
        table: str = DEFAULT_TABLE,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Clock | None = None,
    ) -> None:
        self._owns_engine = engine is None
        self._engine = engine if engine is not None else create_async_db_engine(database_url)
        self._table = build_records_table(table)
        self._namespace = namespace
        self._expiry = ExpiryPolicy(clock)
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def table(self) -> sa.Table:
        return self._table

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def _ensure_table(self) -> None:
        if self._initialized:
            return
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(self._table.create, checkfirst=True)
        except SQLAlchemyError as exc:
            raise _schema_error(self._table, exc) from exc
        self._initialized = True
        logger.debug("Table %s ready", self._table.name)

    @asynccontextmanager
    async def _begin(self, operation: str) -> AsyncIterator[AsyncConnection]:
        async with self._lock:
            await self._ensure_table()
            try:
                async with self._engine.begin() as conn:
                    yield conn
            except SQLAlchemyError as exc:
                raise _io_error(operation, self._namespace, exc) from exc

    async def import_(self, key: str, record: Record) -> None:
        """Upsert the record (INSERT ... ON CONFLICT DO UPDATE)."""
        stmt = _upsert(self._table, self._namespace, key, record)
        async with self._begin("import") as conn:
            await conn.execute(stmt)

    async def export(self, key: str) -> Record | None:
        """Read a record, deleting the row if it has expired."""
        async with self._begin("export") as conn:
            row = (await conn.execute(_select(self._table, self._namespace, key))).one_or_none()
        if row is None:
            return None
        return await self._expiry.acheck(_to_record(row), on_expire=lambda: self._evict(key))

    async def delete(self, key: str) -> None:
        async with self._begin("delete") as conn:
            await conn.execute(_delete_row(self._table, self._namespace, key))

    async def clear(self) -> None:
        """Delete this namespace's rows only."""
        async with self._begin("clear") as conn:
            await conn.execute(_delete_namespace(self._table, self._namespace))

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()

    async def _evict(self, key: str) -> None:
        logger.debug("Evicting expired key %s from namespace %s", key, self._namespace)
        await self.delete(key)
