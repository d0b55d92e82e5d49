"""Value-level store facades over the RawStore ports.

SyncStore / AsyncStore add get/set on top of import_/export by composing
the expiry policy, so simple callers never see the Record envelope.

AsyncAdapter lifts a synchronous store onto RawStorePort so that callers
use one awaitable interface whatever the backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from shoebox.core.expiry import ExpiryPolicy
from shoebox.ports.raw_store_port import RawStorePort, SyncRawStorePort
from shoebox.shared.types import Record
from shoebox.store.debounce import DebounceCoalescer

if TYPE_CHECKING:
    from shoebox.shared.types import Clock


class SyncStore(SyncRawStorePort):
    """Synchronous store with value-level get/set."""

    def __init__(self, raw: SyncRawStorePort, *, clock: Clock | None = None) -> None:
        self._raw = raw
        self._expiry = ExpiryPolicy(clock)

    @property
    def raw(self) -> SyncRawStorePort:
        return self._raw

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` if absent or expired.

        None is a storable value, so with the default of None a stored None
        and an absent key read alike. Pass a private sentinel as ``default``
        (or call export(), which returns None only when the key is absent)
        to tell them apart.
        """
        record = self._raw.export(key)
        return default if record is None else record.value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value; ``ttl`` is relative, in milliseconds."""
        self._raw.import_(key, Record(value=value, expires_at=self._expiry.expires_at(ttl)))

    def import_(self, key: str, record: Record) -> None:
        self._raw.import_(key, record)

    def export(self, key: str) -> Record | None:
        return self._raw.export(key)

    def delete(self, key: str) -> None:
        self._raw.delete(key)

    def clear(self) -> None:
        self._raw.clear()


class AsyncStore(RawStorePort):
    """Async store with value-level get/set."""

    def __init__(self, raw: RawStorePort, *, clock: Clock | None = None) -> None:
        self._raw = raw
        self._expiry = ExpiryPolicy(clock)

    @property
    def raw(self) -> RawStorePort:
        return self._raw

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` if absent or expired."""
        record = await self._raw.export(key)
        return default if record is None else record.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value; ``ttl`` is relative, in milliseconds."""
        await self._raw.import_(key, Record(value=value, expires_at=self._expiry.expires_at(ttl)))

    async def import_(self, key: str, record: Record) -> None:
        await self._raw.import_(key, record)

    async def export(self, key: str) -> Record | None:
        return await self._raw.export(key)

    async def delete(self, key: str) -> None:
        await self._raw.delete(key)

    async def clear(self) -> None:
        await self._raw.clear()

    async def flush(self) -> None:
        """Drain deferred writes when the store is debounced."""
        if isinstance(self._raw, DebounceCoalescer):
            await self._raw.flush()

    async def close(self) -> None:
        """Flush pending writes, then release backend connections."""
        await self.flush()
        backend = self._raw.backing if isinstance(self._raw, DebounceCoalescer) else self._raw
        close = getattr(backend, "close", None)
        if close is not None:
            await close()


class AsyncAdapter(RawStorePort):
    """Runs a SyncRawStorePort inline behind the async RawStorePort API."""

    def __init__(self, store: SyncRawStorePort) -> None:
        self._store = store

    @property
    def store(self) -> SyncRawStorePort:
        return self._store

    async def import_(self, key: str, record: Record) -> None:
        self._store.import_(key, record)

    async def export(self, key: str) -> Record | None:
        return self._store.export(key)

    async def delete(self, key: str) -> None:
        self._store.delete(key)

    async def clear(self) -> None:
        self._store.clear()
