"""Backing RawStore fakes for coalescer and facade tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from shoebox.infra.cache.memory import MemoryRawStore
from shoebox.ports.raw_store_port import RawStorePort
from shoebox.shared.errors import BackingStoreIOError

if TYPE_CHECKING:
    from shoebox.shared.types import Clock, Record


class RecordingRawStore(RawStorePort):
    """Async in-memory store that records every call it receives.

    ``writes`` holds ("import", key, value) / ("delete", key, None) tuples
    in arrival order; ``exports`` counts reads.
    """

    def __init__(self, *, namespace: str = "default", clock: Clock | None = None) -> None:
        self.inner = MemoryRawStore(namespace=namespace, clock=clock)
        self.writes: list[tuple[str, str, Any]] = []
        self.exports: list[str] = []
        self.clear_count = 0

    async def import_(self, key: str, record: Record) -> None:
        self.writes.append(("import", key, record.value))
        self.inner.import_(key, record)

    async def export(self, key: str) -> Record | None:
        self.exports.append(key)
        return self.inner.export(key)

    async def delete(self, key: str) -> None:
        self.writes.append(("delete", key, None))
        self.inner.delete(key)

    async def clear(self) -> None:
        self.clear_count += 1
        self.inner.clear()

    def peek(self, key: str) -> Any:
        """Direct backing read that bypasses the coalescer and the call log."""
        record = self.inner.export(key)
        return None if record is None else record.value


class FailingRawStore(RecordingRawStore):
    """RecordingRawStore whose writes fail with BackingStoreIOError."""

    def __init__(self, *, fail_reads: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.attempts = 0

    async def import_(self, key: str, record: Record) -> None:
        self.attempts += 1
        raise BackingStoreIOError("fake", f"write of {key} refused")

    async def delete(self, key: str) -> None:
        self.attempts += 1
        raise BackingStoreIOError("fake", f"delete of {key} refused")

    async def export(self, key: str) -> Record | None:
        if self.fail_reads:
            raise BackingStoreIOError("fake", f"read of {key} refused")
        return await super().export(key)


class GatedRawStore(RecordingRawStore):
    """RecordingRawStore whose export/clear can be held open on an Event.

    Lets tests interleave other operations while a backing call is
    suspended. Gates start open.
    """

    def __init__(self, *, namespace: str = "default", clock: Clock | None = None) -> None:
        super().__init__(namespace=namespace, clock=clock)
        self.export_gate = asyncio.Event()
        self.export_gate.set()
        self.clear_gate = asyncio.Event()
        self.clear_gate.set()

    async def export(self, key: str) -> Record | None:
        self.exports.append(key)
        record = self.inner.export(key)
        await self.export_gate.wait()
        return record

    async def clear(self) -> None:
        await self.clear_gate.wait()
        await super().clear()
