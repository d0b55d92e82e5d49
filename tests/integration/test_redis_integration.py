"""Integration test for the Redis RawStore.

Connects to a live Redis (default DB 15 on localhost:6380; override with
REDIS_URL). Each test uses its own namespace and clears it afterwards.
"""

from __future__ import annotations

import asyncio
import os
import socket
import uuid
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import pytest

from shoebox.infra.cache.redis import RedisRawStore
from shoebox.main import redis_store
from shoebox.shared.types import MISSING, Record

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from shoebox.store.facade import AsyncStore

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6380/15")


def _can_connect() -> bool:
    """Check if Redis is reachable."""
    parsed = urlparse(REDIS_URL)
    try:
        s = socket.create_connection((parsed.hostname or "localhost", parsed.port or 6379), timeout=1)
        s.close()
        return True
    except (OSError, ValueError):
        return False


skip_no_redis = pytest.mark.skipif(
    not _can_connect(),
    reason="Redis not available",
)


@pytest.fixture()
async def store() -> AsyncIterator[AsyncStore]:
    s = redis_store(redis_url=REDIS_URL, namespace=f"inttest-{uuid.uuid4().hex[:8]}")
    yield s
    await s.clear()
    await s.close()


@pytest.mark.integration
@skip_no_redis
class TestRedisIntegration:
    """Integration: RedisRawStore against live Redis."""

    async def test_set_and_get(self, store: AsyncStore) -> None:
        await store.set("k1", {"hello": "world", "gone": MISSING})
        assert await store.get("k1") == {"hello": "world", "gone": MISSING}

    async def test_delete(self, store: AsyncStore) -> None:
        await store.set("del", "value")
        await store.delete("del")
        assert await store.get("del") is None

    async def test_export_expiry_tracks_native_ttl(self, store: AsyncStore) -> None:
        # 2039-09-07T15:47:35Z in epoch milliseconds.
        record = Record("v", 2_199_023_255_552)
        await store.import_("abs", record)
        exported = await store.export("abs")
        assert exported is not None
        assert exported.value == "v"
        # Derived from PTTL, so within a round trip of the written instant.
        assert exported.expires_at is not None
        assert abs(exported.expires_at - record.expires_at) < 1000

    async def test_native_expiry(self, store: AsyncStore) -> None:
        await store.set("ttl", "val", 300)
        assert await store.get("ttl") == "val"
        await asyncio.sleep(0.4)
        assert await store.get("ttl") is None

    async def test_clear_only_touches_own_namespace(self, store: AsyncStore) -> None:
        other = RedisRawStore(REDIS_URL, namespace=f"inttest-other-{uuid.uuid4().hex[:8]}")
        try:
            await other.import_("k", Record("kept"))
            await store.set("k", "dropped")
            await store.clear()
            assert await store.get("k") is None
            assert await other.export("k") == Record("kept")
        finally:
            await other.clear()
            await other.close()
