"""Redis implementation of RawStorePort.

- Physical key "<namespace>:<key>"; payload is the codec-encoded
  {"value": ..., "expiresAt": ...} envelope
- Redis has no namespaces: every write also SADDs the physical key to the
  "namespace\\:<ns>" set, and clear() deletes exactly that set's members
- TTL writes use native PX expiry; reads take expires_at from the live
  PTTL (GET and PTTL run in one MULTI pipeline), falling back to the
  payload's expiresAt when the key carries no native TTL
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shoebox.core.codec import deserialize, serialize
from shoebox.core.expiry import ExpiryPolicy
from shoebox.core.namespace import NamespaceKeyer
from shoebox.ports.raw_store_port import RawStorePort
from shoebox.shared.errors import BackingStoreIOError, SerializationError
from shoebox.shared.types import DEFAULT_NAMESPACE, Record

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shoebox.shared.types import Clock

logger = logging.getLogger(__name__)

_BACKEND = "redis"


class RedisRawStore(RawStorePort):
    """Redis adapter implementing the RawStorePort interface.

    The client is either injected or created lazily from ``redis_url``.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        *,
        client: aioredis.Redis | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Clock | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._client = client
        self._keyer = NamespaceKeyer(namespace)
        self._expiry = ExpiryPolicy(clock)

    @property
    def namespace(self) -> str:
        return self._keyer.namespace

    async def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(self._redis_url, decode_responses=False)  # type: ignore[no-untyped-call]
        return self._client

    @contextmanager
    def _io(self, operation: str) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            msg = f"Redis {operation} failed in namespace {self.namespace}: {exc}"
            raise BackingStoreIOError(_BACKEND, msg) from exc

    async def import_(self, key: str, record: Record) -> None:
        """Store a record; PX is set from the time left until expires_at."""
        remaining = self._expiry.remaining(record.expires_at)
        if remaining is not None and remaining <= 0:
            # Already expired: Redis rejects non-positive PX, and the record
            # would read as absent anyway.
            await self.delete(key)
            return

        physical_key = self._keyer.attach(key)
        encoded = serialize({"value": record.value, "expiresAt": record.expires_at})
        client = await self._get_client()
        with self._io("import"):
            if remaining is not None:
                write = client.set(physical_key, encoded, px=remaining)
            else:
                write = client.set(physical_key, encoded)
            await asyncio.gather(write, client.sadd(self._keyer.membership_key, physical_key))

    async def export(self, key: str) -> Record | None:
        """Read a record, deleting it if its logical expiry has passed.

        A positive PTTL replaces the payload's expiresAt; the two differ
        only by write propagation latency.
        """
        physical_key = self._keyer.attach(key)
        client = await self._get_client()
        with self._io("export"):
            async with client.pipeline(transaction=True) as pipe:
                pipe.get(physical_key)
                pipe.pttl(physical_key)
                raw, pttl = await pipe.execute()
        if raw is None:
            return None
        record = _decode_envelope(deserialize(raw))
        if pttl is not None and pttl > 0:
            record = Record(value=record.value, expires_at=self._expiry.now() + pttl)
        return await self._expiry.acheck(record, on_expire=lambda: self._evict(key))

    async def delete(self, key: str) -> None:
        """Delete from the primary keyspace and the membership set."""
        physical_key = self._keyer.attach(key)
        client = await self._get_client()
        with self._io("delete"):
            await asyncio.gather(
                client.delete(physical_key),
                client.srem(self._keyer.membership_key, physical_key),
            )

    async def clear(self) -> None:
        """Delete every key tracked for this namespace, then the set itself."""
        client = await self._get_client()
        with self._io("clear"):
            members = await client.smembers(self._keyer.membership_key)
            await client.delete(*members, self._keyer.membership_key)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _evict(self, key: str) -> None:
        logger.debug("Evicting expired key %s from namespace %s", key, self.namespace)
        await self.delete(key)


def _decode_envelope(payload: Any) -> Record:
    if not isinstance(payload, dict) or "value" not in payload:
        msg = "Stored payload is not a record envelope"
        raise SerializationError(msg)
    expires_at = payload.get("expiresAt")
    if expires_at is not None and not isinstance(expires_at, int):
        msg = f"Stored expiresAt is not an integer: {expires_at!r}"
        raise SerializationError(msg)
    return Record(value=payload["value"], expires_at=expires_at)
