"""Expiry policy: relative TTL -> absolute instant, lazy expiry checks.

Expiry is evaluated only when a record is read. There is no background
sweeper: a read that finds an expired record reports it absent and
triggers physical deletion via the caller-supplied ``on_expire`` hook.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from shoebox.shared.types import SystemClock

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from shoebox.shared.types import Clock, Record

_T = TypeVar("_T")


class ExpiryPolicy:
    """Clock-bound expiry arithmetic (all values in milliseconds)."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> int:
        return self._clock.now()

    def expires_at(self, ttl: int | None = None) -> int | None:
        """Absolute expiry instant for a TTL, or None for no expiry."""
        if ttl is None:
            return None
        return self._clock.now() + ttl

    def is_expired(self, expires_at: int | None) -> bool:
        return expires_at is not None and expires_at <= self._clock.now()

    def remaining(self, expires_at: int | None) -> int | None:
        """Milliseconds left before expiry (may be <= 0), or None."""
        if expires_at is None:
            return None
        return expires_at - self._clock.now()

    def check(self, record: Record | None, on_expire: Callable[[], _T]) -> Record | None:
        """Return the record if live; run ``on_expire`` and return None if expired."""
        if record is None:
            return None
        if self.is_expired(record.expires_at):
            on_expire()
            return None
        return record

    async def acheck(
        self,
        record: Record | None,
        on_expire: Callable[[], Awaitable[_T]],
    ) -> Record | None:
        """Async variant of :meth:`check` for I/O-bound eviction."""
        if record is None:
            return None
        if self.is_expired(record.expires_at):
            await on_expire()
            return None
        return record
