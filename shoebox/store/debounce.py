"""Debounced write coalescing over a backing RawStore.

Per-key rules pick a delay; writes to a debounced key land in a private
in-memory shadow store at once and reach the backing store only after
the key has been quiet for that delay. A newer write cancels the older
one's timer, so a burst of writes produces a single backing write
carrying the last value.

State machine per debounced key:
    idle    --write-->    pending (timer armed)
    pending --write-->    pending (timer cancelled and re-armed)
    pending --timer-->    flushing --done--> idle
    pending --flush()-->  idle

Reads of a debounced key are served from the shadow when it has the key;
otherwise they read through the backing store and populate the shadow,
unless a write or clear overlapped the backing read.
Reads never arm or reset timers.

Configuration: ordered ``{matcher: delay_ms}``; a matcher is a literal key
or ``/regex/flags``. The first matching rule wins.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from shoebox.infra.cache.memory import MemoryRawStore
from shoebox.ports.raw_store_port import RawStorePort
from shoebox.shared.logging.error_handler import log_store_failure

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from shoebox.shared.types import Clock, Record

logger = logging.getLogger(__name__)

_PATTERN_SYNTAX: Final = re.compile(r"^/(.*)/(.*)$", re.DOTALL)

_REGEX_FLAGS: Final = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}
# Flags with no meaning for a single boolean test.
_IGNORED_FLAGS: Final = frozenset("guyd")


# -- Matchers --


@dataclass(frozen=True)
class LiteralMatcher:
    """Matches one exact key."""

    key: str

    def matches(self, key: str) -> bool:
        return key == self.key


@dataclass(frozen=True)
class PatternMatcher:
    """Matches keys where the regex is found anywhere (``re.search``)."""

    pattern: re.Pattern[str]

    def matches(self, key: str) -> bool:
        return self.pattern.search(key) is not None


Matcher = LiteralMatcher | PatternMatcher


@dataclass(frozen=True)
class DebounceRule:
    matcher: Matcher
    delay: int  # milliseconds


def parse_matcher(text: str) -> Matcher:
    """Parse ``/regex/flags`` into a PatternMatcher, anything else into a LiteralMatcher."""
    found = _PATTERN_SYNTAX.match(text)
    if found is None or not found.group(1):
        return LiteralMatcher(text)

    source, flag_chars = found.groups()
    flags = 0
    for char in flag_chars:
        if char in _REGEX_FLAGS:
            flags |= _REGEX_FLAGS[char]
        elif char not in _IGNORED_FLAGS:
            msg = f"Unsupported regex flag {char!r} in debounce rule {text!r}"
            raise ValueError(msg)
    return PatternMatcher(re.compile(source, flags))


def parse_rules(config: Mapping[str, int] | Iterable[DebounceRule]) -> list[DebounceRule]:
    """Build rules from an ordered ``{matcher: delay}`` mapping (or pass rules through)."""
    if isinstance(config, Mapping):
        return [DebounceRule(parse_matcher(text), delay) for text, delay in config.items()]
    return list(config)


# -- Coalescer --


@dataclass(eq=False)
class _PendingWrite:
    operation: str
    apply: Callable[[], Awaitable[None]]


class DebounceCoalescer(RawStorePort):
    """RawStorePort that defers and merges writes to debounced keys.

    The shadow store and timer registry are private to each instance,
    even when several coalescers wrap the same backing store.
    """

    def __init__(
        self,
        backing: RawStorePort,
        rules: Mapping[str, int] | Iterable[DebounceRule],
        *,
        clock: Clock | None = None,
    ) -> None:
        self._backing = backing
        self._rules = parse_rules(rules)
        self._shadow = MemoryRawStore(clock=clock)
        self._timers: dict[str, asyncio.TimerHandle] = {}
        # Latest un-flushed write per key; kept until its flush completes.
        self._pending: dict[str, _PendingWrite] = {}
        self._flushing: set[asyncio.Task[None]] = set()
        # Bumped by every debounced write and on both edges of clear(). A
        # read-through caches only if nothing bumped it and no clear runs.
        self._generation = 0
        self._clears_in_flight = 0

    @property
    def backing(self) -> RawStorePort:
        return self._backing

    @property
    def rules(self) -> list[DebounceRule]:
        return list(self._rules)

    def delay_for(self, key: str) -> int | None:
        """Delay of the first rule matching ``key``; None if not debounced."""
        for rule in self._rules:
            if rule.matcher.matches(key):
                return rule.delay
        return None

    def pending_keys(self) -> list[str]:
        """Keys with an armed timer."""
        return list(self._timers)

    # -- RawStorePort --

    async def import_(self, key: str, record: Record) -> None:
        delay = self.delay_for(key)
        if delay is None:
            await self._backing.import_(key, record)
            return

        snapshot = copy.deepcopy(record)
        self._generation += 1
        self._shadow.import_(key, snapshot)
        self._schedule(key, delay, _PendingWrite("import", lambda: self._backing.import_(key, snapshot)))

    async def delete(self, key: str) -> None:
        delay = self.delay_for(key)
        if delay is None:
            await self._backing.delete(key)
            return

        self._generation += 1
        self._shadow.delete(key)
        self._schedule(key, delay, _PendingWrite("delete", lambda: self._backing.delete(key)))

    async def export(self, key: str) -> Record | None:
        if self.delay_for(key) is None:
            return await self._backing.export(key)

        record = self._shadow.export(key)
        if record is not None:
            return record
        if key in self._pending:
            # Unflushed delete, or an unflushed write that has since expired:
            # the backing store is stale for this key.
            return None

        generation = self._generation
        record = await self._backing.export(key)
        if generation != self._generation or self._clears_in_flight:
            # A write or clear overlapped the backing read: the shadow is
            # authoritative for anything it now holds, and the record may
            # predate a clear, so it is returned without being cached.
            fresher = self._shadow.export(key)
            if fresher is not None or key in self._pending:
                return fresher
            return record
        if record is not None:
            self._shadow.import_(key, record)
        return record

    async def clear(self) -> None:
        """Clear shadow and backing store now; supersedes pending writes."""
        self._generation += 1
        self._clears_in_flight += 1
        for key in list(self._timers):
            self._cancel(key)
            self._pending.pop(key, None)
        self._shadow.clear()
        try:
            if self._flushing:
                await asyncio.gather(*self._flushing, return_exceptions=True)
            await self._backing.clear()
        finally:
            self._clears_in_flight -= 1
            self._generation += 1

    # -- Flushing --

    async def flush(self) -> None:
        """Write every pending change to the backing store now.

        Also waits for timer-triggered flushes already in flight. Unlike
        those, failures here are raised: the first one propagates, the
        rest are logged.
        """
        due = [(key, self._pending[key]) for key in list(self._timers)]
        for key, _ in due:
            self._cancel(key)

        results = await asyncio.gather(
            *(self._apply(key, write) for key, write in due),
            return_exceptions=True,
        )
        if self._flushing:
            await asyncio.gather(*self._flushing, return_exceptions=True)

        failures = [
            (key, write, result)
            for (key, write), result in zip(due, results, strict=True)
            if isinstance(result, BaseException)
        ]
        for key, write, exc in failures[1:]:
            log_store_failure(logger, exc, operation=write.operation, key=key)
        if failures:
            raise failures[0][2]

    async def aclose(self) -> None:
        await self.flush()

    def _schedule(self, key: str, delay: int, write: _PendingWrite) -> None:
        self._cancel(key)
        self._pending[key] = write
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(delay / 1000, self._fire, key)
        logger.debug("Debounced %s of key %s for %dms", write.operation, key, delay)

    def _cancel(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        write = self._pending.get(key)
        if write is None:
            return
        task = asyncio.get_running_loop().create_task(self._flush_deferred(key, write))
        self._flushing.add(task)
        task.add_done_callback(self._flushing.discard)

    async def _apply(self, key: str, write: _PendingWrite) -> None:
        try:
            await write.apply()
        finally:
            if self._pending.get(key) is write:
                del self._pending[key]
        logger.debug("Flushed %s of key %s", write.operation, key)

    async def _flush_deferred(self, key: str, write: _PendingWrite) -> None:
        # Nobody awaits a timer-triggered flush; log instead of raising.
        try:
            await self._apply(key, write)
        except Exception as exc:
            log_store_failure(logger, exc, operation=write.operation, key=key)
