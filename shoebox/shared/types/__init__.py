"""Shared types used across layers.

These types flow through Port interfaces and must remain stable.

- Record:  stored envelope (value + optional absolute expiry)
- MISSING: the "missing value" marker, distinct from None
- Clock:   injectable time source (milliseconds since epoch)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Final, Protocol

DEFAULT_NAMESPACE: Final = "default"


class _Missing:
    """Singleton type of MISSING.

    Survives copy/deepcopy/pickle as the same object so identity
    checks (`value is MISSING`) keep working after a record is copied.
    """

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


@dataclass(frozen=True)
class Record:
    """A stored value plus its absolute expiry instant (ms since epoch)."""

    value: Any
    expires_at: int | None = None


class Clock(Protocol):
    """Time source returning milliseconds since the Unix epoch."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock implementation of Clock."""

    def now(self) -> int:
        return time.time_ns() // 1_000_000


__all__ = [
    "DEFAULT_NAMESPACE",
    "MISSING",
    "Clock",
    "Record",
    "SystemClock",
]
