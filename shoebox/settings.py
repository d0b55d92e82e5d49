"""Store configuration read from environment variables.

    SHOEBOX_BACKEND       memory | redis | sqlite         (default: memory)
    SHOEBOX_NAMESPACE     key namespace                   (default: default)
    REDIS_URL             Redis connection URL            (default: redis://localhost:6379/0)
    SHOEBOX_DATABASE_URL  SQLAlchemy SQLite URL           (default: sqlite://)
    SHOEBOX_TABLE         SQLite table name               (default: shoebox)
    SHOEBOX_DEBOUNCE      JSON object {matcher: delay_ms} (default: none)

Matchers in SHOEBOX_DEBOUNCE keep their declaration order, e.g.
``{"session": 100, "/^draft:/i": 500}``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from shoebox.infra.db import DEFAULT_DATABASE_URL
from shoebox.infra.models import DEFAULT_TABLE
from shoebox.shared.types import DEFAULT_NAMESPACE

if TYPE_CHECKING:
    from collections.abc import Mapping

BACKENDS: Final = frozenset({"memory", "redis", "sqlite"})
DEFAULT_REDIS_URL: Final = "redis://localhost:6379/0"


@dataclass(frozen=True)
class StoreSettings:
    """Which backend to build and how to scope it."""

    backend: str = "memory"
    namespace: str = DEFAULT_NAMESPACE
    redis_url: str = DEFAULT_REDIS_URL
    database_url: str = DEFAULT_DATABASE_URL
    table: str = DEFAULT_TABLE
    debounce: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            msg = f"Unknown backend {self.backend!r}; expected one of {sorted(BACKENDS)}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreSettings:
        """Read settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        return cls(
            backend=env.get("SHOEBOX_BACKEND", "memory").strip().lower(),
            namespace=env.get("SHOEBOX_NAMESPACE", DEFAULT_NAMESPACE),
            redis_url=env.get("REDIS_URL", DEFAULT_REDIS_URL),
            database_url=env.get("SHOEBOX_DATABASE_URL", DEFAULT_DATABASE_URL),
            table=env.get("SHOEBOX_TABLE", DEFAULT_TABLE),
            debounce=parse_debounce(env.get("SHOEBOX_DEBOUNCE", "")),
        )


def parse_debounce(raw: str) -> dict[str, int]:
    """Parse a JSON ``{matcher: delay_ms}`` object, keeping key order."""
    if not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except ValueError as exc:
        msg = f"SHOEBOX_DEBOUNCE is not valid JSON: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(decoded, dict):
        msg = "SHOEBOX_DEBOUNCE must be a JSON object"
        raise ValueError(msg)

    rules: dict[str, int] = {}
    for matcher, delay in decoded.items():
        if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
            msg = f"Debounce delay for {matcher!r} must be a non-negative integer (ms)"
            raise ValueError(msg)
        rules[matcher] = delay
    return rules
