"""SQLAlchemy engine factories for the embedded SQLite backend.

Provides:
- create_db_engine(): Engine factory (pysqlite driver), for SyncStore
- create_async_db_engine(): AsyncEngine factory (aiosqlite driver), for
  AsyncStore, so queries never block the event loop

The default URL ``sqlite://`` is an in-memory database. The sync engine
keeps one connection per thread for it; the async engine uses a single
StaticPool connection, so data survives across statements either way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

DEFAULT_DATABASE_URL = "sqlite://"
ASYNC_DRIVER = "sqlite+aiosqlite"


def create_db_engine(url: str = DEFAULT_DATABASE_URL, *, echo: bool = False) -> Engine:
    """Create a synchronous SQLAlchemy engine.

    Args:
        url: Database URL (``sqlite://`` for memory, ``sqlite:///path.db`` for a file).
        echo: Whether to log SQL statements.

    Returns:
        Configured Engine instance.
    """
    return sa.create_engine(url, echo=echo)


def create_async_db_engine(url: str = DEFAULT_DATABASE_URL, *, echo: bool = False) -> AsyncEngine:
    """Create an async SQLAlchemy engine for aiosqlite.

    A plain ``sqlite://`` URL is upgraded to ``sqlite+aiosqlite://`` so
    one SHOEBOX_DATABASE_URL serves both sync and async stores.

    Args:
        url: Database URL (``sqlite://`` or ``sqlite+aiosqlite://`` scheme).
        echo: Whether to log SQL statements.

    Returns:
        Configured AsyncEngine instance.
    """
    parsed = sa.make_url(url)
    if parsed.drivername == "sqlite":
        parsed = parsed.set(drivername=ASYNC_DRIVER)
    if parsed.database in (None, "", ":memory:"):
        return create_async_engine(parsed, echo=echo, poolclass=StaticPool)
    return create_async_engine(parsed, echo=echo)
