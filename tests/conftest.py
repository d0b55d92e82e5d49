"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit        - No external deps
    @pytest.mark.integration - Needs running services (Redis)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine

from shoebox.infra.db import create_async_db_engine, create_db_engine
from tests.fakes import FakeClock, FakeRedis


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Fresh in-memory SQLite engine per test."""
    eng = create_db_engine()
    yield eng
    eng.dispose()


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory aiosqlite engine per test."""
    eng = create_async_db_engine()
    yield eng
    await eng.dispose()
