"""Shared Fake adapters for testing without unittest.mock.

All Fake implementations follow the Port DI adapter pattern:
real Python classes with preset behaviour, no AsyncMock/MagicMock.
"""

from tests.fakes.clock import FakeClock
from tests.fakes.redis import FakeRedis
from tests.fakes.sql import CountingEngine
from tests.fakes.stores import FailingRawStore, GatedRawStore, RecordingRawStore

__all__ = [
    "CountingEngine",
    "FailingRawStore",
    "FakeClock",
    "FakeRedis",
    "GatedRawStore",
    "RecordingRawStore",
]
