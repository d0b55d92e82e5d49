"""Tests for ExpiryPolicy (lazy, clock-injected expiry)."""

from __future__ import annotations

import pytest

from shoebox.core.expiry import ExpiryPolicy
from shoebox.shared.types import Record, SystemClock
from tests.fakes import FakeClock


@pytest.fixture
def policy(clock: FakeClock) -> ExpiryPolicy:
    return ExpiryPolicy(clock)


@pytest.mark.unit
class TestExpiresAt:
    def test_adds_ttl_to_now(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        assert policy.expires_at(100) == clock.now() + 100

    def test_no_ttl_means_no_expiry(self, policy: ExpiryPolicy) -> None:
        assert policy.expires_at(None) is None
        assert policy.expires_at() is None

    def test_zero_ttl_expires_immediately(self, policy: ExpiryPolicy) -> None:
        assert policy.is_expired(policy.expires_at(0))

    def test_defaults_to_system_clock(self) -> None:
        assert isinstance(ExpiryPolicy().clock, SystemClock)


@pytest.mark.unit
class TestIsExpired:
    def test_none_never_expires(self, policy: ExpiryPolicy) -> None:
        assert policy.is_expired(None) is False

    def test_future_is_live(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        assert policy.is_expired(clock.now() + 1) is False

    def test_boundary_is_expired(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        assert policy.is_expired(clock.now()) is True

    def test_past_is_expired(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        assert policy.is_expired(clock.now() - 1) is True

    def test_follows_clock(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        expires_at = policy.expires_at(100)
        clock.advance(99)
        assert policy.is_expired(expires_at) is False
        clock.advance(1)
        assert policy.is_expired(expires_at) is True


@pytest.mark.unit
class TestRemaining:
    def test_none(self, policy: ExpiryPolicy) -> None:
        assert policy.remaining(None) is None

    def test_counts_down(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        expires_at = policy.expires_at(100)
        clock.advance(30)
        assert policy.remaining(expires_at) == 70


@pytest.mark.unit
class TestCheck:
    def test_absent_record(self, policy: ExpiryPolicy) -> None:
        calls: list[str] = []
        assert policy.check(None, on_expire=lambda: calls.append("x")) is None
        assert calls == []

    def test_live_record_is_returned(self, policy: ExpiryPolicy) -> None:
        record = Record("v", policy.expires_at(10))
        calls: list[str] = []
        assert policy.check(record, on_expire=lambda: calls.append("x")) is record
        assert calls == []

    def test_expired_record_triggers_eviction(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        record = Record("v", policy.expires_at(10))
        clock.advance(10)
        calls: list[str] = []
        assert policy.check(record, on_expire=lambda: calls.append("evicted")) is None
        assert calls == ["evicted"]

    async def test_acheck_awaits_eviction(self, policy: ExpiryPolicy, clock: FakeClock) -> None:
        record = Record("v", policy.expires_at(10))
        clock.advance(11)
        calls: list[str] = []

        async def evict() -> None:
            calls.append("evicted")

        assert await policy.acheck(record, on_expire=evict) is None
        assert calls == ["evicted"]

    async def test_acheck_live(self, policy: ExpiryPolicy) -> None:
        record = Record("v")

        async def evict() -> None:
            raise AssertionError("must not evict")

        assert await policy.acheck(record, on_expire=evict) is record
