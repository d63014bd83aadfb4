"""Tests for the in-memory verification store."""

from datetime import timedelta

import pytest

from app.infrastructure.verification_store import InMemoryVerificationStore


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestInMemoryVerificationStore:
    def setup_method(self):
        self.clock = FakeClock()
        self.store = InMemoryVerificationStore("test", clock=self.clock)

    @pytest.mark.asyncio
    async def test_put_and_get(self):
        expires_at = await self.store.put("a@x.com", {"code": "123456"}, timedelta(minutes=15))

        assert expires_at == self.clock.now + 900
        assert await self.store.get("a@x.com") == {"code": "123456"}

    @pytest.mark.asyncio
    async def test_put_overwrites(self):
        await self.store.put("k", "first", timedelta(minutes=1))
        await self.store.put("k", "second", timedelta(minutes=1))

        assert await self.store.get("k") == "second"
        assert len(self.store) == 1

    @pytest.mark.asyncio
    async def test_valid_up_to_expiry_instant(self):
        await self.store.put("k", "v", timedelta(seconds=60))

        self.clock.advance(60)
        assert await self.store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent_and_removed(self):
        await self.store.put("k", "v", timedelta(seconds=60))

        self.clock.advance(61)

        assert await self.store.get("k") is None
        assert len(self.store) == 0

    @pytest.mark.asyncio
    async def test_put_after_expiry_starts_a_fresh_ttl(self):
        await self.store.put("k", "old", timedelta(seconds=10))
        self.clock.advance(20)
        await self.store.put("k", "new", timedelta(seconds=10))

        assert await self.store.get("k") == "new"

    @pytest.mark.asyncio
    async def test_delete(self):
        await self.store.put("k", "v", timedelta(minutes=1))

        assert await self.store.delete("k") is True
        assert await self.store.delete("k") is False
        assert await self.store.get("k") is None

    @pytest.mark.asyncio
    async def test_purge_expired(self):
        await self.store.put("short", 1, timedelta(seconds=5))
        await self.store.put("long", 2, timedelta(seconds=500))
        self.clock.advance(10)

        assert await self.store.purge_expired() == 1
        assert await self.store.get("long") == 2
        assert len(self.store) == 1
