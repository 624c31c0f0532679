"""
Shared test doubles and fixtures.
"""
from datetime import UTC, datetime, timedelta

import pytest

from infrastructure.cache.redis_cache import SpotPriceCache


class FakeRedis:
    """In-memory stand-in for the async Redis client, with manually advanced expiry."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.expirations: dict[str, float] = {}
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        expires_at = self.expirations.get(key)
        if expires_at is not None and expires_at <= self.now:
            self.store.pop(key, None)
            self.expirations.pop(key, None)

    async def exists(self, *keys: str) -> int:
        for key in keys:
            self._purge(key)
        return sum(1 for key in keys if key in self.store or key in self.hashes)

    async def get(self, key: str) -> str | None:
        self._purge(key)
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: timedelta | int | None = None) -> bool:
        self.store[key] = value
        if ex is None:
            self.expirations.pop(key, None)
        else:
            seconds = ex.total_seconds() if isinstance(ex, timedelta) else ex
            self.expirations[key] = self.now + seconds
        return True

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes.get(key, {}))

    async def hset(self, key: str, mapping: dict[str, str]) -> int:
        bucket = self.hashes.setdefault(key, {})
        added = sum(1 for field in mapping if field not in bucket)
        bucket.update(mapping)
        return added

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None or self.hashes.pop(key, None) is not None:
                removed += 1
            self.expirations.pop(key, None)
        return removed


class MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def spot_price_cache(fake_redis) -> SpotPriceCache:
    return SpotPriceCache(redis_client=fake_redis)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2025, 11, 5, 10, 30, 0, tzinfo=UTC))
