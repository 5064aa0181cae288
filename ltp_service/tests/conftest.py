from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ltp_service.services.errors import QuoteError


BASE_TS = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeRedis:
    """Dict-backed stand-in for ``redis.asyncio.Redis``."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def ping(self):
        return True

    async def aclose(self):
        return None


class UnreachableRedis:
    async def get(self, key):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def ping(self):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def aclose(self):
        return None


class FakeClock:
    def __init__(self, start: datetime = BASE_TS) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class StubSource:
    """Quote source returning canned prices or raising canned errors per currency."""

    def __init__(self, responses: dict[str, Decimal | QuoteError]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def fetch(self, currency: str) -> Decimal:
        self.calls.append(currency)
        outcome = self.responses[currency]
        if isinstance(outcome, QuoteError):
            raise outcome
        return outcome


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def unreachable_redis():
    return UnreachableRedis()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_source():
    return StubSource
