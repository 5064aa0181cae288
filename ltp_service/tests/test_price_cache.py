from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal

import pytest

from ltp_service.services.price_cache import (
    CachedQuote,
    CacheUnavailable,
    PriceCache,
    build_redis_backend,
    cache_key,
)


def test_cache_key_format():
    assert cache_key("BTC/USD") == "price:BTC/USD"


def test_rejects_non_positive_window():
    with pytest.raises(ValueError):
        PriceCache(None, freshness=timedelta(0))


@pytest.mark.asyncio
async def test_without_backend_every_read_misses_and_writes_are_noops():
    cache = PriceCache(None)
    assert cache.enabled is False
    assert await cache.put("price:BTC/USD", Decimal("1")) is False
    assert await cache.get("price:BTC/USD") is None


@pytest.mark.asyncio
async def test_put_stores_price_timestamp_and_ttl(fake_redis, clock):
    cache = PriceCache(fake_redis, clock=clock)

    assert await cache.put("price:BTC/USD", Decimal("52000.10")) is True

    stored = json.loads(fake_redis.store["price:BTC/USD"])
    assert stored["price"] == "52000.10"
    assert fake_redis.ttls["price:BTC/USD"] == 60

    quote = await cache.get("price:BTC/USD")
    assert quote == CachedQuote(price=Decimal("52000.10"), observed_at=clock.now)


@pytest.mark.asyncio
async def test_ttl_follows_freshness_window(fake_redis, clock):
    cache = PriceCache(fake_redis, freshness=timedelta(seconds=15), clock=clock)
    await cache.put("price:BTC/EUR", Decimal("48000"))
    assert fake_redis.ttls["price:BTC/EUR"] == 15


@pytest.mark.asyncio
async def test_freshness_is_strictly_less_than_window(fake_redis, clock):
    cache = PriceCache(fake_redis, clock=clock)
    await cache.put("price:BTC/USD", Decimal("100"))
    quote = await cache.get("price:BTC/USD")

    clock.advance(30)
    assert cache.is_fresh(quote) is True

    clock.advance(30)
    assert cache.is_fresh(quote) is False

    clock.advance(1)
    assert cache.is_fresh(quote) is False


def test_is_fresh_accepts_explicit_now_and_window(clock):
    cache = PriceCache(None, clock=clock)
    quote = CachedQuote(price=Decimal("1"), observed_at=clock.now)
    later = clock.now + timedelta(seconds=10)

    assert cache.is_fresh(quote, now=later) is True
    assert cache.is_fresh(quote, now=later, window=timedelta(seconds=5)) is False


@pytest.mark.asyncio
async def test_unreadable_entry_is_a_miss(fake_redis):
    fake_redis.store["price:BTC/USD"] = "not json"
    fake_redis.store["price:BTC/EUR"] = json.dumps({"price": "abc", "observed_at": "2024-01-01T00:00:00+00:00"})
    cache = PriceCache(fake_redis)

    assert await cache.get("price:BTC/USD") is None
    assert await cache.get("price:BTC/EUR") is None


@pytest.mark.asyncio
async def test_unreachable_backend_degrades_silently(unreachable_redis):
    cache = PriceCache(unreachable_redis)

    assert cache.enabled is True
    assert await cache.get("price:BTC/USD") is None
    assert await cache.put("price:BTC/USD", Decimal("1")) is False


@pytest.mark.asyncio
async def test_ping_reports_outage(unreachable_redis, fake_redis):
    with pytest.raises(CacheUnavailable):
        await PriceCache(unreachable_redis).ping()
    with pytest.raises(CacheUnavailable):
        await PriceCache(None).ping()

    await PriceCache(fake_redis).ping()


def test_redis_backend_round_trips_are_time_bounded():
    backend = build_redis_backend(host="cache.internal", port=6380, password="secret", socket_timeout=0.25)
    kwargs = backend.connection_pool.connection_kwargs

    assert kwargs["socket_timeout"] == 0.25
    assert kwargs["socket_connect_timeout"] == 0.25
    assert kwargs["host"] == "cache.internal"
    assert kwargs["port"] == 6380
    assert kwargs["password"] == "secret"
    assert kwargs["decode_responses"] is True
