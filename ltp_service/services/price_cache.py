"""
Price cache layered over an optional redis backend.

Freshness is decided on read from the ``observed_at`` stamp of each quote,
while the backend expires entries on its own after the same window.  The
two layers are independent: a quote read moments before backend eviction is
still judged by its own age, and the freshness rule can be tested without
any backend timing.

A missing or unreachable backend turns every read into a miss and every
write into a no-op.  Nothing in here raises on a cache outage except the
explicit ``ping`` health probe.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ltp_service.utils.time import as_utc, utcnow


logger = logging.getLogger("ltp_service.price_cache")

DEFAULT_FRESHNESS = timedelta(seconds=60)
KEY_PREFIX = "price:"


class CacheUnavailable(RuntimeError):
    """Raised by ``PriceCache.ping`` when the backend cannot be reached."""


@dataclass(frozen=True)
class CachedQuote:
    price: Decimal
    observed_at: datetime

    def to_json(self) -> str:
        return json.dumps({"price": str(self.price), "observed_at": as_utc(self.observed_at).isoformat()})

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CachedQuote":
        data = json.loads(raw)
        return cls(
            price=Decimal(str(data["price"])),
            observed_at=as_utc(datetime.fromisoformat(data["observed_at"])),
        )


def cache_key(pair: str) -> str:
    return f"{KEY_PREFIX}{pair}"


class PriceCache:
    """Best-effort quote cache.

    ``backend`` is any object exposing the ``redis.asyncio.Redis`` calls used
    here (``get``, ``set`` with ``ex``, ``ping``).  Pass ``None`` to run with
    no cache at all.
    """

    def __init__(
        self,
        backend: Optional[Redis] = None,
        *,
        freshness: timedelta = DEFAULT_FRESHNESS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if freshness <= timedelta(0):
            raise ValueError("freshness window must be positive")
        self._backend = backend
        self.freshness = freshness
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._backend is not None

    def now(self) -> datetime:
        return self._clock()

    async def get(self, key: str) -> CachedQuote | None:
        """Return the stored quote for ``key`` or ``None`` on a miss of any kind."""
        if self._backend is None:
            return None

        try:
            raw = await self._backend.get(key)
        except (RedisError, OSError) as exc:
            logger.warning("cache read error | key=%s | err=%s", key, exc)
            return None

        if raw is None:
            return None

        try:
            return CachedQuote.from_json(raw)
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            logger.warning("cache entry unreadable | key=%s | err=%s", key, exc)
            return None

    def is_fresh(
        self,
        quote: CachedQuote,
        now: datetime | None = None,
        window: timedelta | None = None,
    ) -> bool:
        current = as_utc(now) if now is not None else self.now()
        return current - as_utc(quote.observed_at) < (window or self.freshness)

    async def put(self, key: str, price: Decimal, now: datetime | None = None) -> bool:
        """Store ``price`` under ``key``, expiring after the freshness window.

        Returns ``False`` when the write did not happen.  The caller decides
        whether that is worth a log line; the lookup itself already succeeded.
        """
        if self._backend is None:
            return False

        quote = CachedQuote(price=price, observed_at=now if now is not None else self.now())
        ttl_seconds = max(1, int(self.freshness.total_seconds()))
        try:
            await self._backend.set(key, quote.to_json(), ex=ttl_seconds)
        except (RedisError, OSError):
            return False
        return True

    async def ping(self) -> None:
        if self._backend is None:
            raise CacheUnavailable("cache backend not configured")
        try:
            await self._backend.ping()
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(str(exc)) from exc

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.aclose()


def build_redis_backend(
    *,
    host: str,
    port: int,
    password: str = "",
    db: int = 0,
    socket_timeout: float = 0.5,
) -> Redis:
    # short socket timeouts keep an outage from stalling a lookup
    kwargs: dict[str, Any] = {
        "host": host,
        "port": port,
        "db": db,
        "socket_timeout": socket_timeout,
        "socket_connect_timeout": socket_timeout,
        "decode_responses": True,
    }
    if password:
        kwargs["password"] = password
    return Redis(**kwargs)


__all__ = [
    "CacheUnavailable",
    "CachedQuote",
    "PriceCache",
    "build_redis_backend",
    "cache_key",
    "DEFAULT_FRESHNESS",
]
