"""
Batch price lookup: cache first, upstream on a miss, one pair at a time.

Per-pair failures never abort the batch.  They are counted, and only the
message of the last one is kept on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Union

from ltp_service.services.errors import QuoteError
from ltp_service.services.pairs import format_pair, resolve_currencies
from ltp_service.services.price_cache import PriceCache, cache_key
from ltp_service.utils import metrics


logger = logging.getLogger("ltp_service.prices")


class QuoteSource(Protocol):
    async def fetch(self, currency: str) -> Decimal: ...


class BatchStatus(str, Enum):
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    ALL_FAILED = "all_failed"


@dataclass(frozen=True)
class Success:
    pair: str
    price: Decimal
    cached: bool = False


@dataclass(frozen=True)
class Failure:
    pair: str
    reason: str
    kind: str = QuoteError.kind


FetchOutcome = Union[Success, Failure]


@dataclass
class BatchResult:
    successes: List[Success] = field(default_factory=list)
    error_count: int = 0
    total_attempts: int = 0
    last_error_message: str = ""
    cache_hits: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[FetchOutcome]) -> "BatchResult":
        result = cls(total_attempts=len(outcomes))
        for outcome in outcomes:
            if isinstance(outcome, Success):
                result.successes.append(outcome)
                if outcome.cached:
                    result.cache_hits += 1
            else:
                result.error_count += 1
                result.last_error_message = f"{outcome.pair}: {outcome.reason}"
        return result

    @property
    def status(self) -> BatchStatus:
        # an empty batch counts as failed
        if self.total_attempts == 0 or self.error_count == self.total_attempts:
            return BatchStatus.ALL_FAILED
        if self.error_count == 0:
            return BatchStatus.FULL_SUCCESS
        return BatchStatus.PARTIAL_SUCCESS

    @property
    def all_cached(self) -> bool:
        return self.total_attempts > 0 and self.cache_hits == self.total_attempts

    @property
    def upstream_calls(self) -> int:
        return self.total_attempts - self.cache_hits


class BatchCoordinator:
    def __init__(
        self,
        *,
        cache: PriceCache,
        source: QuoteSource,
        base_asset: str = "BTC",
    ) -> None:
        self.cache = cache
        self.source = source
        self.base_asset = base_asset

    async def resolve_pair(self, currency: str) -> FetchOutcome:
        pair = format_pair(self.base_asset, currency)
        key = cache_key(pair)

        cached = await self.cache.get(key)
        if cached is not None and self.cache.is_fresh(cached):
            metrics.CACHE_HITS.inc()
            logger.info("cache hit | pair=%s | price=%s", pair, cached.price)
            return Success(pair=pair, price=cached.price, cached=True)

        metrics.CACHE_MISSES.inc()
        logger.info("cache miss, fetching upstream | pair=%s", pair)
        metrics.UPSTREAM_CALLS.inc()

        try:
            price = await self.source.fetch(currency)
        except QuoteError as exc:
            metrics.UPSTREAM_ERRORS.labels(kind=exc.kind).inc()
            logger.error("upstream error | pair=%s | kind=%s | err=%s", pair, exc.kind, exc)
            return Failure(pair=pair, reason=str(exc), kind=exc.kind)

        if self.cache.enabled and not await self.cache.put(key, price):
            logger.warning("cache write error | key=%s", key)
        return Success(pair=pair, price=price)

    async def run(
        self,
        currencies: Sequence[str],
        *,
        cancelled: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> BatchResult:
        outcomes: List[FetchOutcome] = []
        for currency in currencies:
            if cancelled is not None and await cancelled():
                logger.info("batch cancelled | resolved=%d/%d", len(outcomes), len(currencies))
                break
            outcomes.append(await self.resolve_pair(currency))
        return BatchResult.from_outcomes(outcomes)

    async def get_prices(
        self,
        pairs_param: str | None,
        *,
        cancelled: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> BatchResult:
        return await self.run(resolve_currencies(pairs_param), cancelled=cancelled)


__all__ = [
    "BatchCoordinator",
    "BatchResult",
    "BatchStatus",
    "Failure",
    "FetchOutcome",
    "QuoteSource",
    "Success",
]
