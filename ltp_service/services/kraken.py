"""Quote source backed by the public Kraken ticker endpoint."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from ltp_service.services.errors import NoData, ProtocolError, TransportError, UpstreamRejected


TICKER_PATH = "/0/public/Ticker"


class KrakenQuoteSource:
    """Fetch the last traded price of ``<asset>/<currency>`` from Kraken.

    One HTTP request per call, no retries. Every failure surfaces as one of the
    ``QuoteError`` subclasses so the caller can record it against the pair.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://api.kraken.com",
        asset_code: str = "XBT",
        base_asset: str = "BTC",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not asset_code:
            msg = "asset_code must be provided"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.asset_code = asset_code.upper()
        self.base_asset = base_asset.upper()
        self.timeout = timeout
        self._client = client

    def provider_symbol(self, currency: str) -> str:
        return f"{self.asset_code}{currency.upper()}"

    async def fetch(self, currency: str) -> Decimal:
        pair = f"{self.base_asset}/{currency}"
        payload = await self._request(pair, params={"pair": self.provider_symbol(currency)})
        return self._parse_last_trade(pair, payload)

    async def _request(self, pair: str, *, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{TICKER_PATH}"
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise TransportError(
                f"Kraken responded with HTTP {status_code}",
                pair=pair,
                status_code=status_code,
                payload=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Kraken request failed: {exc!r}", pair=pair) from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise ProtocolError("Kraken returned invalid JSON", pair=pair, payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise ProtocolError("Kraken returned unexpected payload type", pair=pair, payload=payload_raw)

        return payload_raw

    def _parse_last_trade(self, pair: str, payload: dict[str, Any]) -> Decimal:
        errors = payload.get("error") or []
        if not isinstance(errors, list):
            raise ProtocolError("Kraken 'error' field is not a list", pair=pair, payload=payload)
        if errors:
            raise UpstreamRejected(f"Kraken API error: {errors}", pair=pair, payload=payload)

        result = payload.get("result") or {}
        if not isinstance(result, dict):
            raise ProtocolError("Kraken 'result' field is not an object", pair=pair, payload=payload)

        # the result key is Kraken's own symbol (e.g. XXBTZUSD), not the one we sent
        for ticker in result.values():
            if not isinstance(ticker, dict):
                raise ProtocolError("Kraken ticker entry is not an object", pair=pair, payload=payload)
            last_trade = ticker.get("c")
            if not last_trade:
                continue
            if not isinstance(last_trade, list):
                raise ProtocolError("Kraken last trade field is not a list", pair=pair, payload=payload)
            return self._to_price(pair, last_trade[0], payload)

        raise NoData("no price data found", pair=pair, payload=payload)

    @staticmethod
    def _to_price(pair: str, raw: Any, payload: dict[str, Any]) -> Decimal:
        try:
            price = Decimal(str(raw))
        except InvalidOperation as exc:
            raise ProtocolError(f"failed to parse price {raw!r}", pair=pair, payload=payload) from exc
        if not price.is_finite() or price <= 0:
            raise ProtocolError(f"non-positive price {raw!r}", pair=pair, payload=payload)
        # amounts are served as JSON numbers, so the price must fit a float
        if not math.isfinite(float(price)):
            raise ProtocolError(f"price out of range {raw!r}", pair=pair, payload=payload)
        return price


__all__ = ["KrakenQuoteSource", "TICKER_PATH"]
