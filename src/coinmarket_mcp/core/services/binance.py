"""
Binance spot REST client (unauthenticated, never cached).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..data_loader import PriceSeries, price_series_from_klines, to_optional_float
from ..errors import APIError, APITimeoutError, DataError, classify_http_error
from ..schemas import Ticker

logger = logging.getLogger(__name__)

TICKER_24H_PATH = "/ticker/24hr"
KLINES_PATH = "/klines"


class BinanceClient:
    """
    Ticker and kline client for the spot exchange.

    Args:
        base_url: REST root, e.g. "https://api.binance.com/api/v3"
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._timeout = timeout

    async def _get_json(self, path: str, params: Dict[str, Any], symbol: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException:
            raise APITimeoutError(f"Binance {path} for {symbol} timed out.", self._timeout)
        except httpx.HTTPError as e:
            raise APIError(f"Network error calling Binance {path} for {symbol}: {e}")

        if not response.is_success:
            raise classify_http_error(
                response.status_code,
                response.text,
                symbol=symbol,
                retry_after=response.headers.get("Retry-After"),
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataError(f"Binance {path} for {symbol} returned invalid JSON: {e}")

    async def ticker_24h(self, symbol: str) -> Ticker:
        """
        Fetch 24h rolling statistics for a pair.

        Raises:
            APIError: Non-success status or network failure
            DataError: Payload is not a ticker object
        """
        payload = await self._get_json(TICKER_24H_PATH, {"symbol": symbol}, symbol)
        if not isinstance(payload, dict):
            raise DataError(f"Unexpected ticker payload for {symbol}")
        return Ticker(
            symbol=symbol,
            percent_change_24h=to_optional_float(payload.get("priceChangePercent")),
            volume_24h=to_optional_float(payload.get("volume")),
            last_price=to_optional_float(payload.get("lastPrice")),
        )

    async def klines(self, symbol: str, interval: str, limit: int) -> PriceSeries:
        """
        Fetch the most recent ``limit`` candles for a pair.

        Raises:
            APIError: Non-success status or network failure
            DataError: Payload rows are malformed
        """
        payload = await self._get_json(
            KLINES_PATH,
            {"symbol": symbol, "interval": interval, "limit": limit},
            symbol,
        )
        return price_series_from_klines(symbol, interval, payload)

    async def aclose(self) -> None:
        await self._client.aclose()
