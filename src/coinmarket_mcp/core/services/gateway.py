"""
Market Data Gateway.

Single entry point the discovery pipeline uses for upstream data. Recoverable
failures are logged and turned into empty/None results here so one bad symbol
never aborts a batch.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

import httpx

from ...config import Settings
from ..cache import Clock, TTLCache
from ..data_loader import PriceSeries
from ..errors import CoinMarketError
from ..schemas import RankedAsset, Ticker
from .binance import BinanceClient
from .coinmarketcap import CoinMarketCapClient

logger = logging.getLogger(__name__)


class MarketDataGateway:
    """
    Ranking-provider and exchange access behind one interface.

    Args:
        ranking: CoinMarketCap client (carries the request cache)
        exchange: Binance client
    """

    def __init__(self, ranking: CoinMarketCapClient, exchange: BinanceClient) -> None:
        self.ranking = ranking
        self.exchange = exchange

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Clock = time.monotonic,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "MarketDataGateway":
        """Build a gateway with a fresh process-scoped cache."""
        cache = TTLCache(settings.cache_ttl_seconds, clock=clock)
        ranking = CoinMarketCapClient(
            api_key=settings.api_key,
            base_url=settings.cmc_base_url,
            cache=cache,
            timeout=settings.http_timeout,
            transport=transport,
        )
        exchange = BinanceClient(
            base_url=settings.binance_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        return cls(ranking, exchange)

    @property
    def cache(self) -> TTLCache:
        return self.ranking.cache

    async def fetch_ranked_listing(
        self,
        count: int,
        convert: str,
        sort: str,
        sort_dir: str,
        raise_on_error: bool = False,
    ) -> List[RankedAsset]:
        """
        Fetch the top ``count`` assets from the ranking provider.

        Returns an empty list on failure unless ``raise_on_error`` is set, in
        which case the classified CoinMarketError propagates.
        """
        try:
            return await self.ranking.listings_latest(count, convert, sort, sort_dir)
        except CoinMarketError as e:
            logger.warning(f"Ranked listing fetch failed: {e}")
            if raise_on_error:
                raise
            return []

    async def fetch_symbol_ticker(self, pair_symbol: str) -> Optional[Ticker]:
        """24h ticker for a pair, or None on failure."""
        try:
            return await self.exchange.ticker_24h(pair_symbol)
        except CoinMarketError as e:
            logger.info(f"Ticker unavailable for {pair_symbol}: {e}")
            return None

    async def fetch_price_history(
        self, pair_symbol: str, interval: str, candle_count: int
    ) -> Optional[PriceSeries]:
        """Recent candles for a pair, or None on failure."""
        try:
            return await self.exchange.klines(pair_symbol, interval, candle_count)
        except CoinMarketError as e:
            logger.info(f"Price history unavailable for {pair_symbol}: {e}")
            return None

    async def aclose(self) -> None:
        await self.ranking.aclose()
        await self.exchange.aclose()

    async def __aenter__(self) -> "MarketDataGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
