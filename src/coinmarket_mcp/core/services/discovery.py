"""
Discovery Pipeline.

Pulls the ranked listing, fetches ticker and price history for every
non-stablecoin candidate, runs the indicator engine and classifier, and
returns per-asset summaries in listing order.

Per-asset failures are skipped and recorded, never raised. A failed listing
fetch is recorded on the result so callers can tell it apart from "nothing
qualified".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Union

from ..classifier import build_snapshot, rate
from ..errors import CoinMarketError
from ..indicators import compute_levels
from ..data_loader import PriceSeries
from ..sanitize import (
    DEFAULT_CANDLE_LIMIT,
    DEFAULT_CONVERT,
    DEFAULT_INTERVAL,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    DEFAULT_TOP_N,
)
from ..schemas import (
    AssetSummary,
    DiscoveryResult,
    IndicatorSnapshot,
    Provenance,
    RankedAsset,
    SkippedAsset,
    Ticker,
)
from .gateway import MarketDataGateway

logger = logging.getLogger(__name__)

# Stable-value assets never worth ranking against USDT
STABLECOINS: FrozenSet[str] = frozenset({"USDT", "USDC", "BUSD", "TUSD", "DAI", "FDUSD"})

QUOTE_ASSET = "USDT"

AssetOutcome = Union[AssetSummary, SkippedAsset]


@dataclass(frozen=True)
class DiscoveryParams:
    top_n: int = DEFAULT_TOP_N
    interval: str = DEFAULT_INTERVAL
    limit: int = DEFAULT_CANDLE_LIMIT
    convert: str = DEFAULT_CONVERT
    sort: str = DEFAULT_SORT_FIELD
    sort_dir: str = DEFAULT_SORT_DIRECTION


def pair_symbol(base: str) -> str:
    """Exchange pair for a base asset (e.g., "BTC" -> "BTCUSDT")."""
    return f"{base}{QUOTE_ASSET}"


def analyze_series(series: PriceSeries) -> IndicatorSnapshot:
    """Run the indicator engine and trend classifier on one series."""
    return build_snapshot(compute_levels(series))


def summarize(asset: RankedAsset, ticker: Ticker, series: PriceSeries) -> AssetSummary:
    """
    Combine listing, ticker and indicator data into an AssetSummary.

    Price is the last candle close; provenance comes from the listing.
    """
    snapshot = analyze_series(series)
    return AssetSummary(
        symbol=series.symbol,
        price=snapshot.last_close,
        percent_change_24h=ticker.percent_change_24h,
        volume_24h=ticker.volume_24h,
        atr_percent=snapshot.atr_percent,
        trend=snapshot.trend,
        rating=rate(snapshot.trend, ticker.percent_change_24h),
        provenance=Provenance.from_ranked_asset(asset),
    )


async def discover_asset(
    gateway: MarketDataGateway, asset: RankedAsset, params: DiscoveryParams
) -> AssetOutcome:
    """Build a summary for one candidate, or the reason it was skipped."""
    base = asset.symbol
    if not base:
        return SkippedAsset(symbol="", reason="missing_symbol")
    if base in STABLECOINS:
        return SkippedAsset(symbol=base, reason="stablecoin")

    symbol = pair_symbol(base)

    ticker = await gateway.fetch_symbol_ticker(symbol)
    if ticker is None:
        return SkippedAsset(symbol=symbol, reason="ticker_unavailable")

    series = await gateway.fetch_price_history(symbol, params.interval, params.limit)
    if series is None:
        return SkippedAsset(symbol=symbol, reason="history_unavailable")

    return summarize(asset, ticker, series)


async def run_discovery(
    gateway: MarketDataGateway,
    params: DiscoveryParams = DiscoveryParams(),
    max_concurrency: int = 1,
) -> DiscoveryResult:
    """
    Run the discovery pipeline once.

    Args:
        gateway: Upstream data access
        params: Listing size, kline interval/limit and listing sort options
        max_concurrency: Candidates fetched at once; 1 keeps fetches
            sequential in listing order

    Returns:
        DiscoveryResult with summaries in listing order regardless of the
        order fetches completed in
    """
    try:
        listing = await gateway.fetch_ranked_listing(
            params.top_n, params.convert, params.sort, params.sort_dir, raise_on_error=True
        )
    except CoinMarketError as e:
        return DiscoveryResult(listing_error=e)

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _guarded(asset: RankedAsset) -> AssetOutcome:
        async with semaphore:
            return await discover_asset(gateway, asset, params)

    outcomes: List[AssetOutcome] = await asyncio.gather(*(_guarded(asset) for asset in listing))

    summaries = [o for o in outcomes if isinstance(o, AssetSummary)]
    skipped = [o for o in outcomes if isinstance(o, SkippedAsset)]
    for s in skipped:
        logger.debug(f"Skipped {s.symbol or '<no symbol>'}: {s.reason}")

    logger.info(
        f"Discovery finished: {len(listing)} candidates, "
        f"{len(summaries)} summarized, {len(skipped)} skipped"
    )
    return DiscoveryResult(
        summaries=tuple(summaries),
        skipped=tuple(skipped),
        candidates=len(listing),
    )
