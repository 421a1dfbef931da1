"""
Shared MCP Tools Implementation.

This module provides the implementation behind every MCP tool so that the
server module only declares tool names, parameters and descriptions. Each
function sanitizes its inputs, calls the gateway or the discovery pipeline,
and returns JSON-serializable data or a structured error response.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from ..errors import CoinMarketError, ValidationError, build_error_response
from ..sanitize import (
    DEFAULT_ATR_PCT_MAX,
    DEFAULT_CANDLE_LIMIT,
    DEFAULT_CONVERT,
    DEFAULT_INTERVAL,
    DEFAULT_RANK_MAX,
    DEFAULT_RESULT_COUNT,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    DEFAULT_STRATEGY,
    DEFAULT_TOP_N,
    MAX_CANDLE_LIMIT,
    MAX_TOP_N,
    sanitize_convert,
    sanitize_interval,
    sanitize_limit,
    sanitize_sort_direction,
    sanitize_sort_field,
    sanitize_strategy,
    sanitize_symbol_list,
    sanitize_threshold,
)
from ..schemas import build_diagnostics_result, build_summary_list
from .coinmarketcap import (
    EXCHANGE_LISTINGS_ENDPOINT,
    GLOBAL_METRICS_ENDPOINT,
    INFO_ENDPOINT,
    LISTINGS_ENDPOINT,
    MAP_ENDPOINT,
    QUOTES_ENDPOINT,
)
from .discovery import DiscoveryParams, run_discovery
from .gateway import MarketDataGateway
from .ranking import rank_summaries

logger = logging.getLogger(__name__)

ToolResult = Union[List[Dict[str, Any]], Dict[str, Any]]

MAX_PAGE_LIMIT = 5000


def _discovery_params(
    top_n: Optional[int],
    interval: Optional[str],
    limit: Optional[int],
    convert: Optional[str],
    sort: Optional[str],
    sort_dir: Optional[str],
) -> DiscoveryParams:
    return DiscoveryParams(
        top_n=sanitize_limit(top_n, DEFAULT_TOP_N, MAX_TOP_N),
        interval=sanitize_interval(interval),
        limit=sanitize_limit(limit, DEFAULT_CANDLE_LIMIT, MAX_CANDLE_LIMIT),
        convert=sanitize_convert(convert),
        sort=sanitize_sort_field(sort),
        sort_dir=sanitize_sort_direction(sort_dir),
    )


# =============================================================================
# Discovery Tools
# =============================================================================

async def discover_top(
    gateway: MarketDataGateway,
    top_n: Optional[int] = DEFAULT_TOP_N,
    result_count: Optional[int] = DEFAULT_RESULT_COUNT,
    interval: Optional[str] = DEFAULT_INTERVAL,
    limit: Optional[int] = DEFAULT_CANDLE_LIMIT,
    convert: Optional[str] = DEFAULT_CONVERT,
    sort: Optional[str] = DEFAULT_SORT_FIELD,
    sort_dir: Optional[str] = DEFAULT_SORT_DIRECTION,
    include_diagnostics: bool = False,
    max_concurrency: int = 1,
) -> ToolResult:
    """
    Rank the top-N listing with the default strategy, without filtering.

    Ties on rating and ATR% are broken by 24h volume, the same full key
    discover-pick uses, so both tools order equal candidates alike.

    Returns:
        Ordered list of summary dicts, a diagnostics dict when requested, or
        an error response if the listing could not be fetched
    """
    params = _discovery_params(top_n, interval, limit, convert, sort, sort_dir)
    count = sanitize_limit(result_count, DEFAULT_RESULT_COUNT, MAX_TOP_N, min_limit=0)

    result = await run_discovery(gateway, params, max_concurrency=max_concurrency)
    if result.listing_error is not None:
        return build_error_response(result.listing_error, "discover-top")

    ranked = rank_summaries(result.summaries, count, DEFAULT_STRATEGY)
    if include_diagnostics:
        return build_diagnostics_result(ranked, result)
    return build_summary_list(ranked)


async def discover_pick(
    gateway: MarketDataGateway,
    top_n: Optional[int] = DEFAULT_TOP_N,
    result_count: Optional[int] = DEFAULT_RESULT_COUNT,
    interval: Optional[str] = DEFAULT_INTERVAL,
    limit: Optional[int] = DEFAULT_CANDLE_LIMIT,
    convert: Optional[str] = DEFAULT_CONVERT,
    sort: Optional[str] = DEFAULT_SORT_FIELD,
    sort_dir: Optional[str] = DEFAULT_SORT_DIRECTION,
    strategy: Optional[str] = DEFAULT_STRATEGY,
    rank_max: Optional[int] = DEFAULT_RANK_MAX,
    atr_pct_max: Optional[float] = DEFAULT_ATR_PCT_MAX,
    include_diagnostics: bool = False,
    max_concurrency: int = 1,
) -> ToolResult:
    """
    Filter the top-N listing by rank and ATR%, then rank by strategy.

    Returns:
        Ordered list of summary dicts, a diagnostics dict when requested, or
        an error response if the listing could not be fetched
    """
    params = _discovery_params(top_n, interval, limit, convert, sort, sort_dir)
    count = sanitize_limit(result_count, DEFAULT_RESULT_COUNT, MAX_TOP_N, min_limit=0)
    chosen_strategy = sanitize_strategy(strategy)
    if strategy and chosen_strategy != strategy.strip().lower():
        logger.info(f"Unknown strategy {strategy!r}, using {chosen_strategy}")

    result = await run_discovery(gateway, params, max_concurrency=max_concurrency)
    if result.listing_error is not None:
        return build_error_response(result.listing_error, "discover-pick")

    ranked = rank_summaries(
        result.summaries,
        count,
        chosen_strategy,
        rank_max=sanitize_limit(rank_max, DEFAULT_RANK_MAX, MAX_TOP_N, min_limit=0),
        atr_pct_max=sanitize_threshold(atr_pct_max, DEFAULT_ATR_PCT_MAX),
    )
    if include_diagnostics:
        return build_diagnostics_result(ranked, result)
    return build_summary_list(ranked)


# =============================================================================
# Ranking-Provider Passthrough Tools
# =============================================================================

async def _passthrough(
    gateway: MarketDataGateway, tool_name: str, endpoint: str, params: Dict[str, Any]
) -> Dict[str, Any]:
    try:
        return await gateway.ranking.get(endpoint, params)
    except CoinMarketError as e:
        logger.warning(f"{tool_name} failed: {e}")
        return build_error_response(e, tool_name)


def _require_identifier(tool_name: str, symbol: Optional[str], slug: Optional[str],
                        id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not (symbol or slug or id):
        return build_error_response(
            ValidationError("At least one of 'symbol', 'slug', or 'id' is required"),
            tool_name,
        )
    return None


async def get_cryptocurrency_listings(
    gateway: MarketDataGateway,
    start: Optional[int] = 1,
    limit: Optional[int] = 100,
    sort: Optional[str] = None,
    sort_dir: Optional[str] = None,
    cryptocurrency_type: Optional[str] = None,
    convert: Optional[str] = DEFAULT_CONVERT,
) -> Dict[str, Any]:
    """Latest listings with market data (raw provider payload)."""
    return await _passthrough(gateway, "get-cryptocurrency-listings", LISTINGS_ENDPOINT, {
        "start": sanitize_limit(start, 1, 10**9),
        "limit": sanitize_limit(limit, 100, MAX_PAGE_LIMIT),
        "sort": sanitize_sort_field(sort) if sort else None,
        "sort_dir": sanitize_sort_direction(sort_dir) if sort_dir else None,
        "cryptocurrency_type": cryptocurrency_type or None,
        "convert": sanitize_convert(convert),
    })


async def get_cryptocurrency_quotes(
    gateway: MarketDataGateway,
    symbol: Optional[str] = None,
    slug: Optional[str] = None,
    id: Optional[str] = None,
    convert: Optional[str] = DEFAULT_CONVERT,
) -> Dict[str, Any]:
    """Latest quotes for specific cryptocurrencies."""
    error = _require_identifier("get-cryptocurrency-quotes", symbol, slug, id)
    if error:
        return error
    return await _passthrough(gateway, "get-cryptocurrency-quotes", QUOTES_ENDPOINT, {
        "symbol": sanitize_symbol_list(symbol),
        "slug": slug or None,
        "id": id or None,
        "convert": sanitize_convert(convert),
    })


async def get_cryptocurrency_map(
    gateway: MarketDataGateway,
    listing_status: Optional[str] = "active",
    start: Optional[int] = 1,
    limit: Optional[int] = 100,
    symbol: Optional[str] = None,
) -> Dict[str, Any]:
    """Mapping of cryptocurrencies to provider IDs."""
    return await _passthrough(gateway, "get-cryptocurrency-map", MAP_ENDPOINT, {
        "listing_status": listing_status or "active",
        "start": sanitize_limit(start, 1, 10**9),
        "limit": sanitize_limit(limit, 100, MAX_PAGE_LIMIT),
        "symbol": sanitize_symbol_list(symbol),
    })


async def get_cryptocurrency_info(
    gateway: MarketDataGateway,
    symbol: Optional[str] = None,
    slug: Optional[str] = None,
    id: Optional[str] = None,
) -> Dict[str, Any]:
    """Static metadata (logo, description, links) for cryptocurrencies."""
    error = _require_identifier("get-cryptocurrency-info", symbol, slug, id)
    if error:
        return error
    return await _passthrough(gateway, "get-cryptocurrency-info", INFO_ENDPOINT, {
        "symbol": sanitize_symbol_list(symbol),
        "slug": slug or None,
        "id": id or None,
    })


async def get_global_metrics(
    gateway: MarketDataGateway,
    convert: Optional[str] = DEFAULT_CONVERT,
) -> Dict[str, Any]:
    """Global market metrics (total market cap, dominance, ...)."""
    return await _passthrough(gateway, "get-global-metrics", GLOBAL_METRICS_ENDPOINT, {
        "convert": sanitize_convert(convert),
    })


async def get_exchange_listings(
    gateway: MarketDataGateway,
    start: Optional[int] = 1,
    limit: Optional[int] = 100,
    sort: Optional[str] = None,
    sort_dir: Optional[str] = None,
    market_type: Optional[str] = None,
    convert: Optional[str] = DEFAULT_CONVERT,
) -> Dict[str, Any]:
    """Exchanges with market data."""
    return await _passthrough(gateway, "get-exchange-listings", EXCHANGE_LISTINGS_ENDPOINT, {
        "start": sanitize_limit(start, 1, 10**9),
        "limit": sanitize_limit(limit, 100, MAX_PAGE_LIMIT),
        "sort": sort.strip() if sort else None,
        "sort_dir": sanitize_sort_direction(sort_dir) if sort_dir else None,
        "market_type": market_type or None,
        "convert": sanitize_convert(convert),
    })
