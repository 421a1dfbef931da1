"""
CoinMarket MCP Server - Unified Entry Point.

This module provides the MCP server for cryptocurrency discovery. It combines
CoinMarketCap rankings with Binance price history to produce ranked,
volatility-aware shortlists, and exposes the main CoinMarketCap endpoints as
passthrough tools.

Tools (8 total):
    1. discover-top - Top-N discovery ranked by rating and ATR%
    2. discover-pick - Top-N discovery filtered by rank/ATR% and ranked by strategy
    3. get-cryptocurrency-listings - Latest listings with market data
    4. get-cryptocurrency-quotes - Latest quotes for specific assets
    5. get-cryptocurrency-map - Asset to CoinMarketCap ID mapping
    6. get-cryptocurrency-info - Asset metadata
    7. get-global-metrics - Global market metrics
    8. get-exchange-listings - Exchanges with market data

Usage:
    # Run as stdio server (for Claude Desktop)
    uv run coinmarket-mcp

    # Run as HTTP server
    uv run coinmarket-mcp streamable-http --port 8000

Environment Variables:
    COINMARKET_API_KEY: CoinMarketCap Pro API key (required)
    COINMARKET_CACHE_TTL: Request cache TTL in milliseconds (default: 15000)
    COINMARKET_MAX_CONCURRENCY: Candidates fetched at once (default: 1)
    DEBUG_MCP: Enable debug logging (set to any value)
    HOST: Server host for HTTP mode (default: 0.0.0.0)
    PORT: Server port for HTTP mode (default: 8000)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from coinmarket_mcp import __version__
from coinmarket_mcp.config import DEFAULT_HOST, DEFAULT_PORT, Settings, load_settings
from coinmarket_mcp.core.errors import ConfigurationError
from coinmarket_mcp.core.sanitize import (
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
)
from coinmarket_mcp.core.services import tools
from coinmarket_mcp.core.services.gateway import MarketDataGateway

# Configure logging (stderr, so the stdio transport stays clean)
logging.basicConfig(
    level=logging.DEBUG if os.environ.get("DEBUG_MCP") else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =============================================================================
# Process-Scoped Gateway
# =============================================================================

_settings: Optional[Settings] = None
_gateway: Optional[MarketDataGateway] = None


def configure(settings: Settings, gateway: Optional[MarketDataGateway] = None) -> MarketDataGateway:
    """
    Install the settings and gateway used by every tool.

    The gateway owns the request cache, so one gateway per process means one
    cache per process.
    """
    global _settings, _gateway
    _settings = settings
    _gateway = gateway or MarketDataGateway.from_settings(settings)
    return _gateway


def get_gateway() -> MarketDataGateway:
    """Return the configured gateway, configuring from the environment on first use."""
    if _gateway is None:
        return configure(load_settings())
    return _gateway


def _max_concurrency() -> int:
    return _settings.max_concurrency if _settings is not None else 1


# =============================================================================
# MCP Server Initialization
# =============================================================================

SERVER_INSTRUCTIONS = """
CoinMarket MCP Server - Cryptocurrency Discovery and Market Data

Discovery tools scan the CoinMarketCap top-N, skip stablecoins, pull Binance
24h tickers and klines for each <BASE>USDT pair, and compute EMA50/EMA200/SMA200
trend plus ATR(14) as a percent of price.

Ratings: strong_up, up, neutral, down, strong_down (trend + 24h move).

Available Tools:
- discover-top: Ranked shortlist (rating, then lowest ATR%)
- discover-pick: Filter by rank and ATR%, then rank by strategy
  (strong_up_low_atr or strong_up_high_vol)
- get-cryptocurrency-listings / quotes / map / info
- get-global-metrics / get-exchange-listings

Kline intervals: 1m, 3m, 5m, 15m, 30m, 1h, 2h, 4h, 6h, 8h, 12h, 1d, 3d, 1w, 1M
"""


def create_mcp_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> FastMCP:
    """
    Create a FastMCP server instance.

    Args:
        host: Server host (HTTP mode)
        port: Server port (HTTP mode)

    Returns:
        Configured FastMCP server instance
    """
    return FastMCP(
        name="CoinMarket MCP",
        instructions=SERVER_INSTRUCTIONS,
        host=host,
        port=port,
    )


mcp = create_mcp_server()


# =============================================================================
# Discovery Tools
# =============================================================================

@mcp.tool(name="discover-top")
async def discover_top(
    top_n: Annotated[int, Field(ge=1, le=5000, description="Number of CoinMarketCap listings to scan")] = DEFAULT_TOP_N,
    result_count: Annotated[int, Field(ge=1, description="Number of results to return")] = DEFAULT_RESULT_COUNT,
    interval: Annotated[str, Field(description="Kline interval (e.g., 15m, 1h, 4h, 1d)")] = DEFAULT_INTERVAL,
    limit: Annotated[int, Field(ge=1, le=1000, description="Number of klines to fetch per symbol")] = DEFAULT_CANDLE_LIMIT,
    convert: Annotated[str, Field(description="CoinMarketCap convert currency")] = DEFAULT_CONVERT,
    sort: Annotated[str, Field(description="CoinMarketCap sort field: market_cap | volume_24h | percent_change_24h")] = DEFAULT_SORT_FIELD,
    sort_dir: Annotated[str, Field(description="Sort direction: desc | asc")] = DEFAULT_SORT_DIRECTION,
    include_diagnostics: Annotated[bool, Field(description="Also return candidate and skip counts")] = False,
) -> list[dict] | dict:
    """
    CoinMarketCap top-N discovery narrowed to result_count via Binance 24h + OHLCV.

    Ranks by rating (strong_up first), then lowest ATR%, then 24h volume,
    then largest absolute 24h move. No filtering is applied.

    Returns:
        List of {symbol, price, percentChange24h, volume24h, atrPercent, trend,
        rating, provenance{marketCap, percentChange24h, rank}}
    """
    return await tools.discover_top(
        get_gateway(),
        top_n=top_n,
        result_count=result_count,
        interval=interval,
        limit=limit,
        convert=convert,
        sort=sort,
        sort_dir=sort_dir,
        include_diagnostics=include_diagnostics,
        max_concurrency=_max_concurrency(),
    )


@mcp.tool(name="discover-pick")
async def discover_pick(
    top_n: Annotated[int, Field(ge=1, le=5000, description="Number of CoinMarketCap listings to scan")] = DEFAULT_TOP_N,
    result_count: Annotated[int, Field(ge=1, description="Number of results to return")] = DEFAULT_RESULT_COUNT,
    interval: Annotated[str, Field(description="Kline interval (e.g., 15m, 1h, 4h, 1d)")] = DEFAULT_INTERVAL,
    limit: Annotated[int, Field(ge=1, le=1000, description="Number of klines to fetch per symbol")] = DEFAULT_CANDLE_LIMIT,
    convert: Annotated[str, Field(description="CoinMarketCap convert currency")] = DEFAULT_CONVERT,
    sort: Annotated[str, Field(description="CoinMarketCap sort field: market_cap | volume_24h | percent_change_24h")] = DEFAULT_SORT_FIELD,
    sort_dir: Annotated[str, Field(description="Sort direction: desc | asc")] = DEFAULT_SORT_DIRECTION,
    strategy: Annotated[str, Field(description="Ranking strategy: strong_up_low_atr | strong_up_high_vol")] = DEFAULT_STRATEGY,
    rank_max: Annotated[int, Field(ge=1, description="Max CoinMarketCap rank to include")] = DEFAULT_RANK_MAX,
    atr_pct_max: Annotated[float, Field(ge=0, description="Max ATR% (ATR/price*100) to include")] = DEFAULT_ATR_PCT_MAX,
    include_diagnostics: Annotated[bool, Field(description="Also return candidate and skip counts")] = False,
) -> list[dict] | dict:
    """
    CoinMarketCap top-N discovery, then pick the best result_count via strategy.

    Assets without a rank or ATR% are always excluded by the filters.

    Returns:
        Ordered list of asset summaries (same shape as discover-top)
    """
    return await tools.discover_pick(
        get_gateway(),
        top_n=top_n,
        result_count=result_count,
        interval=interval,
        limit=limit,
        convert=convert,
        sort=sort,
        sort_dir=sort_dir,
        strategy=strategy,
        rank_max=rank_max,
        atr_pct_max=atr_pct_max,
        include_diagnostics=include_diagnostics,
        max_concurrency=_max_concurrency(),
    )


# =============================================================================
# CoinMarketCap Passthrough Tools
# =============================================================================

@mcp.tool(name="get-cryptocurrency-listings")
async def get_cryptocurrency_listings(
    start: Annotated[int, Field(ge=1, description="Offset (starting with 1)")] = 1,
    limit: Annotated[int, Field(ge=1, le=5000, description="Number of results")] = 100,
    sort: Annotated[Optional[str], Field(description="What to sort by (e.g., 'market_cap', 'volume_24h')")] = None,
    sort_dir: Annotated[Optional[str], Field(description="Direction: 'asc' or 'desc'")] = None,
    cryptocurrency_type: Annotated[Optional[str], Field(description="Filter by type (e.g., 'coins', 'tokens')")] = None,
    convert: Annotated[str, Field(description="Currency to convert prices to (e.g., 'USD', 'EUR')")] = DEFAULT_CONVERT,
) -> dict:
    """Get latest cryptocurrency listings with market data."""
    return await tools.get_cryptocurrency_listings(
        get_gateway(), start, limit, sort, sort_dir, cryptocurrency_type, convert
    )


@mcp.tool(name="get-cryptocurrency-quotes")
async def get_cryptocurrency_quotes(
    symbol: Annotated[Optional[str], Field(description="Comma-separated symbols (e.g., 'BTC,ETH')")] = None,
    slug: Annotated[Optional[str], Field(description="Comma-separated slugs (e.g., 'bitcoin,ethereum')")] = None,
    id: Annotated[Optional[str], Field(description="Comma-separated CoinMarketCap IDs")] = None,
    convert: Annotated[str, Field(description="Currency to convert prices to")] = DEFAULT_CONVERT,
) -> dict:
    """Get latest quotes for specific cryptocurrencies. One of symbol, slug or id is required."""
    return await tools.get_cryptocurrency_quotes(get_gateway(), symbol, slug, id, convert)


@mcp.tool(name="get-cryptocurrency-map")
async def get_cryptocurrency_map(
    listing_status: Annotated[str, Field(description="Filter by status (e.g., 'active', 'inactive')")] = "active",
    start: Annotated[int, Field(ge=1, description="Offset (starting with 1)")] = 1,
    limit: Annotated[int, Field(ge=1, le=5000, description="Number of results")] = 100,
    symbol: Annotated[Optional[str], Field(description="Filter by symbol(s), comma-separated")] = None,
) -> dict:
    """Get mapping of all cryptocurrencies to CoinMarketCap IDs."""
    return await tools.get_cryptocurrency_map(get_gateway(), listing_status, start, limit, symbol)


@mcp.tool(name="get-cryptocurrency-info")
async def get_cryptocurrency_info(
    symbol: Annotated[Optional[str], Field(description="Comma-separated symbols (e.g., 'BTC,ETH')")] = None,
    slug: Annotated[Optional[str], Field(description="Comma-separated slugs")] = None,
    id: Annotated[Optional[str], Field(description="Comma-separated CoinMarketCap IDs")] = None,
) -> dict:
    """Get metadata for cryptocurrencies. One of symbol, slug or id is required."""
    return await tools.get_cryptocurrency_info(get_gateway(), symbol, slug, id)


@mcp.tool(name="get-global-metrics")
async def get_global_metrics(
    convert: Annotated[str, Field(description="Currency to convert prices to")] = DEFAULT_CONVERT,
) -> dict:
    """Get latest global cryptocurrency market metrics."""
    return await tools.get_global_metrics(get_gateway(), convert)


@mcp.tool(name="get-exchange-listings")
async def get_exchange_listings(
    start: Annotated[int, Field(ge=1, description="Offset (starting with 1)")] = 1,
    limit: Annotated[int, Field(ge=1, le=5000, description="Number of results")] = 100,
    sort: Annotated[Optional[str], Field(description="What to sort by (e.g., 'volume_24h')")] = None,
    sort_dir: Annotated[Optional[str], Field(description="Direction: 'asc' or 'desc'")] = None,
    market_type: Annotated[Optional[str], Field(description="Filter by market type (e.g., 'spot', 'derivatives')")] = None,
    convert: Annotated[str, Field(description="Currency to convert prices to")] = DEFAULT_CONVERT,
) -> dict:
    """Get list of all exchanges with market data."""
    return await tools.get_exchange_listings(
        get_gateway(), start, limit, sort, sort_dir, market_type, convert
    )


# =============================================================================
# Health Check Endpoints (for HTTP mode)
# =============================================================================

def register_health_routes(server: FastMCP) -> None:
    """Register health check routes on the given server instance."""

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint for deployment platforms."""
        return JSONResponse({
            "status": "healthy",
            "service": "coinmarket-mcp",
            "version": __version__,
        })

    @server.custom_route("/", methods=["GET"])
    async def root_health(request: Request) -> JSONResponse:
        """Root endpoint returns health status."""
        return JSONResponse({
            "status": "healthy",
            "service": "coinmarket-mcp",
            "version": __version__,
            "docs": "Use /health for health checks, /mcp for MCP protocol"
        })


def register_tools(server: FastMCP) -> None:
    """Register all MCP tools on a freshly created server (HTTP mode)."""
    server.tool(name="discover-top")(discover_top)
    server.tool(name="discover-pick")(discover_pick)
    server.tool(name="get-cryptocurrency-listings")(get_cryptocurrency_listings)
    server.tool(name="get-cryptocurrency-quotes")(get_cryptocurrency_quotes)
    server.tool(name="get-cryptocurrency-map")(get_cryptocurrency_map)
    server.tool(name="get-cryptocurrency-info")(get_cryptocurrency_info)
    server.tool(name="get-global-metrics")(get_global_metrics)
    server.tool(name="get-exchange-listings")(get_exchange_listings)


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """
    Main entry point for the CoinMarket MCP server.

    Command line options:
        transport: "stdio" (default) or "streamable-http"
        --host: Server host for HTTP mode
        --port: Server port for HTTP mode

    Exits with status 1 if COINMARKET_API_KEY is missing.
    """
    parser = argparse.ArgumentParser(description="CoinMarket MCP server")
    parser.add_argument(
        "transport",
        choices=["stdio", "streamable-http"],
        default="stdio",
        nargs="?",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        sys.exit(1)

    configure(settings)
    logger.info(
        f"Cache TTL {settings.cache_ttl_ms} ms, max concurrency {settings.max_concurrency}"
    )

    if args.transport == "stdio":
        logger.info("Starting CoinMarket MCP in stdio mode")
        mcp.run()
    else:
        host = args.host or settings.host
        port = args.port or settings.port
        server = create_mcp_server(host=host, port=port)
        register_tools(server)
        register_health_routes(server)

        logger.info(f"Starting CoinMarket MCP on {host}:{port}")
        logger.info(f"Health check: http://{host}:{port}/health")
        server.run(transport="streamable-http")


if __name__ == "__main__":
    main()
