"""
Pytest configuration and shared fixtures for CoinMarket MCP tests.

This module provides a fake clock, kline builders and an in-process fake of
both upstream providers served through httpx.MockTransport.
"""

import httpx
import pytest

from coinmarket_mcp.config import Settings
from coinmarket_mcp.core.data_loader import create_series_from_arrays
from coinmarket_mcp.core.schemas import AssetSummary, Provenance
from coinmarket_mcp.core.services.gateway import MarketDataGateway


# =============================================================================
# Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


TEST_API_KEY = "test-key"
CMC_HOST = "pro-api.coinmarketcap.com"
BINANCE_HOST = "api.binance.com"


# =============================================================================
# Helpers
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def trending_klines(count=250, start=100.0, step=0.1, spread=1.0):
    """
    Binance-style kline rows with a constant close-to-close step.

    With ``|step| < spread / 2`` every true range equals ``spread``, so
    ATR(14) is exactly ``spread``.
    """
    rows = []
    for i in range(count):
        close = start + step * i
        rows.append([
            i * 60_000,
            str(close),
            str(close + spread / 2),
            str(close - spread / 2),
            str(close),
            "10.0",
            i * 60_000 + 59_999,
        ])
    return rows


class FakeUpstream:
    """
    In-process stand-in for the ranking provider and the exchange.

    Listing entries, tickers and klines are registered per asset; failures
    are configured per pair or for the listing as a whole. Every request is
    recorded.
    """

    def __init__(self):
        self.listings = []
        self.listing_status = 200
        self.tickers = {}
        self.klines = {}
        self.ticker_failures = {}
        self.kline_failures = {}
        self.cmc_payloads = {}
        self.cmc_status = {}
        self.requests = []

    def add_asset(self, symbol, rank, pct_24h=3.0, volume=1000.0, market_cap=1e9,
                  step=0.1, spread=1.0, count=250, listed=True, convert="USD"):
        """Register a listing entry plus a ticker and klines for ``<symbol>USDT``."""
        self.listings.append({
            "id": rank,
            "name": symbol.title() if symbol else None,
            "symbol": symbol,
            "cmc_rank": rank,
            "quote": {convert: {
                "price": 100.0,
                "market_cap": market_cap,
                "percent_change_24h": pct_24h,
            }},
        })
        if listed and symbol:
            pair = f"{symbol}USDT"
            self.tickers[pair] = {
                "symbol": pair,
                "priceChangePercent": str(pct_24h),
                "volume": str(volume),
                "lastPrice": "100.0",
            }
            self.klines[pair] = trending_klines(count=count, step=step, spread=spread)

    def requests_for(self, path_suffix):
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == CMC_HOST:
            return self._handle_cmc(request)
        if request.url.host == BINANCE_HOST:
            return self._handle_binance(request)
        return httpx.Response(404, json={"error": "unknown host"})

    def _handle_cmc(self, request):
        if request.headers.get("X-CMC_PRO_API_KEY") != TEST_API_KEY:
            return httpx.Response(401, json={"status": {"error_code": 1002}})

        endpoint = request.url.path[len("/v1"):]
        if endpoint in self.cmc_status:
            return httpx.Response(self.cmc_status[endpoint], json={"status": {"error_code": 500}})
        if endpoint in self.cmc_payloads:
            return httpx.Response(200, json=self.cmc_payloads[endpoint])
        if endpoint == "/cryptocurrency/listings/latest":
            if self.listing_status != 200:
                return httpx.Response(self.listing_status, json={"status": {"error_code": 500}})
            limit = int(request.url.params.get("limit", len(self.listings)))
            return httpx.Response(200, json={"data": self.listings[:limit]})
        return httpx.Response(404, json={"status": {"error_code": 404}})

    def _handle_binance(self, request):
        pair = request.url.params.get("symbol")
        if request.url.path.endswith("/ticker/24hr"):
            if pair in self.ticker_failures:
                return httpx.Response(self.ticker_failures[pair], json={"code": -1, "msg": "error"})
            if pair not in self.tickers:
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            return httpx.Response(200, json=self.tickers[pair])
        if request.url.path.endswith("/klines"):
            if pair in self.kline_failures:
                return httpx.Response(self.kline_failures[pair], json={"code": -1, "msg": "error"})
            if pair not in self.klines:
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            limit = int(request.url.params.get("limit", 500))
            return httpx.Response(200, json=self.klines[pair][-limit:])
        return httpx.Response(404, json={"code": -1, "msg": "not found"})


# =============================================================================
# Common Fixtures
# =============================================================================

@pytest.fixture
def fake_clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Provide settings pointing at the default upstream hosts."""
    return Settings(api_key=TEST_API_KEY)


@pytest.fixture
def upstream():
    """Provide an empty fake upstream."""
    return FakeUpstream()


@pytest.fixture
def transport(upstream):
    """Provide an httpx transport backed by the fake upstream."""
    return httpx.MockTransport(upstream.handler)


@pytest.fixture
def gateway(settings, fake_clock, transport):
    """Provide a gateway wired to the fake upstream with a fresh cache."""
    return MarketDataGateway.from_settings(settings, clock=fake_clock, transport=transport)


@pytest.fixture
def market(upstream):
    """
    Provide a three-asset market: BTC and ETH trending up, USDT as a stablecoin.
    """
    upstream.add_asset("BTC", rank=1, pct_24h=3.0, volume=5000.0)
    upstream.add_asset("USDT", rank=2, pct_24h=0.01, volume=9000.0)
    upstream.add_asset("ETH", rank=3, pct_24h=1.5, volume=3000.0)
    return upstream


@pytest.fixture
def make_summary():
    """Provide a factory for AssetSummary records."""

    def _make(symbol="BTCUSDT", rating="neutral", atr_percent=0.5, volume_24h=100.0,
              percent_change_24h=0.0, rank=1, trend="up", price=100.0):
        provenance = Provenance(market_cap=1e9, percent_change_24h=percent_change_24h, rank=rank)
        return AssetSummary(
            symbol=symbol,
            price=price,
            percent_change_24h=percent_change_24h,
            volume_24h=volume_24h,
            atr_percent=atr_percent,
            trend=trend,
            rating=rating,
            provenance=provenance,
        )

    return _make


@pytest.fixture
def make_series():
    """Provide a factory for linear PriceSeries."""

    def _make(count=250, start=100.0, step=0.1, spread=1.0, symbol="BTCUSDT", interval="1h"):
        closes = [start + step * i for i in range(count)]
        highs = [c + spread / 2 for c in closes]
        lows = [c - spread / 2 for c in closes]
        return create_series_from_arrays(symbol, interval, highs, lows, closes)

    return _make
