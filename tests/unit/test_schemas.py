"""
Tests for schema records and builders.
"""

from coinmarket_mcp.core.schemas import (
    DiscoveryResult,
    Provenance,
    RankedAsset,
    SkippedAsset,
    build_diagnostics_result,
    build_summary_list,
)
from coinmarket_mcp.core.errors import APIError


class TestAssetSummary:
    """Tests for AssetSummary serialization."""

    def test_to_dict_keys(self, make_summary):
        """Test the serialized field names."""
        data = make_summary(symbol="BTCUSDT", rating="strong_up", rank=1).to_dict()

        assert list(data) == [
            "symbol", "price", "percentChange24h", "volume24h",
            "atrPercent", "trend", "rating", "provenance",
        ]
        assert data["provenance"] == {"marketCap": 1e9, "percentChange24h": 0.0, "rank": 1}

    def test_rank_property(self, make_summary):
        """Test that rank reads through provenance."""
        assert make_summary(rank=7).rank == 7
        assert make_summary(rank=None).rank is None


class TestProvenance:
    """Tests for Provenance."""

    def test_from_ranked_asset(self):
        """Test copying listing fields."""
        asset = RankedAsset(symbol="ETH", name="Ethereum", rank=2, market_cap=4e11, percent_change_24h=-1.2)
        provenance = Provenance.from_ranked_asset(asset)

        assert provenance.to_dict() == {"marketCap": 4e11, "percentChange24h": -1.2, "rank": 2}


class TestDiscoveryResult:
    """Tests for DiscoveryResult and builders."""

    def test_defaults(self):
        """Test an empty result."""
        result = DiscoveryResult()
        assert result.summaries == ()
        assert not result.listing_failed

    def test_listing_failed(self):
        """Test that a listing error is visible."""
        assert DiscoveryResult(listing_error=APIError("down", 503)).listing_failed

    def test_build_summary_list_keeps_order(self, make_summary):
        """Test that serialization keeps order."""
        items = [make_summary(symbol="B"), make_summary(symbol="A")]
        assert [d["symbol"] for d in build_summary_list(items)] == ["B", "A"]

    def test_build_diagnostics_result(self, make_summary):
        """Test the diagnostics shape."""
        summaries = (make_summary(symbol="BTCUSDT"), make_summary(symbol="ETHUSDT"))
        result = DiscoveryResult(
            summaries=summaries,
            skipped=(SkippedAsset(symbol="USDT", reason="stablecoin"),),
            candidates=3,
        )
        data = build_diagnostics_result([summaries[1]], result)

        assert [d["symbol"] for d in data["results"]] == ["ETHUSDT"]
        assert data["candidates"] == 3
        assert data["summarized"] == 2
        assert data["skipped"] == [{"symbol": "USDT", "reason": "stablecoin"}]
