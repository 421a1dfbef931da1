"""
Schema Definitions for CoinMarket MCP.

Dataclasses for the values that flow through the discovery pipeline and
TypedDict definitions for the serialized tool outputs.

Key Features:
- RankedAsset / Ticker: normalized upstream records
- IndicatorSnapshot / AssetSummary: per-asset pipeline results
- SkippedAsset / DiscoveryResult: best-effort batch outcome
- Builder functions for the serialized response shapes
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, TypedDict


Trend = Literal["up", "down"]
Rating = Literal["strong_up", "up", "neutral", "down", "strong_down"]
SkipReason = Literal["missing_symbol", "stablecoin", "ticker_unavailable", "history_unavailable"]


# =============================================================================
# Serialized Shapes
# =============================================================================

class ProvenanceDict(TypedDict):
    """Ranking-provider fields attached to a summary."""
    marketCap: Optional[float]
    percentChange24h: Optional[float]
    rank: Optional[int]


class AssetSummaryDict(TypedDict):
    """One entry of a discovery tool result."""
    symbol: str
    price: Optional[float]
    percentChange24h: Optional[float]
    volume24h: Optional[float]
    atrPercent: Optional[float]
    trend: Optional[Trend]
    rating: Rating
    provenance: Optional[ProvenanceDict]


# =============================================================================
# Upstream Records
# =============================================================================

@dataclass(frozen=True)
class RankedAsset:
    """
    One entry of the ranking provider's latest listing.

    Attributes:
        symbol: Base asset symbol (e.g., "BTC"); empty if the payload had none
        name: Display name
        rank: Market-cap rank (cmc_rank)
        market_cap: Market cap in the requested convert currency
        percent_change_24h: 24h change in the requested convert currency
    """
    symbol: str
    name: Optional[str] = None
    rank: Optional[int] = None
    market_cap: Optional[float] = None
    percent_change_24h: Optional[float] = None


@dataclass(frozen=True)
class Ticker:
    """24h rolling statistics for an exchange pair."""
    symbol: str
    percent_change_24h: Optional[float] = None
    volume_24h: Optional[float] = None
    last_price: Optional[float] = None


@dataclass(frozen=True)
class Provenance:
    market_cap: Optional[float] = None
    percent_change_24h: Optional[float] = None
    rank: Optional[int] = None

    @classmethod
    def from_ranked_asset(cls, asset: RankedAsset) -> "Provenance":
        return cls(
            market_cap=asset.market_cap,
            percent_change_24h=asset.percent_change_24h,
            rank=asset.rank,
        )

    def to_dict(self) -> ProvenanceDict:
        return {
            "marketCap": self.market_cap,
            "percentChange24h": self.percent_change_24h,
            "rank": self.rank,
        }


# =============================================================================
# Pipeline Results
# =============================================================================

@dataclass(frozen=True)
class IndicatorSnapshot:
    """
    Indicator state for one asset, computed once per pipeline run.

    Attributes:
        last_close: Most recent close (None if series empty)
        atr_percent: ATR(14) as percent of last close (None if undefined)
        trend: "up", "down" or None when history is too short
        ema_fast, ema_slow, sma_slow, atr: Intermediate values
    """
    last_close: Optional[float]
    atr_percent: Optional[float]
    trend: Optional[Trend]
    ema_fast: Optional[float] = None
    ema_slow: Optional[float] = None
    sma_slow: Optional[float] = None
    atr: Optional[float] = None


@dataclass(frozen=True)
class AssetSummary:
    """Unit returned to callers for one discovered asset."""
    symbol: str
    price: Optional[float]
    percent_change_24h: Optional[float]
    volume_24h: Optional[float]
    atr_percent: Optional[float]
    trend: Optional[Trend]
    rating: Rating
    provenance: Optional[Provenance] = None

    @property
    def rank(self) -> Optional[int]:
        return self.provenance.rank if self.provenance is not None else None

    def to_dict(self) -> AssetSummaryDict:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "percentChange24h": self.percent_change_24h,
            "volume24h": self.volume_24h,
            "atrPercent": self.atr_percent,
            "trend": self.trend,
            "rating": self.rating,
            "provenance": self.provenance.to_dict() if self.provenance is not None else None,
        }


@dataclass(frozen=True)
class SkippedAsset:
    symbol: str
    reason: SkipReason

    def to_dict(self) -> Dict[str, str]:
        return {"symbol": self.symbol, "reason": self.reason}


@dataclass(frozen=True)
class DiscoveryResult:
    """
    Outcome of one discovery run.

    ``listing_error`` is set when the ranked listing itself could not be
    fetched, which distinguishes "nothing qualified" from "nothing fetched".
    """
    summaries: Tuple[AssetSummary, ...] = field(default_factory=tuple)
    skipped: Tuple[SkippedAsset, ...] = field(default_factory=tuple)
    candidates: int = 0
    listing_error: Optional[Exception] = None

    @property
    def listing_failed(self) -> bool:
        return self.listing_error is not None


# =============================================================================
# Builders
# =============================================================================

def build_summary_list(summaries: List[AssetSummary] | Tuple[AssetSummary, ...]) -> List[AssetSummaryDict]:
    """Serialize summaries in their current order."""
    return [s.to_dict() for s in summaries]


def build_diagnostics_result(ranked: List[AssetSummary], result: DiscoveryResult) -> Dict[str, Any]:
    """
    Serialize a ranked shortlist together with how the batch went.

    Returns:
        Dictionary with results, candidates, summarized and skipped entries
    """
    return {
        "results": build_summary_list(ranked),
        "candidates": result.candidates,
        "summarized": len(result.summaries),
        "skipped": [s.to_dict() for s in result.skipped],
    }
