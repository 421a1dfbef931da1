"""
Trend and rating classification.

Maps indicator levels to a trend direction and combines the trend with the
24h percent change into a discrete rating used for ranking.
"""

from __future__ import annotations

import math
from typing import Dict, Optional

from .indicators import IndicatorLevels
from .schemas import IndicatorSnapshot, Rating, Trend


# =============================================================================
# Constants
# =============================================================================

# 24h percent change thresholds
STRONG_MOVE_PCT: float = 2.0
MOVE_PCT: float = 1.0

RATING_SCORES: Dict[str, int] = {
    "strong_up": 4,
    "up": 3,
    "neutral": 2,
    "down": 1,
    "strong_down": 0,
}


def determine_trend(
    ema_fast: Optional[float],
    ema_slow: Optional[float],
    sma_slow: Optional[float],
    last_close: Optional[float],
) -> Optional[Trend]:
    """
    Determine trend direction.

    EMA50/EMA200 crossover wins when both are defined; otherwise the last
    close is compared with SMA200; otherwise the trend is undefined.
    """
    if ema_fast is not None and ema_slow is not None:
        return "up" if ema_fast > ema_slow else "down"
    if sma_slow is not None and last_close is not None:
        return "up" if last_close > sma_slow else "down"
    return None


def rate(trend: Optional[Trend], pct_24h: Optional[float]) -> Rating:
    """
    Rate an asset from its trend and 24h percent change.

    A missing or non-finite change satisfies no threshold.

    Example:
        >>> rate("up", 2.5)
        'strong_up'
        >>> rate(None, 10.0)
        'neutral'
    """
    if pct_24h is not None and not math.isfinite(pct_24h):
        pct_24h = None

    if trend == "up":
        if pct_24h is not None and pct_24h > STRONG_MOVE_PCT:
            return "strong_up"
        if pct_24h is not None and pct_24h > MOVE_PCT:
            return "up"
        return "neutral"

    if trend == "down":
        if pct_24h is not None and pct_24h < -STRONG_MOVE_PCT:
            return "strong_down"
        if pct_24h is not None and pct_24h < -MOVE_PCT:
            return "down"
        return "neutral"

    return "neutral"


def rating_score(rating: str) -> int:
    """Numeric score for sorting (strong_up=4 ... strong_down=0)."""
    return RATING_SCORES.get(rating, RATING_SCORES["neutral"])


def build_snapshot(levels: IndicatorLevels) -> IndicatorSnapshot:
    """Classify indicator levels into an IndicatorSnapshot."""
    return IndicatorSnapshot(
        last_close=levels.last_close,
        atr_percent=levels.atr_percent,
        trend=determine_trend(levels.ema_fast, levels.ema_slow, levels.sma_slow, levels.last_close),
        ema_fast=levels.ema_fast,
        ema_slow=levels.ema_slow,
        sma_slow=levels.sma_slow,
        atr=levels.atr,
    )
