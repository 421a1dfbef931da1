"""
Input Sanitization and Validation for CoinMarket MCP.

Functions for validating and normalizing tool inputs before they reach the
discovery pipeline. All functions are pure and fall back to sensible defaults
instead of raising.

Key Features:
- Kline interval validation (Binance intervals)
- Ranking-provider sort field and direction validation
- Ranking strategy validation
- Convert currency and symbol normalization
- Integer and float clamping
"""

from __future__ import annotations
from typing import Set

import math


# =============================================================================
# Constants
# =============================================================================

# Kline intervals accepted by the exchange ("1m" is minutes, "1M" is months)
ALLOWED_INTERVALS: Set[str] = {
    "1s", "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
}

# Sort fields accepted by /cryptocurrency/listings/latest
ALLOWED_SORT_FIELDS: Set[str] = {
    "market_cap", "market_cap_strict", "name", "symbol", "date_added",
    "price", "circulating_supply", "total_supply", "max_supply",
    "num_market_pairs", "market_cap_by_total_supply_strict",
    "volume_24h", "volume_7d", "volume_30d",
    "percent_change_1h", "percent_change_24h", "percent_change_7d",
}

ALLOWED_SORT_DIRECTIONS: Set[str] = {"asc", "desc"}

STRATEGY_LOW_ATR: str = "strong_up_low_atr"
STRATEGY_HIGH_VOLUME: str = "strong_up_high_vol"
ALLOWED_STRATEGIES: Set[str] = {STRATEGY_LOW_ATR, STRATEGY_HIGH_VOLUME}

# Defaults
DEFAULT_TOP_N: int = 20
DEFAULT_RESULT_COUNT: int = 5
DEFAULT_INTERVAL: str = "1h"
DEFAULT_CANDLE_LIMIT: int = 250
DEFAULT_CONVERT: str = "USD"
DEFAULT_SORT_FIELD: str = "market_cap"
DEFAULT_SORT_DIRECTION: str = "desc"
DEFAULT_STRATEGY: str = STRATEGY_LOW_ATR
DEFAULT_RANK_MAX: int = 50
DEFAULT_ATR_PCT_MAX: float = 1.0

# Upstream bounds
MAX_TOP_N: int = 5000
MAX_CANDLE_LIMIT: int = 1000


# =============================================================================
# Interval / Sort Sanitization
# =============================================================================

def sanitize_interval(interval: str | None, default: str = DEFAULT_INTERVAL) -> str:
    """
    Validate a kline interval.

    Example:
        >>> sanitize_interval("4h")
        '4h'
        >>> sanitize_interval("1H")
        '1h'
        >>> sanitize_interval("1M")
        '1M'
        >>> sanitize_interval("7h")
        '1h'
    """
    if not interval:
        return default

    cleaned = interval.strip()
    if cleaned in ALLOWED_INTERVALS:
        return cleaned
    lowered = cleaned.lower()
    return lowered if lowered in ALLOWED_INTERVALS else default


def sanitize_sort_field(sort: str | None, default: str = DEFAULT_SORT_FIELD) -> str:
    """Validate a ranking-provider sort field."""
    if not sort:
        return default

    cleaned = sort.strip().lower()
    return cleaned if cleaned in ALLOWED_SORT_FIELDS else default


def sanitize_sort_direction(sort_dir: str | None, default: str = DEFAULT_SORT_DIRECTION) -> str:
    """Validate a sort direction ("asc" or "desc")."""
    if not sort_dir:
        return default

    cleaned = sort_dir.strip().lower()
    return cleaned if cleaned in ALLOWED_SORT_DIRECTIONS else default


def sanitize_strategy(strategy: str | None, default: str = DEFAULT_STRATEGY) -> str:
    """
    Validate a ranking strategy name.

    Example:
        >>> sanitize_strategy("STRONG_UP_HIGH_VOL")
        'strong_up_high_vol'
        >>> sanitize_strategy("momentum")
        'strong_up_low_atr'
    """
    if not strategy:
        return default

    cleaned = strategy.strip().lower()
    return cleaned if cleaned in ALLOWED_STRATEGIES else default


# =============================================================================
# Currency / Symbol Sanitization
# =============================================================================

def sanitize_convert(convert: str | None, default: str = DEFAULT_CONVERT) -> str:
    """
    Normalize a convert currency code.

    Example:
        >>> sanitize_convert(" eur ")
        'EUR'
        >>> sanitize_convert("US D")
        'USD'
    """
    if not convert:
        return default

    cleaned = convert.strip().upper()
    return cleaned if cleaned.isalnum() else default


def sanitize_symbol_list(symbols: str | None) -> str | None:
    """
    Normalize a comma-separated symbol list ("btc, eth" -> "BTC,ETH").

    Returns None when nothing usable remains.
    """
    if not symbols:
        return None

    parts = [part.strip().upper() for part in symbols.split(",")]
    parts = [part for part in parts if part]
    return ",".join(parts) if parts else None


# =============================================================================
# Numeric Sanitization
# =============================================================================

def sanitize_limit(
    limit: int | None,
    default: int,
    max_limit: int,
    min_limit: int = 1,
) -> int:
    """
    Validate and clamp an integer count.

    Example:
        >>> sanitize_limit(0, default=5, max_limit=10)
        1
        >>> sanitize_limit(None, default=5, max_limit=10)
        5
        >>> sanitize_limit(50, default=5, max_limit=10)
        10
    """
    if limit is None:
        return default

    try:
        value = int(limit)
    except (TypeError, ValueError):
        return default

    return max(min_limit, min(value, max_limit))


def sanitize_threshold(value: float | None, default: float) -> float:
    """
    Validate a float threshold; missing or non-finite input falls back to default.

    Negative thresholds are kept so that a filter on them admits nothing.
    """
    if value is None:
        return default

    try:
        number = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(number):
        return default
    return number
