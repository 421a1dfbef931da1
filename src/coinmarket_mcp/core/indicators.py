"""
Technical Indicators Module.

Pure numeric functions used by the discovery pipeline to measure trend and
volatility. Every function returns None when the input is shorter than the
requested period or contains a non-finite value ("insufficient data").

Key Functions:
- ema: Exponential moving average over the full series
- sma: Simple moving average of the trailing window
- rma / rma_series: Wilder smoothing (used for ATR)
- true_range / atr / atr_percent: Volatility measures
- compute_levels: All levels the classifier needs for one PriceSeries
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .data_loader import PriceSeries


# =============================================================================
# Constants
# =============================================================================

ATR_PERIOD = 14
EMA_FAST_PERIOD = 50
EMA_SLOW_PERIOD = 200
SMA_SLOW_PERIOD = 200


def _finite_array(values: Sequence[float] | np.ndarray) -> Optional[np.ndarray]:
    """Convert to a 1-D float64 array, or None if any value is non-finite."""
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if arr.ndim != 1 or not np.all(np.isfinite(arr)):
        return None
    return arr


# =============================================================================
# Moving Averages
# =============================================================================

def ema(values: Sequence[float] | np.ndarray, period: int) -> Optional[float]:
    """
    Exponential moving average of the whole series.

    Seeded with the first value, then ``x * k + prev * (1 - k)`` with
    ``k = 2 / (period + 1)`` for every later value.

    Example:
        >>> ema([1.0, 2.0, 3.0], 3)
        2.25
    """
    arr = _finite_array(values)
    if arr is None or period < 1 or len(arr) < period:
        return None

    k = 2.0 / (period + 1)
    value = float(arr[0])
    for x in arr[1:]:
        value = float(x) * k + value * (1 - k)
    return value


def sma(values: Sequence[float] | np.ndarray, period: int) -> Optional[float]:
    """Arithmetic mean of the last ``period`` values."""
    arr = _finite_array(values)
    if arr is None or period < 1 or len(arr) < period:
        return None
    return float(np.mean(arr[-period:]))


def rma_series(values: Sequence[float] | np.ndarray, period: int) -> Optional[List[float]]:
    """
    Wilder smoothing, returning every smoothed value.

    The first output is the mean of the first ``period`` values; each later
    input ``x`` produces ``x / period + prev * (1 - 1 / period)``.
    """
    arr = _finite_array(values)
    if arr is None or period < 1 or len(arr) < period:
        return None

    alpha = 1.0 / period
    value = float(np.mean(arr[:period]))
    out = [value]
    for x in arr[period:]:
        value = alpha * float(x) + (1 - alpha) * value
        out.append(value)
    return out


def rma(values: Sequence[float] | np.ndarray, period: int) -> Optional[float]:
    """Final Wilder-smoothed value, or None for insufficient data."""
    smoothed = rma_series(values, period)
    return smoothed[-1] if smoothed else None


# =============================================================================
# Volatility
# =============================================================================

def true_range(highs: Sequence[float] | np.ndarray,
               lows: Sequence[float] | np.ndarray,
               closes: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    True range per candle.

    Index 0 has no previous close, so it is exactly ``high - low``. Later
    indexes take ``max(high - low, |high - prevClose|, |low - prevClose|)``.
    Non-finite inputs propagate as NaN.
    """
    highs = np.asarray(highs, dtype=np.float64)
    lows = np.asarray(lows, dtype=np.float64)
    closes = np.asarray(closes, dtype=np.float64)

    tr = highs - lows
    if len(tr) > 1:
        prev_close = closes[:-1]
        tr[1:] = np.maximum.reduce([
            tr[1:],
            np.abs(highs[1:] - prev_close),
            np.abs(lows[1:] - prev_close),
        ])
    return tr


def atr(highs: Sequence[float] | np.ndarray,
        lows: Sequence[float] | np.ndarray,
        closes: Sequence[float] | np.ndarray,
        period: int = ATR_PERIOD) -> Optional[float]:
    """Average True Range: Wilder smoothing of the true range series."""
    return rma(true_range(highs, lows, closes), period)


def atr_percent(atr_value: Optional[float], last_close: Optional[float]) -> Optional[float]:
    """
    ATR as a percentage of the last close.

    Returns None if either operand is missing, non-finite or zero.
    """
    if not atr_value or not last_close:
        return None
    if not (np.isfinite(atr_value) and np.isfinite(last_close)):
        return None
    return atr_value / last_close * 100


# =============================================================================
# Snapshot Levels
# =============================================================================

@dataclass(frozen=True)
class IndicatorLevels:
    """Raw indicator values computed from one PriceSeries."""
    last_close: Optional[float]
    ema_fast: Optional[float]
    ema_slow: Optional[float]
    sma_slow: Optional[float]
    atr: Optional[float]
    atr_percent: Optional[float]


def compute_levels(series: PriceSeries) -> IndicatorLevels:
    """
    Compute EMA50, EMA200, SMA200, ATR(14) and ATR% for a price series.

    Args:
        series: Candles ordered oldest first

    Returns:
        IndicatorLevels with None for every value the data cannot support
    """
    closes = series.closes
    last_close = series.last_close
    if last_close is not None and not np.isfinite(last_close):
        last_close = None

    atr_value = atr(series.highs, series.lows, closes, ATR_PERIOD)

    return IndicatorLevels(
        last_close=last_close,
        ema_fast=ema(closes, EMA_FAST_PERIOD),
        ema_slow=ema(closes, EMA_SLOW_PERIOD),
        sma_slow=sma(closes, SMA_SLOW_PERIOD),
        atr=atr_value,
        atr_percent=atr_percent(atr_value, last_close),
    )
