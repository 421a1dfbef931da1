"""
Price Series Loading Utilities for CoinMarket MCP.

This module turns exchange kline payloads into immutable candle series and
exposes NumPy array accessors for the indicator engine.

Key Features:
- Candle and PriceSeries dataclasses (oldest candle first)
- NumPy array accessors for highs, lows and closes
- Kline payload parsing with DataError on malformed rows
- Helpers for building series from parallel arrays (used by tests and tooling)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .errors import DataError


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Candle:
    """
    Single kline/candle.

    Values are kept exactly as parsed. Non-finite values are not rejected here;
    the indicator engine treats them as insufficient data.

    Attributes:
        open_time: Candle open time in milliseconds
        open: Opening price
        high: Highest price
        low: Lowest price
        close: Closing price
        volume: Base-asset volume
    """
    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class PriceSeries:
    """
    Chronological candles for one symbol over one interval.

    Attributes:
        symbol: Exchange pair symbol (e.g., "BTCUSDT")
        interval: Kline interval (e.g., "1h")
        candles: Candles ordered oldest first
    """
    symbol: str
    interval: str
    candles: Tuple[Candle, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.candles)

    def __getitem__(self, index: int) -> Candle:
        return self.candles[index]

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    # =========================================================================
    # NumPy Array Accessors
    # =========================================================================

    @property
    def highs(self) -> np.ndarray:
        """All high prices as a float64 array."""
        return np.array([c.high for c in self.candles], dtype=np.float64)

    @property
    def lows(self) -> np.ndarray:
        """All low prices as a float64 array."""
        return np.array([c.low for c in self.candles], dtype=np.float64)

    @property
    def closes(self) -> np.ndarray:
        """All close prices as a float64 array."""
        return np.array([c.close for c in self.candles], dtype=np.float64)

    @property
    def last_close(self) -> Optional[float]:
        """Most recent close, or None for an empty series."""
        return self.candles[-1].close if self.candles else None


# =============================================================================
# Parsing
# =============================================================================

def price_series_from_klines(symbol: str, interval: str, klines: Any) -> PriceSeries:
    """
    Build a PriceSeries from a Binance ``/klines`` payload.

    Each row has the form ``[openTime, open, high, low, close, volume, ...]``
    with prices encoded as decimal strings.

    Args:
        symbol: Exchange pair symbol
        interval: Kline interval the rows were requested with
        klines: Decoded JSON payload

    Returns:
        PriceSeries with candles in payload order (oldest first)

    Raises:
        DataError: If the payload is not a list of kline rows
    """
    if not isinstance(klines, list):
        raise DataError(f"Unexpected klines payload for {symbol}: {type(klines).__name__}")

    candles: List[Candle] = []
    for row in klines:
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            raise DataError(f"Malformed kline row for {symbol}: {row!r}")
        try:
            candles.append(Candle(
                open_time=int(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]) if len(row) > 5 else 0.0,
            ))
        except (TypeError, ValueError) as e:
            raise DataError(f"Kline row for {symbol} contains invalid data: {e}")

    return PriceSeries(symbol=symbol, interval=interval, candles=tuple(candles))


def create_series_from_arrays(
    symbol: str,
    interval: str,
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    opens: Optional[Sequence[float]] = None,
) -> PriceSeries:
    """
    Create a PriceSeries from parallel arrays.

    Open prices default to the close and open times to the candle index.

    Raises:
        DataError: If arrays have mismatched lengths
    """
    if not (len(highs) == len(lows) == len(closes)):
        raise DataError(
            f"Mismatched series lengths: highs={len(highs)}, lows={len(lows)}, closes={len(closes)}"
        )
    if opens is not None and len(opens) != len(closes):
        raise DataError(f"Open length ({len(opens)}) doesn't match close length ({len(closes)})")

    opens = opens if opens is not None else closes
    candles = tuple(
        Candle(open_time=i, open=float(o), high=float(h), low=float(l), close=float(c))
        for i, (o, h, l, c) in enumerate(zip(opens, highs, lows, closes))
    )
    return PriceSeries(symbol=symbol, interval=interval, candles=candles)


def to_optional_float(value: Any) -> Optional[float]:
    """
    Parse a numeric field, returning None for missing, unparseable or
    non-finite values.

    Example:
        >>> to_optional_float("1.25")
        1.25
        >>> to_optional_float("NaN") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if np.isfinite(number) else None
