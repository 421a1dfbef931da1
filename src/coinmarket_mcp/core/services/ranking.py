"""
Filtering and ranking of discovered assets.

Summaries are never modified; every function returns a new list.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..classifier import rating_score
from ..sanitize import DEFAULT_STRATEGY, STRATEGY_HIGH_VOLUME, STRATEGY_LOW_ATR
from ..schemas import AssetSummary

SortKey = Tuple[float, ...]


def passes_filters(summary: AssetSummary, rank_max: int, atr_pct_max: float) -> bool:
    """
    True iff rank is present and <= rank_max and ATR% is present and <= atr_pct_max.

    A missing rank or ATR% always fails.
    """
    rank = summary.rank
    if rank is None or rank > rank_max:
        return False
    if summary.atr_percent is None or summary.atr_percent > atr_pct_max:
        return False
    return True


def filter_summaries(
    summaries: Iterable[AssetSummary], rank_max: int, atr_pct_max: float
) -> List[AssetSummary]:
    return [s for s in summaries if passes_filters(s, rank_max, atr_pct_max)]


def _atr_key(summary: AssetSummary) -> float:
    return summary.atr_percent if summary.atr_percent is not None else math.inf


def _volume_key(summary: AssetSummary) -> float:
    return summary.volume_24h if summary.volume_24h is not None else 0.0


def _move_key(summary: AssetSummary) -> float:
    return abs(summary.percent_change_24h) if summary.percent_change_24h is not None else 0.0


def _low_atr_key(summary: AssetSummary) -> SortKey:
    # rating desc, ATR% asc, volume desc, |24h move| desc
    return (-rating_score(summary.rating), _atr_key(summary), -_volume_key(summary), -_move_key(summary))


def _high_volume_key(summary: AssetSummary) -> SortKey:
    # rating desc, volume desc, ATR% asc, |24h move| desc
    return (-rating_score(summary.rating), -_volume_key(summary), _atr_key(summary), -_move_key(summary))


STRATEGY_KEYS: Dict[str, Callable[[AssetSummary], SortKey]] = {
    STRATEGY_LOW_ATR: _low_atr_key,
    STRATEGY_HIGH_VOLUME: _high_volume_key,
}


def sort_summaries(summaries: Iterable[AssetSummary], strategy: str = DEFAULT_STRATEGY) -> List[AssetSummary]:
    """
    Stable multi-key sort for a strategy. Unknown strategies use the default.
    """
    key = STRATEGY_KEYS.get(strategy, STRATEGY_KEYS[DEFAULT_STRATEGY])
    return sorted(summaries, key=key)


def rank_summaries(
    summaries: Iterable[AssetSummary],
    result_count: int,
    strategy: str = DEFAULT_STRATEGY,
    rank_max: Optional[int] = None,
    atr_pct_max: Optional[float] = None,
) -> List[AssetSummary]:
    """
    Filter (when both thresholds are given), sort, and keep the first ``result_count``.

    Args:
        summaries: Summaries in listing order
        result_count: Maximum entries to return; larger than available returns all
        strategy: Sort strategy name
        rank_max: Maximum ranking-provider rank to include
        atr_pct_max: Maximum ATR% to include

    Returns:
        New ordered list
    """
    candidates = list(summaries)
    if rank_max is not None and atr_pct_max is not None:
        candidates = filter_summaries(candidates, rank_max, atr_pct_max)
    return sort_summaries(candidates, strategy)[:max(result_count, 0)]
