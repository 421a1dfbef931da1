"""
Tests for the sanitize module.

Tests cover:
- Interval sanitization (including 1m vs 1M)
- Sort field / direction sanitization
- Strategy sanitization
- Convert currency and symbol list normalization
- Limit and threshold clamping
"""

import pytest
from coinmarket_mcp.core.sanitize import (
    sanitize_interval,
    sanitize_sort_field,
    sanitize_sort_direction,
    sanitize_strategy,
    sanitize_convert,
    sanitize_symbol_list,
    sanitize_limit,
    sanitize_threshold,
    ALLOWED_INTERVALS,
    ALLOWED_STRATEGIES,
    DEFAULT_INTERVAL,
    DEFAULT_SORT_FIELD,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_STRATEGY,
    DEFAULT_CONVERT,
)


class TestSanitizeInterval:
    """Tests for sanitize_interval function."""

    def test_valid_intervals(self):
        """Test that valid intervals are returned unchanged."""
        for interval in ALLOWED_INTERVALS:
            assert sanitize_interval(interval) == interval

    def test_minutes_and_months_are_distinct(self):
        """Test that 1m (minute) and 1M (month) are both kept."""
        assert sanitize_interval("1m") == "1m"
        assert sanitize_interval("1M") == "1M"

    def test_uppercase_hours_are_lowered(self):
        """Test that 1H and 4H normalize to lowercase."""
        assert sanitize_interval("1H") == "1h"
        assert sanitize_interval("4H") == "4h"

    def test_invalid_interval_returns_default(self):
        """Test that unknown intervals return default."""
        assert sanitize_interval("7h") == DEFAULT_INTERVAL
        assert sanitize_interval("hourly") == DEFAULT_INTERVAL

    def test_none_and_empty(self):
        """Test that None and empty string return default."""
        assert sanitize_interval(None) == DEFAULT_INTERVAL
        assert sanitize_interval("") == DEFAULT_INTERVAL

    def test_whitespace_handling(self):
        """Test that whitespace is stripped."""
        assert sanitize_interval("  4h ") == "4h"


class TestSanitizeSort:
    """Tests for sort field and direction sanitization."""

    def test_valid_fields(self):
        """Test common sort fields."""
        assert sanitize_sort_field("volume_24h") == "volume_24h"
        assert sanitize_sort_field("PERCENT_CHANGE_24H") == "percent_change_24h"

    def test_invalid_field_returns_default(self):
        """Test that unknown fields fall back."""
        assert sanitize_sort_field("popularity") == DEFAULT_SORT_FIELD
        assert sanitize_sort_field(None) == DEFAULT_SORT_FIELD

    def test_directions(self):
        """Test asc/desc handling."""
        assert sanitize_sort_direction("ASC") == "asc"
        assert sanitize_sort_direction("desc") == "desc"
        assert sanitize_sort_direction("sideways") == DEFAULT_SORT_DIRECTION
        assert sanitize_sort_direction(None) == DEFAULT_SORT_DIRECTION


class TestSanitizeStrategy:
    """Tests for sanitize_strategy function."""

    def test_known_strategies(self):
        """Test that known strategies pass."""
        for strategy in ALLOWED_STRATEGIES:
            assert sanitize_strategy(strategy) == strategy

    def test_case_insensitive(self):
        """Test that strategy names are case-insensitive."""
        assert sanitize_strategy("Strong_Up_High_Vol") == "strong_up_high_vol"

    def test_unknown_returns_default(self):
        """Test that unknown strategies fall back to the default."""
        assert sanitize_strategy("momentum") == DEFAULT_STRATEGY
        assert sanitize_strategy(None) == DEFAULT_STRATEGY


class TestSanitizeConvert:
    """Tests for sanitize_convert function."""

    def test_uppercases(self):
        """Test that currency codes are uppercased."""
        assert sanitize_convert("eur") == "EUR"
        assert sanitize_convert(" btc ") == "BTC"

    def test_invalid_returns_default(self):
        """Test that codes with punctuation fall back."""
        assert sanitize_convert("US-D") == DEFAULT_CONVERT
        assert sanitize_convert(None) == DEFAULT_CONVERT


class TestSanitizeSymbolList:
    """Tests for sanitize_symbol_list function."""

    def test_normalizes(self):
        """Test whitespace and case normalization."""
        assert sanitize_symbol_list("btc, eth ,sol") == "BTC,ETH,SOL"

    def test_drops_empty_parts(self):
        """Test that empty entries are dropped."""
        assert sanitize_symbol_list("btc,,") == "BTC"

    def test_nothing_usable(self):
        """Test that empty input gives None."""
        assert sanitize_symbol_list(None) is None
        assert sanitize_symbol_list(" , ") is None


class TestSanitizeLimit:
    """Tests for sanitize_limit function."""

    def test_valid_limit(self):
        """Test that valid limits pass."""
        assert sanitize_limit(20, default=5, max_limit=100) == 20

    def test_clamping(self):
        """Test clamping to min and max."""
        assert sanitize_limit(0, default=5, max_limit=100) == 1
        assert sanitize_limit(-3, default=5, max_limit=100) == 1
        assert sanitize_limit(500, default=5, max_limit=100) == 100

    def test_none_and_garbage(self):
        """Test that None and non-numeric input return default."""
        assert sanitize_limit(None, default=5, max_limit=100) == 5
        assert sanitize_limit("abc", default=5, max_limit=100) == 5

    def test_string_number(self):
        """Test that numeric strings are converted."""
        assert sanitize_limit("25", default=5, max_limit=100) == 25


class TestSanitizeThreshold:
    """Tests for sanitize_threshold function."""

    def test_valid(self):
        """Test that valid thresholds pass."""
        assert sanitize_threshold(2.5, default=1.0) == 2.5
        assert sanitize_threshold(0, default=1.0) == 0.0

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf")])
    def test_invalid_returns_default(self, value):
        """Test that invalid thresholds fall back."""
        assert sanitize_threshold(value, default=1.0) == 1.0

    def test_negative_is_kept(self):
        """Test that a negative threshold is not replaced by the default."""
        assert sanitize_threshold(-1.0, default=1.0) == -1.0
