"""
CoinMarket MCP Core Module.

This module provides the building blocks of the discovery pipeline.

Modules:
- errors: Custom exception hierarchy and error response builders
- cache: TTL request cache with in-flight de-duplication
- sanitize: Input validation and sanitization
- data_loader: Kline parsing into price series
- indicators: EMA / SMA / RMA / ATR over price series
- classifier: Trend and rating classification
- schemas: Data records and serialized output shapes
"""

from .errors import (
    CoinMarketError,
    ConfigurationError,
    ValidationError,
    DataError,
    APIError,
    RateLimitError,
    APITimeoutError,
    SymbolNotFoundError,
    build_error_response,
    classify_http_error,
)

from .cache import (
    TTLCache,
    CacheEntry,
    build_cache_key,
)

from .sanitize import (
    sanitize_interval,
    sanitize_sort_field,
    sanitize_sort_direction,
    sanitize_strategy,
    sanitize_convert,
    sanitize_limit,
    sanitize_threshold,
    ALLOWED_INTERVALS,
    ALLOWED_STRATEGIES,
)

from .data_loader import (
    Candle,
    PriceSeries,
    price_series_from_klines,
    create_series_from_arrays,
)

from .indicators import (
    ema,
    sma,
    rma,
    atr,
    atr_percent,
    compute_levels,
    IndicatorLevels,
)

from .classifier import (
    determine_trend,
    rate,
    rating_score,
)

from .schemas import (
    RankedAsset,
    Ticker,
    Provenance,
    IndicatorSnapshot,
    AssetSummary,
    SkippedAsset,
    DiscoveryResult,
)

__all__ = [
    # Errors
    "CoinMarketError",
    "ConfigurationError",
    "ValidationError",
    "DataError",
    "APIError",
    "RateLimitError",
    "APITimeoutError",
    "SymbolNotFoundError",
    "build_error_response",
    "classify_http_error",
    # Cache
    "TTLCache",
    "CacheEntry",
    "build_cache_key",
    # Sanitize
    "sanitize_interval",
    "sanitize_sort_field",
    "sanitize_sort_direction",
    "sanitize_strategy",
    "sanitize_convert",
    "sanitize_limit",
    "sanitize_threshold",
    "ALLOWED_INTERVALS",
    "ALLOWED_STRATEGIES",
    # Data loader
    "Candle",
    "PriceSeries",
    "price_series_from_klines",
    "create_series_from_arrays",
    # Indicators
    "ema",
    "sma",
    "rma",
    "atr",
    "atr_percent",
    "compute_levels",
    "IndicatorLevels",
    # Classifier
    "determine_trend",
    "rate",
    "rating_score",
    # Schemas
    "RankedAsset",
    "Ticker",
    "Provenance",
    "IndicatorSnapshot",
    "AssetSummary",
    "SkippedAsset",
    "DiscoveryResult",
]
