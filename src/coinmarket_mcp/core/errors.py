"""
Centralized Error Handling for CoinMarket MCP.

This module provides the exception hierarchy used by the market data gateway
and the discovery tools, plus helpers that turn upstream HTTP failures and
raised exceptions into consistent, LLM-readable tool responses.

Key Features:
- Custom exception hierarchy for configuration, data and API failures
- HTTP status classification for the ranking and exchange providers
- Structured error responses for MCP tool consumers
"""

from __future__ import annotations
from typing import Dict, Any


# =============================================================================
# Exception Hierarchy
# =============================================================================

class CoinMarketError(Exception):
    """Base exception for all CoinMarket MCP errors."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CoinMarketError):
    """Missing or malformed process configuration."""
    pass


class ValidationError(CoinMarketError):
    """Errors related to tool input validation."""
    pass


class DataError(CoinMarketError):
    """Upstream payload could not be parsed into the expected shape."""
    pass


class APIError(CoinMarketError):
    """Errors related to external API calls."""

    def __init__(self, message: str, status_code: int | None = None,
                 details: Dict[str, Any] | None = None):
        merged = {"status_code": status_code}
        merged.update(details or {})
        super().__init__(message, merged)
        self.status_code = status_code


class RateLimitError(APIError):
    """API rate limit exceeded."""

    def __init__(self, message: str = "API rate limit exceeded. Please try again later.",
                 retry_after: int | None = None):
        super().__init__(message, 429, {"retry_after": retry_after})
        self.retry_after = retry_after


class APITimeoutError(APIError):
    """API request timed out."""

    def __init__(self, message: str = "API request timed out.", timeout_seconds: float | None = None):
        super().__init__(message, None, {"timeout_seconds": timeout_seconds})
        self.timeout_seconds = timeout_seconds


class SymbolNotFoundError(APIError):
    """Trading pair not listed on the exchange."""

    def __init__(self, symbol: str, message: str | None = None, status_code: int | None = 400):
        msg = message or f"Symbol '{symbol}' not found on the exchange."
        super().__init__(msg, status_code, {"symbol": symbol})
        self.symbol = symbol


# =============================================================================
# Classification
# =============================================================================

def classify_http_error(status_code: int, body: str = "", symbol: str | None = None,
                        retry_after: str | None = None) -> APIError:
    """
    Classify a non-success upstream HTTP response into an exception.

    Args:
        status_code: HTTP status returned by the provider
        body: Response body text (used to detect unknown-symbol errors)
        symbol: Trading pair the request was for, if any
        retry_after: Raw Retry-After header value, if any

    Returns:
        Appropriate APIError subclass instance

    Example:
        >>> isinstance(classify_http_error(429), RateLimitError)
        True
    """
    text = (body or "").lower()

    if status_code == 429 or status_code == 418:
        try:
            seconds = int(retry_after) if retry_after is not None else None
        except ValueError:
            seconds = None
        return RateLimitError(retry_after=seconds)

    if status_code in (408, 504):
        return APITimeoutError(f"Upstream timed out (HTTP {status_code}).")

    if symbol and status_code == 400 and "invalid symbol" in text:
        return SymbolNotFoundError(symbol, status_code=status_code)

    if status_code in (401, 403):
        return APIError(
            f"Upstream rejected the credentials (HTTP {status_code}). Check COINMARKET_API_KEY.",
            status_code,
        )

    return APIError(f"HTTP error! status: {status_code}", status_code)


# =============================================================================
# Error Response Builder
# =============================================================================

def build_error_response(error: Exception, tool_name: str) -> Dict[str, Any]:
    """
    Build a structured error response for an MCP tool.

    Args:
        error: The exception that occurred
        tool_name: Name of the tool that encountered the error

    Returns:
        Dictionary with:
        - tool: Tool name
        - error: User-friendly error explanation
        - error_type: Exception class name
        - details: Extra structured context from the exception
        - is_error: True
    """
    if isinstance(error, RateLimitError):
        message = (
            "Request could not be completed due to API rate limiting. "
            "Please wait a moment and try again."
        )
    elif isinstance(error, APITimeoutError):
        message = (
            "The data provider did not respond in time. "
            "Please check your connection and try again."
        )
    elif isinstance(error, SymbolNotFoundError):
        message = f"The symbol '{error.symbol}' is not listed on the exchange."
    elif isinstance(error, ValidationError):
        message = f"Invalid input parameters: {error.message}"
    elif isinstance(error, ConfigurationError):
        message = f"Server misconfigured: {error.message}"
    elif isinstance(error, DataError):
        message = f"Data error occurred: {error.message}. The payload may be malformed."
    elif isinstance(error, APIError):
        message = f"External API error: {error.message}. Please try again later."
    elif isinstance(error, CoinMarketError):
        message = error.message
    else:
        message = (
            f"An unexpected error occurred. Error type: {type(error).__name__}. "
            f"Please try again."
        )

    details = error.details if isinstance(error, CoinMarketError) else {}

    return {
        "tool": tool_name,
        "error": message,
        "error_type": type(error).__name__,
        "details": details,
        "is_error": True,
    }
