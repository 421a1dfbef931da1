"""
Process configuration for CoinMarket MCP.

Settings are read from the environment once at startup. ``.env.local`` and
``.env`` in the working directory are loaded first, without overriding
variables that are already set.

Environment Variables:
    COINMARKET_API_KEY: Ranking provider API key (required)
    COINMARKET_CACHE_TTL: Cache TTL in milliseconds (default: 15000)
    COINMARKET_BASE_URL: Ranking provider base URL
    BINANCE_BASE_URL: Exchange REST base URL
    COINMARKET_HTTP_TIMEOUT: HTTP timeout in seconds (default: 10)
    COINMARKET_MAX_CONCURRENCY: Per-asset fetch fan-out (default: 1)
    HOST: Server host for HTTP mode (default: 0.0.0.0)
    PORT: Server port for HTTP mode (default: 8000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .core.errors import ConfigurationError

DEFAULT_CMC_BASE_URL = "https://pro-api.coinmarketcap.com/v1"
DEFAULT_BINANCE_BASE_URL = "https://api.binance.com/api/v3"
DEFAULT_CACHE_TTL_MS = 15000
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_MAX_CONCURRENCY = 1
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


@dataclass(frozen=True)
class Settings:
    api_key: str
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    cmc_base_url: str = DEFAULT_CMC_BASE_URL
    binance_base_url: str = DEFAULT_BINANCE_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0


def load_env_files() -> None:
    """Load .env.local then .env into os.environ (existing values win)."""
    load_dotenv(".env.local")
    load_dotenv()


def _int_env(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None, load_files: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)
        load_files: Load .env.local/.env before reading os.environ

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If COINMARKET_API_KEY is missing or a numeric
            variable is malformed
    """
    if env is None:
        if load_files:
            load_env_files()
        env = os.environ

    api_key = (env.get("COINMARKET_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError("Missing COINMARKET_API_KEY environment variable")

    return Settings(
        api_key=api_key,
        cache_ttl_ms=_int_env(env, "COINMARKET_CACHE_TTL", DEFAULT_CACHE_TTL_MS),
        cmc_base_url=(env.get("COINMARKET_BASE_URL") or DEFAULT_CMC_BASE_URL).rstrip("/"),
        binance_base_url=(env.get("BINANCE_BASE_URL") or DEFAULT_BINANCE_BASE_URL).rstrip("/"),
        http_timeout=_float_env(env, "COINMARKET_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        max_concurrency=_int_env(env, "COINMARKET_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY, minimum=1),
        host=env.get("HOST") or DEFAULT_HOST,
        port=_int_env(env, "PORT", DEFAULT_PORT, minimum=1),
    )
