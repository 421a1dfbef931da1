"""
CoinMarketCap Pro API client.

Every request goes through a TTLCache keyed by endpoint plus sorted query
parameters. Only successful JSON payloads are stored; failures raise and are
fetched again on the next call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..cache import TTLCache, build_cache_key
from ..data_loader import to_optional_float
from ..errors import APIError, APITimeoutError, DataError, classify_http_error
from ..schemas import RankedAsset

logger = logging.getLogger(__name__)

LISTINGS_ENDPOINT = "/cryptocurrency/listings/latest"
QUOTES_ENDPOINT = "/cryptocurrency/quotes/latest"
MAP_ENDPOINT = "/cryptocurrency/map"
INFO_ENDPOINT = "/cryptocurrency/info"
GLOBAL_METRICS_ENDPOINT = "/global-metrics/quotes/latest"
EXCHANGE_LISTINGS_ENDPOINT = "/exchange/listings/latest"


class CoinMarketCapClient:
    """
    Authenticated client for the ranking provider.

    Args:
        api_key: Value for the X-CMC_PRO_API_KEY header
        base_url: API root, e.g. "https://pro-api.coinmarketcap.com/v1"
        cache: Shared request cache
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        cache: TTLCache,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        headers = {
            "X-CMC_PRO_API_KEY": api_key,
            "Accept": "application/json",
        }
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)
        self._timeout = timeout

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        GET an endpoint, serving from cache while the entry is fresh.

        Parameters whose value is None are dropped from both the query string
        and the cache key.

        Raises:
            APIError: Non-success status or network failure
            DataError: Response body is not JSON
        """
        query = {key: value for key, value in (params or {}).items() if value is not None}
        key = build_cache_key(endpoint, query)
        return await self.cache.get_or_fetch(key, lambda: self._request(endpoint, query))

    async def _request(self, endpoint: str, query: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"GET {url} params={query}")
        try:
            response = await self._client.get(url, params=query)
        except httpx.TimeoutException:
            raise APITimeoutError(f"CoinMarketCap request to {endpoint} timed out.", self._timeout)
        except httpx.HTTPError as e:
            raise APIError(f"Network error calling CoinMarketCap {endpoint}: {e}")

        if not response.is_success:
            raise classify_http_error(
                response.status_code,
                response.text,
                retry_after=response.headers.get("Retry-After"),
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataError(f"CoinMarketCap {endpoint} returned invalid JSON: {e}")

    async def listings_latest(
        self,
        limit: int,
        convert: str,
        sort: str,
        sort_dir: str,
    ) -> List[RankedAsset]:
        """Fetch and parse the latest ranked listing."""
        payload = await self.get(
            LISTINGS_ENDPOINT,
            {"limit": limit, "convert": convert, "sort": sort, "sort_dir": sort_dir},
        )
        return parse_listings(payload, convert)

    async def aclose(self) -> None:
        await self._client.aclose()


def parse_listings(payload: Any, convert: str) -> List[RankedAsset]:
    """
    Parse a /cryptocurrency/listings/latest payload.

    Entries keep payload order. Quote fields are read for ``convert``.

    Raises:
        DataError: If the payload has no ``data`` list
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise DataError("Listings payload has no 'data' list")

    assets: List[RankedAsset] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        quote = (item.get("quote") or {}).get(convert) or {}
        rank = item.get("cmc_rank")
        assets.append(RankedAsset(
            symbol=str(item.get("symbol") or ""),
            name=item.get("name"),
            rank=int(rank) if isinstance(rank, (int, float)) and not isinstance(rank, bool) else None,
            market_cap=to_optional_float(quote.get("market_cap")),
            percent_change_24h=to_optional_float(quote.get("percent_change_24h")),
        ))
    return assets
