"""
Command-line discovery runner.

Runs the pick pipeline once with the default strategy and prints the ranked
summaries as JSON.

Usage:
    coinmarket-discover [topN] [resultCount] [interval] [limit] [sort] [sort_dir] [rankMax] [atrPctMax]

Example:
    coinmarket-discover 50 10 4h 250 market_cap desc 100 2.5
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .config import load_settings
from .core.errors import ConfigurationError
from .core.sanitize import (
    DEFAULT_ATR_PCT_MAX,
    DEFAULT_CANDLE_LIMIT,
    DEFAULT_INTERVAL,
    DEFAULT_RANK_MAX,
    DEFAULT_RESULT_COUNT,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    DEFAULT_TOP_N,
)
from .core.services import tools
from .core.services.gateway import MarketDataGateway

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinmarket-discover",
        description="Discover top cryptocurrencies by trend and ATR%",
    )
    parser.add_argument("top_n", nargs="?", type=int, default=DEFAULT_TOP_N)
    parser.add_argument("result_count", nargs="?", type=int, default=DEFAULT_RESULT_COUNT)
    parser.add_argument("interval", nargs="?", default=DEFAULT_INTERVAL)
    parser.add_argument("limit", nargs="?", type=int, default=DEFAULT_CANDLE_LIMIT)
    parser.add_argument("sort", nargs="?", default=DEFAULT_SORT_FIELD)
    parser.add_argument("sort_dir", nargs="?", default=DEFAULT_SORT_DIRECTION)
    parser.add_argument("rank_max", nargs="?", type=int, default=DEFAULT_RANK_MAX)
    parser.add_argument("atr_pct_max", nargs="?", type=float, default=DEFAULT_ATR_PCT_MAX)
    return parser


async def run(args: argparse.Namespace, gateway: MarketDataGateway, max_concurrency: int = 1):
    """Run discover-pick with parsed CLI arguments."""
    return await tools.discover_pick(
        gateway,
        top_n=args.top_n,
        result_count=args.result_count,
        interval=args.interval,
        limit=args.limit,
        sort=args.sort,
        sort_dir=args.sort_dir,
        rank_max=args.rank_max,
        atr_pct_max=args.atr_pct_max,
        max_concurrency=max_concurrency,
    )


async def _main(args: argparse.Namespace) -> int:
    settings = load_settings()
    async with MarketDataGateway.from_settings(settings) as gateway:
        result = await run(args, gateway, settings.max_concurrency)
    print(json.dumps(result, indent=2))
    return 1 if isinstance(result, dict) and result.get("is_error") else 0


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = build_parser().parse_args(argv)
    try:
        code = asyncio.run(_main(args))
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
