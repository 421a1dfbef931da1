"""
Tests for the command-line discovery runner.
"""

import pytest

from coinmarket_mcp import cli
from coinmarket_mcp.core.errors import ConfigurationError


class TestBuildParser:
    """Tests for positional argument parsing."""

    def test_defaults(self):
        """Test that no arguments gives the documented defaults."""
        args = cli.build_parser().parse_args([])

        assert args.top_n == 20
        assert args.result_count == 5
        assert args.interval == "1h"
        assert args.limit == 250
        assert args.sort == "market_cap"
        assert args.sort_dir == "desc"
        assert args.rank_max == 50
        assert args.atr_pct_max == 1.0

    def test_positional_order(self):
        """Test every positional argument."""
        args = cli.build_parser().parse_args(
            ["50", "10", "4h", "300", "volume_24h", "asc", "100", "2.5"]
        )

        assert (args.top_n, args.result_count, args.interval, args.limit) == (50, 10, "4h", 300)
        assert (args.sort, args.sort_dir) == ("volume_24h", "asc")
        assert (args.rank_max, args.atr_pct_max) == (100, 2.5)


class TestRun:
    """Tests for the pick pipeline run by the CLI."""

    @pytest.mark.asyncio
    async def test_run(self, gateway, market):
        """Test that the CLI runs discover-pick with the default strategy."""
        args = cli.build_parser().parse_args(["3", "5"])
        result = await cli.run(args, gateway)

        assert [r["symbol"] for r in result] == ["BTCUSDT", "ETHUSDT"]

    @pytest.mark.asyncio
    async def test_filters_apply(self, gateway, market):
        """Test that rankMax from the command line filters results."""
        args = cli.build_parser().parse_args(["3", "5", "1h", "250", "market_cap", "desc", "2"])
        result = await cli.run(args, gateway)

        assert [r["symbol"] for r in result] == ["BTCUSDT"]

    @pytest.mark.asyncio
    async def test_zero_result_count(self, gateway, market):
        """Test that a result count of 0 on the command line prints no entries."""
        args = cli.build_parser().parse_args(["3", "0"])
        assert await cli.run(args, gateway) == []


class TestMain:
    """Tests for the CLI entry point."""

    def test_missing_key_exits_non_zero(self, monkeypatch):
        """Test that a missing API key exits with status 1."""
        def fail():
            raise ConfigurationError("Missing COINMARKET_API_KEY environment variable")

        monkeypatch.setattr(cli, "load_settings", fail)

        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
