"""
CoinMarket MCP - cryptocurrency discovery over CoinMarketCap and Binance.
"""

__version__ = "1.0.0"
