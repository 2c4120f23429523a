"""Market data providers for StockSage."""

from stocksage.providers.base import (
    BaseProvider,
    PriceWindows,
    bars_from_columns,
    normalize_symbol,
    select_recent_news,
)
from stocksage.providers.finnhub import FinnhubProvider
from stocksage.providers.yahoo import YahooProvider

__all__ = [
    "BaseProvider",
    "FinnhubProvider",
    "PriceWindows",
    "YahooProvider",
    "bars_from_columns",
    "normalize_symbol",
    "select_recent_news",
]
