"""Data models for StockSage."""

from stocksage.models.bar import Bar, Quote, sort_newest_first
from stocksage.models.news import NewsItem, SymbolMatch
from stocksage.models.sentiment import SentimentSnapshot
from stocksage.models.analysis import AnalysisResult, Decision
from stocksage.models.payload import (
    PAYLOAD_COLUMNS,
    CompactPayload,
    NewsTitle,
    PayloadRow,
    PayloadSentiment,
)

__all__ = [
    "AnalysisResult",
    "Bar",
    "CompactPayload",
    "Decision",
    "NewsItem",
    "NewsTitle",
    "PAYLOAD_COLUMNS",
    "PayloadRow",
    "PayloadSentiment",
    "Quote",
    "SentimentSnapshot",
    "SymbolMatch",
    "sort_newest_first",
]
