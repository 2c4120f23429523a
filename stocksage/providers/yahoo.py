"""Yahoo Finance provider: chart, news search and symbol search.

Serves the secondary price tier and is the only source of headlines,
autocomplete suggestions and the volatility index.
"""

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote as url_quote

import httpx
from pydantic import ValidationError

from stocksage.errors import InvalidResponse, NoDataAvailable, ProviderError
from stocksage.formatting import one_month_before
from stocksage.models import Bar, NewsItem, Quote, SymbolMatch, sort_newest_first
from stocksage.providers.base import (
    DEFAULT_TIMEOUT,
    BaseProvider,
    PriceWindows,
    bars_from_columns,
    select_recent_news,
)


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://query2.finance.yahoo.com"
CHART_PATH = "/v8/finance/chart/{symbol}"
SEARCH_PATH = "/v1/finance/search"

VOLATILITY_INDEX_SYMBOL = "^VIX"

# Chart intervals accepted by the v8 chart endpoint
INTERVALS = ("1m", "2m", "5m", "15m", "30m", "60m", "90m", "1h", "1d", "5d", "1wk", "1mo", "3mo")


class YahooProvider(BaseProvider):
    """Yahoo Finance provider backed by the public chart and search APIs."""

    name = "yahoo"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "Mozilla/5.0",
        intraday_days: int = 3,
        intraday_interval: str = "15m",
        intraday_limit: int = 30,
        news_max_age: timedelta = timedelta(hours=48),
        news_limit: int = 8,
    ):
        """Initialize the Yahoo provider.

        Args:
            client: Shared async HTTP client.
            base_url: API root URL.
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header; the API rejects empty agents.
            intraday_days: Span of the intraday chart range in days.
            intraday_interval: Bar size of the intraday range.
            intraday_limit: Number of newest intraday bars kept.
            news_max_age: Recency window for headlines.
            news_limit: Maximum number of headlines.
        """
        super().__init__(
            base_url,
            client=client,
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
        )
        self.intraday_days = intraday_days
        self.intraday_interval = intraday_interval
        self.intraday_limit = intraday_limit
        self.news_max_age = news_max_age
        self.news_limit = news_limit

    def _error_message(self, response: httpx.Response) -> Optional[str]:
        # {"chart": {"error": {...}}} or {"finance": {"error": {...}}}
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        for section in ("chart", "finance"):
            section_body = body.get(section)
            error = section_body.get("error") if isinstance(section_body, dict) else None
            if isinstance(error, dict) and error.get("description"):
                return str(error["description"])
        return None

    # ------------------------------------------------------------------
    # Chart endpoint
    # ------------------------------------------------------------------

    async def _fetch_chart(self, symbol: str, params: dict[str, Any]) -> dict[str, Any]:
        """Fetch one chart result object for a symbol."""
        path = CHART_PATH.format(symbol=url_quote(symbol, safe=""))
        data = await self._get_json(path, symbol, params)

        chart = data.get("chart") if isinstance(data, dict) else None
        if not isinstance(chart, dict):
            raise InvalidResponse("Unexpected Yahoo chart response")

        results = chart.get("result") or []
        error = chart.get("error")
        if not results:
            if isinstance(error, dict) and error.get("description"):
                raise ProviderError(str(error["description"]))
            raise NoDataAvailable(f"No chart data for {symbol}")

        result = results[0]
        if not isinstance(result, dict):
            raise InvalidResponse("Unexpected Yahoo chart result")
        return result

    @staticmethod
    def _quote_columns(result: dict[str, Any]) -> dict[str, Any]:
        quotes = (result.get("indicators") or {}).get("quote") or []
        if not quotes or not isinstance(quotes[0], dict):
            raise NoDataAvailable("Chart result has no quote data")
        return quotes[0]

    def _bars_from_result(self, symbol: str, result: dict[str, Any]) -> list[Bar]:
        columns = self._quote_columns(result)
        bars = bars_from_columns(
            result.get("timestamp") or [],
            columns.get("open"),
            columns.get("high"),
            columns.get("low"),
            columns.get("close"),
            columns.get("volume"),
        )
        if not bars:
            raise NoDataAvailable(f"No complete bars for {symbol}")
        return sort_newest_first(bars)

    async def fetch_candles(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        granularity: str = "1d",
    ) -> list[Bar]:
        if granularity not in INTERVALS:
            raise ValueError(f"Invalid interval: {granularity}. Must be one of {list(INTERVALS)}")

        params = {
            "period1": int(start.timestamp()),
            "period2": int(end.timestamp()),
            "interval": granularity,
        }
        result = await self._fetch_chart(symbol, params)
        return self._bars_from_result(symbol, result)

    async def fetch_intraday(self, symbol: str, now: datetime) -> list[Bar]:
        """Get the newest intraday bars over the last few days.

        Returns:
            At most ``intraday_limit`` bars, newest first.
        """
        start = now - timedelta(days=self.intraday_days)
        bars = await self.fetch_candles(symbol, start, now, self.intraday_interval)
        return bars[: self.intraday_limit]

    async def fetch_monthly(self, symbol: str, now: datetime) -> list[Bar]:
        """Get daily bars for the last calendar month, newest first."""
        return await self.fetch_candles(symbol, one_month_before(now), now, "1d")

    async def fetch_price_windows(self, symbol: str, now: datetime) -> PriceWindows:
        intraday, monthly = await asyncio.gather(
            self.fetch_intraday(symbol, now),
            self.fetch_monthly(symbol, now),
            return_exceptions=True,
        )
        for outcome in (intraday, monthly):
            if isinstance(outcome, BaseException):
                raise outcome
        return PriceWindows(intraday=intraday, monthly=monthly, source=self.name)

    async def fetch_quote(self, symbol: str) -> Quote:
        """Get a quote snapshot from the one-day chart.

        The current price follows the market session: the post-market
        price after the close, the pre-market price before the open, and
        the regular market price otherwise.
        """
        result = await self._fetch_chart(symbol, {"range": "1d", "interval": "1d"})
        meta = result.get("meta") or {}
        latest = self._bars_from_result(symbol, result)[0]

        current, timestamp = _session_price(meta, latest)
        previous_close = meta.get("previousClose") or meta.get("chartPreviousClose") or latest.close
        try:
            return Quote(
                symbol=str(meta.get("symbol") or symbol),
                current=current,
                high=max(latest.high, current),
                low=min(latest.low, current),
                open=latest.open,
                previous_close=float(previous_close),
                timestamp=timestamp,
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidResponse(f"Malformed Yahoo quote for {symbol}") from e

    async def fetch_volatility_index(self) -> float:
        """Get the latest volatility index level.

        Uses the last close of the one-day range, or the last open when
        the close is missing.

        Raises:
            NoDataAvailable: If neither value is present.
            InvalidResponse: If the value is not a finite, non-negative number.
        """
        symbol = VOLATILITY_INDEX_SYMBOL
        result = await self._fetch_chart(symbol, {"interval": "1d", "range": "1d"})
        columns = self._quote_columns(result)

        closes = columns.get("close") or []
        opens = columns.get("open") or []
        value = closes[-1] if closes else None
        if value is None:
            value = opens[-1] if opens else None
        if value is None:
            raise NoDataAvailable("No volatility index value available")
        try:
            level = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidResponse(f"Malformed volatility index value: {value!r}") from e
        if not math.isfinite(level) or level < 0:
            raise InvalidResponse(f"Malformed volatility index value: {value!r}")
        return level

    # ------------------------------------------------------------------
    # Search endpoint
    # ------------------------------------------------------------------

    async def fetch_news(self, symbol: str, now: Optional[datetime] = None) -> list[NewsItem]:
        now = now or datetime.now(timezone.utc)
        params = {
            "q": symbol,
            "quotesCount": 0,
            "newsCount": 20,
            "enableFuzzyQuery": "false",
            "enableEnhancedTrivialQuery": "false",
        }
        data = await self._get_json(SEARCH_PATH, symbol, params)
        if not isinstance(data, dict):
            raise InvalidResponse("Unexpected Yahoo search response")

        entries = []
        for item in data.get("news") or []:
            entry = _news_entry(item)
            if entry is not None:
                entries.append(entry)

        news = select_recent_news(entries, now, self.news_max_age, self.news_limit)
        logger.debug("Filtered %d recent news items for %s", len(news), symbol)
        return news

    async def search_symbols(self, query: str, limit: int = 6) -> list[SymbolMatch]:
        """Get autocomplete suggestions for a partial symbol or name.

        Args:
            query: Partial ticker or company name.
            limit: Maximum number of suggestions.

        Returns:
            Suggestions in provider relevance order.
        """
        params = {"q": query, "quotesCount": limit, "newsCount": 0}
        data = await self._get_json(SEARCH_PATH, query, params)
        if not isinstance(data, dict):
            raise InvalidResponse("Unexpected Yahoo search response")

        matches = []
        for item in data.get("quotes") or []:
            if not isinstance(item, dict) or not item.get("symbol"):
                continue
            symbol = str(item["symbol"])
            name = item.get("shortname") or item.get("longname") or symbol
            matches.append(SymbolMatch(symbol=symbol, name=str(name)))
        return matches[:limit]


def _session_price(meta: dict[str, Any], latest: Bar) -> tuple[float, datetime]:
    state = meta.get("marketState")
    if state == "POST" and meta.get("postMarketPrice"):
        return float(meta["postMarketPrice"]), _epoch_or(meta.get("postMarketTime"), latest.timestamp)
    if state == "PRE" and meta.get("preMarketPrice"):
        return float(meta["preMarketPrice"]), _epoch_or(meta.get("preMarketTime"), latest.timestamp)
    price = meta.get("regularMarketPrice") or latest.close
    return float(price), latest.timestamp


def _epoch_or(value: Any, default: datetime) -> datetime:
    if isinstance(value, (int, float)) and value > 0:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    return default


def _news_entry(item: Any) -> Optional[tuple[str, str, float]]:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    link = item.get("link")
    published = item.get("providerPublishTime")
    if not title or not link or not isinstance(published, (int, float)):
        return None
    return (str(title), str(link), float(published))
