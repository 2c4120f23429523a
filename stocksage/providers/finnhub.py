"""Finnhub provider: primary source for quotes and daily candles."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from stocksage.errors import InvalidResponse, NoDataAvailable
from stocksage.formatting import one_month_before
from stocksage.models import Bar, NewsItem, Quote, sort_newest_first
from stocksage.providers.base import (
    DEFAULT_TIMEOUT,
    BaseProvider,
    PriceWindows,
    bars_from_columns,
    select_recent_news,
)


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://finnhub.io/api/v1"

# Candle resolutions accepted by /stock/candle
RESOLUTIONS = ("1", "5", "15", "30", "60", "D", "W", "M")


class FinnhubProvider(BaseProvider):
    """Finnhub REST provider.

    Serves the primary price tier: the live quote becomes a one-bar
    intraday window and daily candles over the last month become the
    monthly window.
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        news_max_age: timedelta = timedelta(hours=48),
        news_limit: int = 8,
    ):
        """Initialize the Finnhub provider.

        Args:
            api_key: Finnhub API token.
            client: Shared async HTTP client.
            base_url: API root URL.
            timeout: Per-request timeout in seconds.
            news_max_age: Recency window for headlines.
            news_limit: Maximum number of headlines.
        """
        super().__init__(base_url, client=client, timeout=timeout)
        self.api_key = api_key
        self.news_max_age = news_max_age
        self.news_limit = news_limit

    def _error_message(self, response: httpx.Response) -> Optional[str]:
        # Finnhub errors look like {"error": "Invalid API key"}
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return None

    async def fetch_quote(self, symbol: str) -> Quote:
        data = await self._get_json("/quote", symbol, {"symbol": symbol, "token": self.api_key})
        if not isinstance(data, dict):
            raise InvalidResponse("Unexpected Finnhub quote response")

        # Unknown symbols come back as all-zero quotes
        if not data.get("c") or not data.get("t"):
            raise NoDataAvailable(f"No quote available for {symbol}")

        try:
            return Quote(
                symbol=symbol,
                current=float(data["c"]),
                high=float(data.get("h") or data["c"]),
                low=float(data.get("l") or data["c"]),
                open=float(data.get("o") or data["c"]),
                previous_close=float(data.get("pc") or 0.0),
                timestamp=datetime.fromtimestamp(int(data["t"]), tz=timezone.utc),
            )
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidResponse(f"Malformed Finnhub quote for {symbol}") from e

    async def fetch_candles(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        granularity: str = "D",
    ) -> list[Bar]:
        if granularity not in RESOLUTIONS:
            raise ValueError(f"Invalid resolution: {granularity}. Must be one of {list(RESOLUTIONS)}")

        params = {
            "symbol": symbol,
            "resolution": granularity,
            "from": int(start.timestamp()),
            "to": int(end.timestamp()),
            "token": self.api_key,
        }
        data = await self._get_json("/stock/candle", symbol, params)
        if not isinstance(data, dict):
            raise InvalidResponse("Unexpected Finnhub candle response")
        if data.get("s") != "ok":
            raise NoDataAvailable(f"No candles available for {symbol}")

        bars = bars_from_columns(
            data.get("t") or [],
            data.get("o"),
            data.get("h"),
            data.get("l"),
            data.get("c"),
            data.get("v"),
        )
        if not bars:
            raise NoDataAvailable(f"No candles available for {symbol}")
        return sort_newest_first(bars)

    async def fetch_news(self, symbol: str, now: Optional[datetime] = None) -> list[NewsItem]:
        now = now or datetime.now(timezone.utc)
        params = {
            "symbol": symbol,
            "from": (now - self.news_max_age).date().isoformat(),
            "to": now.date().isoformat(),
            "token": self.api_key,
        }
        data = await self._get_json("/company-news", symbol, params)
        if not isinstance(data, list):
            raise InvalidResponse("Unexpected Finnhub news response")

        entries = []
        for item in data:
            entry = _news_entry(item)
            if entry is not None:
                entries.append(entry)
        return select_recent_news(entries, now, self.news_max_age, self.news_limit)

    async def fetch_price_windows(self, symbol: str, now: datetime) -> PriceWindows:
        quote, monthly = await asyncio.gather(
            self.fetch_quote(symbol),
            self.fetch_candles(symbol, one_month_before(now), now, "D"),
            return_exceptions=True,
        )
        # Both calls have settled; surface the first failure
        for outcome in (quote, monthly):
            if isinstance(outcome, BaseException):
                raise outcome

        try:
            intraday = [quote.to_bar()]
        except ValidationError as e:
            raise InvalidResponse(f"Finnhub quote for {symbol} is inconsistent") from e
        logger.debug("Finnhub served %d daily bars for %s", len(monthly), symbol)
        return PriceWindows(intraday=intraday, monthly=monthly, source=self.name)


def _news_entry(item: Any) -> Optional[tuple[str, str, float]]:
    if not isinstance(item, dict):
        return None
    title = item.get("headline")
    link = item.get("url")
    published = item.get("datetime")
    if not title or not link or not isinstance(published, (int, float)):
        return None
    return (str(title), str(link), float(published))

