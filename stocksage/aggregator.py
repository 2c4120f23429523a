"""Multi-provider market data aggregation with fallback.

Price windows are fetched from an ordered list of providers, one tier at a
time, and the first tier that succeeds wins. Headlines and sentiment come
from the secondary provider and run concurrently with the price path.
Price failures are fatal once every tier is exhausted; headline and
sentiment failures degrade to empty defaults.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from stocksage.errors import MarketDataError, NetworkError, NoDataAvailable
from stocksage.models import Bar, NewsItem, SentimentSnapshot
from stocksage.providers.base import BaseProvider, PriceWindows, normalize_symbol
from stocksage.providers.yahoo import YahooProvider
from stocksage.sentiment import sentiment_from_vix


logger = logging.getLogger(__name__)


class MarketSnapshot(BaseModel):
    """Everything fetched for one symbol in one request."""

    symbol: str = Field(..., min_length=1, description="Normalized symbol")
    intraday: list[Bar] = Field(..., description="Intraday window, newest first")
    monthly: list[Bar] = Field(..., description="Monthly window, newest first")
    news: list[NewsItem] = Field(default_factory=list, description="Recent headlines")
    sentiment: SentimentSnapshot = Field(
        default_factory=SentimentSnapshot.unavailable, description="Market sentiment"
    )
    source: str = Field(..., description="Provider that served the price windows")
    fetched_at: datetime = Field(..., description="Fetch time")

    model_config = {"frozen": True}


class FallbackAggregator:
    """Fetches a ``MarketSnapshot`` with multi-provider resilience."""

    def __init__(
        self,
        price_providers: Sequence[BaseProvider],
        secondary: YahooProvider,
    ):
        """Initialize the aggregator.

        Args:
            price_providers: Price tiers in priority order.
            secondary: Provider used for headlines and the volatility index.

        Raises:
            ValueError: If no price provider is given.
        """
        if not price_providers:
            raise ValueError("At least one price provider is required")
        self.price_providers = list(price_providers)
        self.secondary = secondary

    async def fetch_prices(self, symbol: str, now: datetime) -> PriceWindows:
        """Try each price tier in order until one succeeds.

        Raises:
            NoDataAvailable: If every tier reported that no data exists.
            NetworkError: If every tier failed and at least one failure was
                not a no-data result.
        """
        errors: list[MarketDataError] = []
        for provider in self.price_providers:
            try:
                windows = await provider.fetch_price_windows(symbol, now)
            except MarketDataError as e:
                logger.warning("%s price fetch failed for %s: %s", provider.name, symbol, e)
                errors.append(e)
                continue
            if errors:
                logger.info("Served %s from fallback provider %s", symbol, provider.name)
            return windows

        if all(isinstance(e, NoDataAvailable) for e in errors):
            raise NoDataAvailable(errors=errors)
        raise NetworkError(errors=errors)

    async def fetch_news(self, symbol: str, now: datetime) -> list[NewsItem]:
        """Get headlines; failures yield an empty list."""
        try:
            return await self.secondary.fetch_news(symbol, now)
        except MarketDataError as e:
            logger.warning("News fetch failed for %s: %s", symbol, e)
            return []

    async def fetch_sentiment(self) -> SentimentSnapshot:
        """Get the sentiment snapshot; failures yield the unavailable snapshot."""
        try:
            vix = await self.secondary.fetch_volatility_index()
        except MarketDataError as e:
            logger.warning("Volatility index fetch failed: %s", e)
            return SentimentSnapshot.unavailable()
        return sentiment_from_vix(vix)

    async def fetch(self, symbol: str, now: Optional[datetime] = None) -> MarketSnapshot:
        """Fetch price windows, headlines and sentiment for a symbol.

        Args:
            symbol: Ticker symbol; normalized before use.
            now: Fetch time. Defaults to the current UTC time.

        Returns:
            MarketSnapshot for the symbol.

        Raises:
            InvalidSymbol: If the symbol is malformed.
            NoDataAvailable: If no price tier has data for the symbol.
            NetworkError: If every price tier failed.
        """
        symbol = normalize_symbol(symbol)
        now = now or datetime.now(timezone.utc)
        logger.info("Fetching market data for %s", symbol)

        prices, news, sentiment = await asyncio.gather(
            self.fetch_prices(symbol, now),
            self.fetch_news(symbol, now),
            self.fetch_sentiment(),
            return_exceptions=True,
        )
        if isinstance(prices, BaseException):
            raise prices
        # The auxiliary fetches swallow market data errors themselves
        for outcome in (news, sentiment):
            if isinstance(outcome, BaseException):
                raise outcome

        return MarketSnapshot(
            symbol=symbol,
            intraday=prices.intraday,
            monthly=prices.monthly,
            news=news,
            sentiment=sentiment,
            source=prices.source,
            fetched_at=now,
        )
