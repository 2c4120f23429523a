"""Payload compaction: normalized series to the wire JSON sent to the LLM."""

from typing import Optional

from stocksage.formatting import (
    format_daily_date,
    format_intraday_date,
    truncate2,
    truncate4,
)
from stocksage.models import (
    Bar,
    CompactPayload,
    NewsItem,
    NewsTitle,
    PayloadRow,
    PayloadSentiment,
    SentimentSnapshot,
)


class PayloadCompactor:
    """Maps a market snapshot onto the bounded ``CompactPayload``.

    OHLC values are truncated to 4 places; the current price and the
    sentiment values to 2. Dates are formatted in the timezone the bars
    already carry; no conversion is performed.
    """

    def row(self, bar: Bar, intraday: bool) -> PayloadRow:
        date = format_intraday_date(bar.timestamp) if intraday else format_daily_date(bar.timestamp)
        return PayloadRow(
            date=date,
            open=truncate4(bar.open),
            close=truncate4(bar.close),
            high=truncate4(bar.high),
            low=truncate4(bar.low),
            volume=bar.volume,
        )

    def current_price(self, intraday: list[Bar]) -> float:
        """Newest intraday close truncated to 2 places, 0.0 without data."""
        if not intraday:
            return 0.0
        return truncate2(intraday[0].close)

    def build(
        self,
        intraday: list[Bar],
        monthly: list[Bar],
        news: list[NewsItem],
        sentiment: SentimentSnapshot,
        current_price: Optional[float] = None,
    ) -> CompactPayload:
        """Build the payload.

        Args:
            intraday: Intraday window, newest first.
            monthly: Monthly window, newest first.
            news: Recent headlines, newest first.
            sentiment: Sentiment snapshot.
            current_price: Override for the current price. Truncated to
                2 places like the derived value.

        Returns:
            CompactPayload preserving the input list orders.
        """
        price = self.current_price(intraday) if current_price is None else truncate2(current_price)
        return CompactPayload(
            current_price=price,
            daily=[self.row(bar, intraday=True) for bar in intraday],
            monthly=[self.row(bar, intraday=False) for bar in monthly],
            news=[NewsTitle(title=item.title) for item in news],
            market_sentiment=PayloadSentiment(
                vix=truncate2(sentiment.volatility_index),
                fear_and_greed_index=truncate2(sentiment.fear_greed_score),
            ),
        )
