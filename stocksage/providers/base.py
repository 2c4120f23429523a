"""Base provider interface for StockSage.

Every provider issues plain HTTP GET requests through a shared
``httpx.AsyncClient`` and maps failures onto the market data error
taxonomy. Providers never retry; fallback is the aggregator's job.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, NamedTuple, Optional, Sequence

import httpx
from pydantic import ValidationError

from stocksage.errors import (
    InvalidResponse,
    InvalidSymbol,
    NetworkError,
    ProviderError,
)
from stocksage.formatting import format_age
from stocksage.models import Bar, NewsItem, Quote


logger = logging.getLogger(__name__)

# Letters, digits and the punctuation used by index (^VIX), currency (EUR=X),
# share-class (BRK-B) and exchange-suffixed (SAP.DE) tickers.
SYMBOL_PATTERN = re.compile(r"^[A-Z0-9^.=\-]{1,15}$")

DEFAULT_TIMEOUT = 30.0


class PriceWindows(NamedTuple):
    """Intraday and monthly windows served by one provider tier."""

    intraday: list[Bar]
    monthly: list[Bar]
    source: str


def normalize_symbol(symbol: str) -> str:
    """Strip and upper-case a ticker symbol, rejecting malformed input.

    Args:
        symbol: User supplied symbol.

    Returns:
        Normalized symbol.

    Raises:
        InvalidSymbol: If the symbol is empty or has unsupported characters.
    """
    cleaned = (symbol or "").strip().upper()
    if not SYMBOL_PATTERN.match(cleaned):
        raise InvalidSymbol(symbol)
    return cleaned


def _value_at(values: Optional[Sequence[Any]], index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


def bars_from_columns(
    timestamps: Sequence[Any],
    opens: Optional[Sequence[Any]],
    highs: Optional[Sequence[Any]],
    lows: Optional[Sequence[Any]],
    closes: Optional[Sequence[Any]],
    volumes: Optional[Sequence[Any]],
) -> list[Bar]:
    """Build bars from column-oriented provider arrays.

    A bar is emitted for an index only when open, high, low, close and
    volume are all present there. Rows that violate the OHLC range
    invariant are skipped as well.

    Args:
        timestamps: Epoch seconds per row.
        opens: Opening prices.
        highs: High prices.
        lows: Low prices.
        closes: Closing prices.
        volumes: Volumes.

    Returns:
        Bars in provider order.
    """
    bars: list[Bar] = []
    for i, ts in enumerate(timestamps):
        row = [_value_at(col, i) for col in (opens, highs, lows, closes, volumes)]
        if ts is None or any(v is None for v in row):
            continue
        open_, high, low, close, volume = row
        try:
            bars.append(Bar(
                timestamp=datetime.fromtimestamp(int(ts), tz=timezone.utc),
                open=float(open_),
                high=float(high),
                low=float(low),
                close=float(close),
                volume=int(volume),
            ))
        except (ValidationError, TypeError, ValueError, OverflowError) as e:
            logger.debug("Skipping row %d: %s", i, e)
    return bars


def select_recent_news(
    entries: Iterable[tuple[str, str, float]],
    now: datetime,
    max_age: timedelta = timedelta(hours=48),
    limit: int = 8,
) -> list[NewsItem]:
    """Filter, order and cap raw headlines.

    Args:
        entries: ``(title, link, published_epoch_seconds)`` tuples.
        now: Fetch time; used for the recency cutoff and the age labels.
        max_age: Items published at or before ``now - max_age`` are dropped.
        limit: Maximum number of items returned.

    Returns:
        Items newer than the cutoff, newest first, at most ``limit``.
    """
    cutoff = now - max_age
    recent = []
    for title, link, published in entries:
        try:
            published_at = datetime.fromtimestamp(published, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.debug("Skipping headline %r: %s", title, e)
            continue
        if published_at > cutoff:
            recent.append((title, link, published_at))
    recent.sort(key=lambda entry: entry[2], reverse=True)

    items = []
    for title, link, published_at in recent:
        if len(items) >= limit:
            break
        try:
            items.append(NewsItem(
                title=title,
                published_at=published_at,
                link=link,
                age_label=format_age(published_at, now),
            ))
        except ValidationError as e:
            logger.debug("Skipping headline %r: %s", title, e)
    return items


class BaseProvider(ABC):
    """Abstract base class for market data providers.

    Subclasses implement the provider-specific endpoints and JSON schemas;
    this class owns the HTTP client and error mapping.
    """

    name = "provider"

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
    ):
        """Initialize the provider.

        Args:
            base_url: Root URL of the upstream API.
            client: Shared async HTTP client. One is created if omitted.
            timeout: Per-request timeout in seconds.
            headers: Extra headers sent with every request.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def _error_message(self, response: httpx.Response) -> Optional[str]:
        """Extract a message from a provider error body, if there is one."""
        return None

    async def _get_json(
        self,
        path: str,
        symbol: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Issue one GET request and decode its JSON body.

        Args:
            path: Path below ``base_url``.
            symbol: Symbol the request is for, used in error reports.
            params: Query parameters.

        Returns:
            Decoded JSON body.

        Raises:
            InvalidSymbol: If the request URL is malformed.
            NetworkError: On transport failures and timeouts.
            ProviderError: On a non-200 status.
            InvalidResponse: If the body is not JSON.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s GET %s params=%s", self.name, url, _redact(params))
        try:
            response = await self._client.get(
                url, params=params, headers=self.headers, timeout=self.timeout
            )
        except httpx.InvalidURL:
            raise InvalidSymbol(symbol) from None
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.name} request timed out") from e
        except httpx.RequestError as e:
            raise NetworkError(f"{self.name} request failed: {e}") from e

        if response.status_code != 200:
            message = (
                self._error_message(response)
                or f"Server returned status code: {response.status_code}"
            )
            raise ProviderError(message, status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponse(f"{self.name} returned a non-JSON body") from e

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Quote:
        """Get the latest quote snapshot for a symbol.

        Args:
            symbol: Normalized ticker symbol.

        Returns:
            Quote snapshot.

        Raises:
            MarketDataError: On any fetch or decode failure.
        """
        pass

    @abstractmethod
    async def fetch_candles(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        granularity: str,
    ) -> list[Bar]:
        """Get OHLCV bars for a time range.

        Args:
            symbol: Normalized ticker symbol.
            start: Range start.
            end: Range end.
            granularity: Provider-specific bar size.

        Returns:
            Bars sorted newest first.

        Raises:
            MarketDataError: On any fetch or decode failure.
        """
        pass

    @abstractmethod
    async def fetch_news(self, symbol: str, now: Optional[datetime] = None) -> list[NewsItem]:
        """Get recent headlines for a symbol.

        Args:
            symbol: Normalized ticker symbol.
            now: Fetch time. Defaults to the current UTC time.

        Returns:
            Recent items, newest first.
        """
        pass

    @abstractmethod
    async def fetch_price_windows(self, symbol: str, now: datetime) -> PriceWindows:
        """Get the intraday and monthly windows this provider can serve.

        Args:
            symbol: Normalized ticker symbol.
            now: Fetch time.

        Returns:
            PriceWindows for the symbol.

        Raises:
            MarketDataError: If either window cannot be produced.
        """
        pass


def _redact(params: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not params or "token" not in params:
        return params
    return {**params, "token": "***"}
