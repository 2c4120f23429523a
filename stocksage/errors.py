"""Exception taxonomy for StockSage.

Market data errors are raised by providers and converted by the
aggregator into a fallback attempt (price path) or an empty default
(news and sentiment). Analysis and translation errors always reach the
caller.
"""

from typing import Optional, Sequence


class StockSageError(Exception):
    """Base class for all StockSage errors."""


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

class MarketDataError(StockSageError):
    """Raised when market data cannot be fetched or decoded."""


class InvalidSymbol(MarketDataError):
    """The symbol is malformed or produced an invalid request URL."""

    def __init__(self, symbol: str):
        super().__init__(f"Invalid stock symbol: {symbol!r}")
        self.symbol = symbol


class InvalidResponse(MarketDataError):
    """The upstream response could not be decoded."""

    def __init__(self, message: str = "Invalid response from server"):
        super().__init__(message)
        self.message = message


class ProviderError(MarketDataError):
    """The upstream provider answered with an error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class _ChainedMarketDataError(MarketDataError):
    default_message = ""

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Sequence[MarketDataError] = (),
    ):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = list(errors)


class NoDataAvailable(_ChainedMarketDataError):
    """The provider returned an empty result set."""

    default_message = "No data available for this stock"


class NetworkError(_ChainedMarketDataError):
    """Transport failure, or the fetch pipeline exhausted its fallback chain."""

    default_message = "Network connection error"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class AnalysisError(StockSageError):
    """Raised when the LLM analysis request fails."""


class MalformedAnalysis(AnalysisError):
    """The model reply did not decode to the expected schema."""

    def __init__(self, message: str, content: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.content = content


class AnalysisAPIError(AnalysisError):
    """The LLM endpoint rejected the request or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

class TranslationError(StockSageError):
    """Raised when a translation request fails."""


class TranslationFailed(TranslationError):
    """The translation could not be completed."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Translation failed: {cause}")
        self.cause = cause


class TranslationHTTPError(TranslationError):
    """The translator returned a non-success status without an error body."""

    def __init__(self, status: int):
        super().__init__(f"HTTP error: {status}")
        self.status = status


class ProviderTranslationError(TranslationError):
    """The translator returned a structured error envelope."""

    def __init__(self, code: int, message: str):
        super().__init__(f"Translator error ({code}): {message}")
        self.code = code
        self.message = message


def describe_error(error: BaseException) -> str:
    """Map an exception to the single message shown to the user.

    Args:
        error: Any exception raised by a StockSage operation.

    Returns:
        Human-readable message string.
    """
    if isinstance(error, ProviderError):
        return error.message
    if isinstance(error, NoDataAvailable):
        return "No data available for this symbol"
    if isinstance(error, InvalidSymbol):
        return "Invalid stock symbol"
    if isinstance(error, NetworkError):
        return "Network connection error"
    if isinstance(error, InvalidResponse):
        return "Invalid response from server"
    if isinstance(error, MalformedAnalysis):
        return "The analysis response could not be read"
    if isinstance(error, AnalysisAPIError):
        return f"Analysis service error: {error.message}"
    if isinstance(error, TranslationError):
        return str(error)
    return f"Error fetching stock data: {error}"
