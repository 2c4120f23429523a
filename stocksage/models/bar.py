"""Bar (OHLCV) and quote snapshot data models."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class Bar(BaseModel):
    """Represents a single OHLCV sample for one time bucket."""

    timestamp: datetime = Field(..., description="Bucket start timestamp")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    close: float = Field(..., ge=0, description="Closing price")
    volume: int = Field(..., ge=0, description="Trading volume")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_range(self) -> "Bar":
        if self.low > self.high:
            raise ValueError(f"low {self.low} is above high {self.high}")
        for name in ("open", "close"):
            value = getattr(self, name)
            if not self.low <= value <= self.high:
                raise ValueError(
                    f"{name} {value} outside [{self.low}, {self.high}]"
                )
        return self


class Quote(BaseModel):
    """Real-time quote snapshot returned by the primary provider."""

    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    current: float = Field(..., ge=0, description="Current price")
    high: float = Field(..., ge=0, description="Day high")
    low: float = Field(..., ge=0, description="Day low")
    open: float = Field(..., ge=0, description="Day open")
    previous_close: float = Field(..., ge=0, description="Previous close")
    timestamp: datetime = Field(..., description="Quote timestamp")

    model_config = {"frozen": True}

    def to_bar(self) -> Bar:
        """Synthesize a single intraday bar from this quote.

        The quote carries no volume, so the bar's volume is 0.
        """
        return Bar(
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.current,
            volume=0,
        )


def sort_newest_first(bars: list[Bar]) -> list[Bar]:
    """Return bars sorted strictly newest-first.

    Bars sharing a timestamp are collapsed, keeping the first one seen.

    Args:
        bars: Bars in any order.

    Returns:
        A new list ordered by descending timestamp.
    """
    seen: set[datetime] = set()
    unique: list[Bar] = []
    for bar in bars:
        if bar.timestamp in seen:
            continue
        seen.add(bar.timestamp)
        unique.append(bar)
    return sorted(unique, key=lambda b: b.timestamp, reverse=True)
