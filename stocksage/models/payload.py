"""Compact payload sent to the LLM."""

import json

from pydantic import BaseModel, Field


# Column order of every value row. Row serialization follows this list.
PAYLOAD_COLUMNS = ("date", "open", "close", "high", "low", "volume")


class PayloadRow(BaseModel):
    """One typed value row: a date string followed by numeric columns."""

    date: str
    open: float
    close: float
    high: float
    low: float
    volume: int

    model_config = {"frozen": True}

    def to_list(self) -> list[str | float | int]:
        """Encode the row as a JSON array in column order."""
        return [getattr(self, column) for column in PAYLOAD_COLUMNS]


class NewsTitle(BaseModel):
    title: str

    model_config = {"frozen": True}


class PayloadSentiment(BaseModel):
    vix: float
    fear_and_greed_index: float = Field(..., alias="fearAndGreedIndex")

    model_config = {"frozen": True, "populate_by_name": True}


class CompactPayload(BaseModel):
    """Minimized market data structure sent as the analysis prompt."""

    columns: list[str] = Field(default_factory=lambda: list(PAYLOAD_COLUMNS))
    current_price: float = Field(..., alias="currentPrice")
    daily: list[PayloadRow] = Field(default_factory=list)
    monthly: list[PayloadRow] = Field(default_factory=list)
    news: list[NewsTitle] = Field(default_factory=list)
    market_sentiment: PayloadSentiment = Field(..., alias="marketSentiment")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_wire(self) -> dict:
        """Build the wire object with a fixed key order."""
        return {
            "columns": list(self.columns),
            "currentPrice": self.current_price,
            "data": {
                "daily": [row.to_list() for row in self.daily],
                "monthly": [row.to_list() for row in self.monthly],
            },
            "news": [{"title": item.title} for item in self.news],
            "marketSentiment": {
                "vix": self.market_sentiment.vix,
                "fearAndGreedIndex": self.market_sentiment.fear_and_greed_index,
            },
        }

    def to_json(self, indent: int | None = None) -> str:
        """Serialize to JSON. Compact separators unless ``indent`` is given."""
        if indent is None:
            return json.dumps(self.to_wire(), ensure_ascii=False, separators=(",", ":"))
        return json.dumps(self.to_wire(), ensure_ascii=False, indent=indent)
