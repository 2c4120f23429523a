"""News and symbol search data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class NewsItem(BaseModel):
    """Represents a recent headline for a symbol."""

    title: str = Field(..., description="Headline text")
    published_at: datetime = Field(..., description="Provider publish time")
    link: str = Field(..., description="Article URL")
    age_label: str = Field(
        ..., description="Coarse age such as '3h ago', computed at fetch time"
    )

    model_config = {"frozen": True}


class SymbolMatch(BaseModel):
    """Represents one autocomplete suggestion."""

    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    name: str = Field(..., description="Display name of the instrument")

    model_config = {"frozen": True}
