"""Market sentiment data model."""

from pydantic import BaseModel, Field


class SentimentSnapshot(BaseModel):
    """Volatility index level and its derived fear & greed score."""

    volatility_index: float = Field(..., ge=0, description="VIX level")
    fear_greed_score: float = Field(
        ..., ge=0, le=100, description="Fear & greed score (0 = fear, 100 = greed)"
    )

    model_config = {"frozen": True}

    @classmethod
    def unavailable(cls) -> "SentimentSnapshot":
        """Snapshot reported when the volatility index could not be fetched."""
        return cls(volatility_index=0.0, fear_greed_score=0.0)

    @property
    def is_available(self) -> bool:
        return self.volatility_index > 0
