"""LLM analysis result data model."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Decision(str, Enum):
    """Canonical recommendation returned by the model."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"

    @property
    def label(self) -> str:
        """English display label, used as the source text for translation."""
        return self.value.title()


class AnalysisResult(BaseModel):
    """Structured recommendation decoded from the model's JSON reply.

    The wire keys are ``decision``, ``percentage``, ``reason`` and
    ``expected_next_day_price``. The price may arrive either as a string
    with two decimals or as a plain number.
    """

    decision: Decision = Field(..., description="BULLISH, BEARISH or NEUTRAL")
    confidence: int = Field(
        ..., ge=1, le=100, alias="percentage", description="Confidence (1-100)"
    )
    reason: str = Field(..., description="Explanation in the requested language")
    expected_next_day_price: float = Field(
        ..., ge=0, description="Expected next-day closing price"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("expected_next_day_price", mode="before")
    @classmethod
    def _decode_price(cls, value: object) -> float:
        if isinstance(value, bool):
            raise ValueError("price must be a string or a number")
        if isinstance(value, str):
            cleaned = value.strip().replace(",", "").lstrip("$")
            try:
                return float(cleaned)
            except ValueError:
                raise ValueError(f"price {value!r} is not numeric") from None
        if isinstance(value, (int, float)):
            return float(value)
        raise ValueError("price must be a string or a number")

    def to_wire(self) -> dict:
        """Serialize back to the wire shape, price as a 2-decimal string."""
        return {
            "decision": self.decision.value,
            "percentage": self.confidence,
            "reason": self.reason,
            "expected_next_day_price": f"{self.expected_next_day_price:.2f}",
        }
