"""Fear & greed sentiment derived from the volatility index.

The score is an affine transform of the VIX level, clamped to [0, 100]:
a calm market (low VIX) reads as greed, a volatile one as fear.
"""

from typing import Literal

from stocksage.formatting import truncate4
from stocksage.models import SentimentSnapshot


# VIX level at which the score reaches zero
NEUTRAL_PIVOT = 50.0
SCALE = 2.5

VixBand = Literal["stable", "normal", "unstable"]
FearGreedBand = Literal["extreme_fear", "fear", "neutral", "greed", "extreme_greed"]


def derive_fear_greed(vix: float) -> float:
    """Derive the fear & greed score from a VIX level.

    Args:
        vix: Volatility index level.

    Returns:
        ``clamp(0, 100, (50 - vix) * 2.5)``.
    """
    return max(0.0, min(100.0, (NEUTRAL_PIVOT - vix) * SCALE))


def sentiment_from_vix(vix: float) -> SentimentSnapshot:
    """Build a snapshot from a raw VIX level.

    Both values are truncated to 4 decimal places.
    """
    level = truncate4(vix)
    return SentimentSnapshot(
        volatility_index=level,
        fear_greed_score=truncate4(derive_fear_greed(level)),
    )


def vix_band(vix: float) -> VixBand:
    """Classify a VIX level: below 20 stable, 20-30 normal, above 30 unstable."""
    if vix < 20:
        return "stable"
    if vix <= 30:
        return "normal"
    return "unstable"


def fear_greed_band(score: float) -> FearGreedBand:
    """Classify a fear & greed score into its display band.

    0-25 extreme fear, 26-45 fear, 46-55 neutral, 56-75 greed,
    76-100 extreme greed. Fractional scores fall into the band of the
    lower boundary (25.5 is still extreme fear).
    """
    if score < 26:
        return "extreme_fear"
    if score < 46:
        return "fear"
    if score < 56:
        return "neutral"
    if score < 76:
        return "greed"
    return "extreme_greed"
