"""LLM agents for StockSage.

- AnalysisOrchestrator: structured BULLISH/BEARISH/NEUTRAL recommendation
  from a compact market payload
"""

from stocksage.agents.base import (
    create_client,
    get_api_key,
    get_model,
)
from stocksage.agents.analyst import AnalysisOrchestrator, build_messages, parse_analysis

__all__ = [
    # Base utilities
    "create_client",
    "get_model",
    "get_api_key",
    # Agents
    "AnalysisOrchestrator",
    # Utility functions
    "build_messages",
    "parse_analysis",
]
