"""CLI commands for StockSage.

This package provides the command-line interface for StockSage:
stock analysis, symbol search and the language list.
"""

from stocksage.cli.main import cli, main

__all__ = ["cli", "main"]
