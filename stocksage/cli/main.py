"""Main CLI entry point for StockSage.

This module provides the main click group and wires in the
analysis commands.
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from stocksage.cli import analyze as analyze_commands


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
        force=True,
    )
    if not verbose:
        logging.getLogger("stocksage").setLevel(logging.INFO)
        logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="stocksage")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """StockSage - AI stock analysis from market data, news and sentiment.

    Fetches recent prices, headlines and the volatility index for a
    symbol, asks an LLM for a BULLISH/BEARISH/NEUTRAL call and shows
    it in your language.

    \b
    Quick Start:
      stocksage init             # Create a config file
      stocksage analyze AAPL     # Analyze a stock
      stocksage search apple     # Find a symbol
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


cli.add_command(analyze_commands.analyze)
cli.add_command(analyze_commands.search)
cli.add_command(analyze_commands.languages)
cli.add_command(analyze_commands.init)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
