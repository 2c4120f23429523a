"""Analysis commands for StockSage CLI.

Runs the analysis pipeline for a symbol and looks up symbols and
supported languages.
"""

import asyncio
import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stocksage.config import (
    get_config_path,
    load_settings,
    validate_settings,
    write_template_config,
)
from stocksage.errors import StockSageError, describe_error
from stocksage.languages import LANGUAGE_CODES, LANGUAGES, is_rtl, sorted_by_popularity
from stocksage.models import Decision
from stocksage.pipeline import AnalysisReport, StockAnalyzer
from stocksage.providers import YahooProvider
from stocksage.search import SymbolSearch
from stocksage.sentiment import fear_greed_band, vix_band

console = Console()


DECISION_COLORS = {
    Decision.BULLISH: "green",
    Decision.BEARISH: "red",
    Decision.NEUTRAL: "yellow",
}

BAND_COLORS = {
    "stable": "green",
    "normal": "yellow",
    "unstable": "red",
    "extreme_fear": "red",
    "fear": "red",
    "neutral": "yellow",
    "greed": "green",
    "extreme_greed": "green",
}


def _error_panel(message: str, title: str = "Error") -> Panel:
    return Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    )


def _build_analyzer(settings) -> StockAnalyzer:
    return StockAnalyzer.from_settings(settings)


def _build_search_provider(settings) -> YahooProvider:
    return YahooProvider(
        base_url=settings.yahoo.base_url,
        timeout=settings.market.http_timeout,
        user_agent=settings.yahoo.user_agent,
    )


async def _run_analysis(settings, symbol: str, language: str, translate: bool) -> tuple[AnalysisReport, str]:
    async with _build_analyzer(settings) as analyzer:
        report = await analyzer.analyze(symbol, language=language, translate_output=translate)
        return report, analyzer.usage_summary()


async def _run_search(settings, query: str, limit: int):
    provider = _build_search_provider(settings)
    try:
        return await SymbolSearch(provider, limit=limit).search(query)
    finally:
        await provider.aclose()


def _render_report(report: AnalysisReport) -> None:
    result = report.result
    color = DECISION_COLORS[result.decision]
    snapshot = report.snapshot
    justify = "right" if is_rtl(report.language) else "left"

    lines = [
        f"Decision: [bold {color}]{report.decision_label}[/bold {color}] "
        f"[dim]({result.decision.value})[/dim]",
        f"Confidence: {result.confidence}%",
        f"Current Price: ${report.payload.current_price:.2f}",
        f"Expected Next Day: ${result.expected_next_day_price:.2f}",
        f"[dim]Prices from {snapshot.source}[/dim]",
    ]
    console.print(Panel(
        "\n".join(lines),
        title=f"[bold cyan]{report.symbol}[/bold cyan]",
        border_style=color,
    ))
    console.print(Panel(
        report.reason,
        title="[bold magenta]AI Analysis[/bold magenta]",
        border_style="magenta",
    ), justify=justify)

    sentiment = snapshot.sentiment
    if sentiment.is_available:
        vix_label = vix_band(sentiment.volatility_index)
        fg_label = fear_greed_band(sentiment.fear_greed_score)
        console.print(Panel(
            f"VIX: {sentiment.volatility_index:.2f} "
            f"[{BAND_COLORS[vix_label]}]({vix_label})[/{BAND_COLORS[vix_label]}]\n"
            f"Fear & Greed: {sentiment.fear_greed_score:.0f} "
            f"[{BAND_COLORS[fg_label]}]({fg_label.replace('_', ' ')})[/{BAND_COLORS[fg_label]}]",
            title="[bold]Market Sentiment[/bold]",
            border_style="blue",
        ))

    if report.news_titles:
        table = Table(title="Recent News", show_header=True, header_style="bold")
        table.add_column("Headline")
        table.add_column("Age", style="dim", justify="right")
        for title, item in zip(report.news_titles, snapshot.news):
            table.add_row(title, item.age_label)
        console.print(table)


@click.command()
@click.argument("symbol")
@click.option(
    "--language",
    "-l",
    type=click.Choice(LANGUAGE_CODES),
    default="en",
    show_default=True,
    help="Output language code.",
)
@click.option("--translate", is_flag=True, help="Translate the English analysis with the translator.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw analysis as JSON.")
def analyze(symbol: str, language: str, translate: bool, as_json: bool) -> None:
    """Analyze a stock with AI.

    SYMBOL is the ticker symbol (e.g., AAPL, MSFT, ^GSPC).

    \b
    Examples:
      stocksage analyze AAPL
      stocksage analyze TSLA --language ko
      stocksage analyze NVDA --language de --translate
    """
    settings = load_settings()
    missing = validate_settings(settings, translate=translate)
    if missing:
        console.print(Panel(
            "[red]Missing configuration:[/red]\n"
            + "\n".join(f"  - {key}" for key in missing)
            + f"\n\nEdit [cyan]{get_config_path()}[/cyan] or run [cyan]stocksage init[/cyan].",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    if not as_json:
        console.print(f"[dim]Analyzing {symbol.upper()}...[/dim]")

    try:
        report, usage = asyncio.run(_run_analysis(settings, symbol, language, translate))
    except StockSageError as e:
        console.print(_error_panel(describe_error(e)))
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(report.result.to_wire(), ensure_ascii=False, indent=2))
        return

    _render_report(report)
    console.print(f"[dim]{usage}[/dim]")


@click.command()
@click.argument("query")
@click.option("--limit", "-n", default=6, show_default=True, help="Maximum number of matches.")
def search(query: str, limit: int) -> None:
    """Search symbols by ticker or company name.

    \b
    Examples:
      stocksage search apple
      stocksage search TSL
    """
    settings = load_settings()
    try:
        matches = asyncio.run(_run_search(settings, query, limit))
    except StockSageError as e:
        console.print(_error_panel(describe_error(e)))
        raise SystemExit(1)

    if not matches:
        console.print(f"[yellow]No symbols found for '{query}'[/yellow]")
        return

    table = Table(title=f"Matches for '{query}'", show_header=True, header_style="bold")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    for match in matches:
        table.add_row(match.symbol, match.name)
    console.print(table)


@click.command()
@click.option("--popular", is_flag=True, help="List the most requested languages first.")
def languages(popular: bool) -> None:
    """List supported output languages."""
    table = Table(title="Supported Languages", show_header=True, header_style="bold")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("RTL", justify="center")
    for language in (sorted_by_popularity() if popular else LANGUAGES):
        table.add_row(language.code, language.name, "✓" if language.is_rtl else "")
    console.print(table)


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create a template config file."""
    path = get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow] (use --force to overwrite)")
        return
    written = write_template_config(path)
    console.print(Panel(
        f"Config written to [cyan]{written}[/cyan]\n\n"
        "Add your OpenAI key (or set OPENAI_API_KEY). Finnhub and the\n"
        "translator are optional.",
        title="[bold green]Config Created[/bold green]",
        border_style="green",
    ))
