"""The end-to-end "analyze symbol" request.

Market data → compact payload → LLM analysis → optional translation of the
display strings.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from stocksage.agents.analyst import AnalysisOrchestrator
from stocksage.agents.base import create_client, get_model
from stocksage.aggregator import FallbackAggregator, MarketSnapshot
from stocksage.compactor import PayloadCompactor
from stocksage.config import Settings
from stocksage.languages import DEFAULT_CODE, LANGUAGE_CODES, language_for
from stocksage.models import AnalysisResult, CompactPayload
from stocksage.providers import BaseProvider, FinnhubProvider, YahooProvider
from stocksage.translation import TranslationCache, TranslationService
from stocksage.usage import TranslationLedger, UsageLedger


logger = logging.getLogger(__name__)


class AnalysisReport(BaseModel):
    """Outcome of one analysis request, ready for display."""

    symbol: str = Field(..., description="Normalized symbol")
    snapshot: MarketSnapshot = Field(..., description="Market data the analysis is based on")
    payload: CompactPayload = Field(..., description="Payload sent to the model")
    result: AnalysisResult = Field(..., description="Decoded recommendation")
    language: str = Field(default=DEFAULT_CODE, description="Display language code")
    reason: str = Field(..., description="Reasoning in the display language")
    decision_label: str = Field(..., description="Decision label in the display language")
    news_titles: list[str] = Field(default_factory=list, description="Headlines in the display language")

    model_config = {"frozen": True}


class StockAnalyzer:
    """Wires providers, compactor, orchestrator and translator together."""

    def __init__(
        self,
        aggregator: FallbackAggregator,
        orchestrator: AnalysisOrchestrator,
        compactor: Optional[PayloadCompactor] = None,
        translator: Optional[TranslationService] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the analyzer.

        Args:
            aggregator: Market data aggregator.
            orchestrator: LLM analysis orchestrator.
            compactor: Payload compactor. A default one if omitted.
            translator: Translation service; required for ``translate_output``.
            http_client: Shared HTTP client closed by ``aclose``.
        """
        self.aggregator = aggregator
        self.orchestrator = orchestrator
        self.compactor = compactor or PayloadCompactor()
        self.translator = translator
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "StockAnalyzer":
        """Build every collaborator from settings.

        Finnhub is only used as the first price tier when its key is
        configured; Yahoo always serves as the fallback tier and for
        headlines and sentiment.

        Raises:
            ValueError: If no OpenAI API key is configured.
        """
        market = settings.market
        http_client = httpx.AsyncClient(timeout=market.http_timeout)
        news_max_age = timedelta(hours=market.news_max_age_hours)

        yahoo = YahooProvider(
            client=http_client,
            base_url=settings.yahoo.base_url,
            timeout=market.http_timeout,
            user_agent=settings.yahoo.user_agent,
            intraday_days=market.intraday_days,
            intraday_interval=market.intraday_interval,
            intraday_limit=market.intraday_limit,
            news_max_age=news_max_age,
            news_limit=market.news_limit,
        )
        tiers: list[BaseProvider] = []
        if settings.finnhub.api_key:
            tiers.append(
                FinnhubProvider(
                    settings.finnhub.api_key,
                    client=http_client,
                    base_url=settings.finnhub.base_url,
                    timeout=market.http_timeout,
                    news_max_age=news_max_age,
                    news_limit=market.news_limit,
                )
            )
        tiers.append(yahoo)

        openai_settings = settings.openai
        orchestrator = AnalysisOrchestrator(
            create_client(openai_settings),
            model=get_model(openai_settings),
            ledger=UsageLedger(
                openai_settings.input_price_per_1k, openai_settings.output_price_per_1k
            ),
            temperature=openai_settings.temperature,
            max_tokens=openai_settings.max_tokens,
        )

        translator = None
        translator_settings = settings.translator
        if translator_settings.api_key:
            translator = TranslationService(
                translator_settings.api_key,
                region=translator_settings.region,
                client=http_client,
                endpoint=translator_settings.endpoint,
                timeout=translator_settings.timeout,
                cache=TranslationCache(translator_settings.cache_max_entries),
                ledger=TranslationLedger(translator_settings.price_per_million_chars),
            )

        return cls(
            FallbackAggregator(tiers, yahoo),
            orchestrator,
            translator=translator,
            http_client=http_client,
        )

    async def analyze(
        self,
        symbol: str,
        language: str = DEFAULT_CODE,
        translate_output: bool = False,
        now: Optional[datetime] = None,
    ) -> AnalysisReport:
        """Fetch, analyze and localize one symbol.

        Args:
            symbol: Ticker symbol.
            language: Display language code.
            translate_output: Ask the model for English and translate the
                display strings with the translator instead of asking the
                model to write in the target language.
            now: Fetch time. Defaults to the current UTC time.

        Returns:
            AnalysisReport for the symbol.

        Raises:
            MarketDataError: If price data could not be fetched.
            AnalysisError: If the analysis failed.
            ValueError: If the language code is unknown or translation was
                requested without a translator.
        """
        if translate_output and self.translator is None:
            raise ValueError("Translation requested but no translator is configured")

        if language not in LANGUAGE_CODES:
            raise ValueError(f"Unsupported language code: {language}")
        target = language_for(language)
        snapshot = await self.aggregator.fetch(symbol, now)
        payload = self.compactor.build(
            snapshot.intraday, snapshot.monthly, snapshot.news, snapshot.sentiment
        )

        routed = translate_output and target.code != DEFAULT_CODE
        model_language = language_for(DEFAULT_CODE).name if routed else target.name
        result = await self.orchestrator.analyze(payload, model_language)

        reason = result.reason
        label = result.decision.label
        titles = [item.title for item in snapshot.news]
        if routed:
            translated = await self.translator.batch_translate(
                [reason, label, *titles],
                source=DEFAULT_CODE,
                target=target.code,
                keep_source_on_error=True,
            )
            reason, label, titles = translated[0], translated[1], translated[2:]

        return AnalysisReport(
            symbol=snapshot.symbol,
            snapshot=snapshot,
            payload=payload,
            result=result,
            language=target.code,
            reason=reason,
            decision_label=label,
            news_titles=titles,
        )

    def usage_summary(self) -> str:
        """Cumulative LLM and translation usage."""
        parts = [self.orchestrator.usage_summary()]
        if self.translator is not None:
            parts.append(self.translator.usage_summary())
        return "\n".join(parts)

    async def aclose(self) -> None:
        await self.orchestrator.client.close()
        if self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "StockAnalyzer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
