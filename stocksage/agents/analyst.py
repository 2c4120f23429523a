"""Stock Analyst Agent producing a structured trading recommendation.

The agent sends the compact market payload to a chat completions endpoint,
asks for a JSON object and decodes it into an ``AnalysisResult``. Token
usage of every successful call is charged to a ``UsageLedger``.
"""

import json
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from stocksage.agents.base import DEFAULT_MODEL, log_model_call
from stocksage.errors import AnalysisAPIError, MalformedAnalysis
from stocksage.models import AnalysisResult, CompactPayload
from stocksage.usage import UsageLedger


logger = logging.getLogger(__name__)


ANALYST_INSTRUCTIONS = """You are a stock investment expert who can analyze market data and provide responses in multiple languages.
You explain market concepts in simple terms for beginners in their preferred language.
Your analysis should include:
1. Clear BULLISH, BEARISH, or NEUTRAL recommendation
2. Confidence percentage (1-100)
3. Detailed reasoning in the specified language
4. Expected next day's closing price
Focus on providing clear, actionable insights while maintaining accuracy.
"""

ANALYSIS_PROMPT = """Based on this stock data: {payload}
Analyze the data and provide your response in {language} language.
Use the following JSON format:
{{
    "decision": "BULLISH/BEARISH/NEUTRAL",
    "percentage": <number between 1-100>,
    "reason": "<your analysis in {language}>",
    "expected_next_day_price": "<predicted price as string with 2 decimal places>"
}}
"""


def build_messages(payload: CompactPayload, target_language: str) -> list[dict[str, str]]:
    """Build the system and user messages for one analysis request."""
    prompt = ANALYSIS_PROMPT.format(payload=payload.to_json(), language=target_language)
    return [
        {"role": "system", "content": ANALYST_INSTRUCTIONS},
        {"role": "user", "content": prompt},
    ]


def parse_analysis(content: Optional[str]) -> AnalysisResult:
    """Decode the model's JSON answer.

    Args:
        content: Message content of the first choice.

    Returns:
        Decoded AnalysisResult.

    Raises:
        MalformedAnalysis: If the content is empty, not JSON, or violates
            the result contract.
    """
    if not content or not content.strip():
        raise MalformedAnalysis("No content in response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedAnalysis(f"Response is not valid JSON: {e}", content) from e
    if not isinstance(data, dict):
        raise MalformedAnalysis("Response is not a JSON object", content)
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise MalformedAnalysis(f"Response does not match the analysis format: {e}", content) from e


class AnalysisOrchestrator:
    """Requests and decodes structured analyses from the LLM."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        ledger: Optional[UsageLedger] = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ):
        """Initialize the orchestrator.

        Args:
            client: OpenAI client. Should be created with retries disabled.
            model: Chat model name.
            ledger: Usage ledger to charge. A new one is created if omitted.
            temperature: Sampling temperature.
            max_tokens: Completion token cap.
        """
        self.client = client
        self.model = model
        self.ledger = ledger if ledger is not None else UsageLedger()
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def analyze(self, payload: CompactPayload, target_language: str = "English") -> AnalysisResult:
        """Analyze a compact payload.

        Args:
            payload: Market data payload.
            target_language: Language the reasoning should be written in.

        Returns:
            Decoded AnalysisResult.

        Raises:
            AnalysisAPIError: If the endpoint returned an error status or
                could not be reached.
            MalformedAnalysis: If the answer could not be decoded.
        """
        log_model_call(self.model)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=build_messages(payload, target_language),
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            logger.debug("OpenAI error response: %s", e.response.text)
            raise AnalysisAPIError(_envelope_message(e), e.status_code) from e
        except openai.APIConnectionError as e:
            raise AnalysisAPIError(f"Could not reach the analysis service: {e}") from e

        if response.usage is not None:
            call = self.ledger.record(
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                response.usage.total_tokens,
            )
            logger.info("Analysis usage: %s", call.description)

        content = response.choices[0].message.content if response.choices else None
        logger.debug("Analysis response content: %s", content)
        return parse_analysis(content)

    def usage_summary(self) -> str:
        return self.ledger.summary()


def _envelope_message(error: openai.APIStatusError) -> str:
    # {"error": {"message": "...", "type": "...", "code": "..."}}
    body = error.body
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return f"HTTP status {error.status_code}"
