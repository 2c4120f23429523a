"""Tests for the analysis orchestrator and the result contract.

**Feature: stock-analysis-pipeline**
"""

import json

import httpx
import pytest
from openai import AsyncOpenAI
from pydantic import ValidationError

from stocksage.agents.analyst import AnalysisOrchestrator, build_messages, parse_analysis
from stocksage.agents.base import _get_model_info, create_client, get_model
from stocksage.config import OpenAISettings
from stocksage.errors import AnalysisAPIError, MalformedAnalysis
from stocksage.models import AnalysisResult, CompactPayload, Decision, PayloadSentiment
from stocksage.usage import UsageLedger


ANSWER = {
    "decision": "BULLISH",
    "percentage": 72,
    "reason": "Momentum is strong and volatility is low.",
    "expected_next_day_price": "192.35",
}


def _completion(content, usage=(1000, 200)) -> dict:
    body = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1718380800,
        "model": "gpt-4-turbo-preview",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
    if usage is not None:
        prompt, completion = usage
        body["usage"] = {
            "prompt_tokens": prompt,
            "completion_tokens": completion,
            "total_tokens": prompt + completion,
        }
    return body


def _openai_client(handler) -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key="test-key",
        base_url="https://llm.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def payload() -> CompactPayload:
    return CompactPayload(
        current_price=190.12,
        market_sentiment=PayloadSentiment(vix=18.4, fear_and_greed_index=79.0),
    )


class TestAnalysisResult:
    """
    **Feature: stock-analysis-pipeline, Property 9: Result contract**

    Confidence is bounded to [1, 100] and the price accepts both a string
    and a number literal.
    """

    def test_string_price(self):
        result = AnalysisResult.model_validate(ANSWER)
        assert result.decision is Decision.BULLISH
        assert result.confidence == 72
        assert result.expected_next_day_price == 192.35

    def test_numeric_price(self):
        result = AnalysisResult.model_validate({**ANSWER, "expected_next_day_price": 192.35})
        assert result.expected_next_day_price == 192.35

    def test_formatted_price(self):
        result = AnalysisResult.model_validate({**ANSWER, "expected_next_day_price": "$1,192.35"})
        assert result.expected_next_day_price == 1192.35

    @pytest.mark.parametrize("percentage", [0, 101, -5])
    def test_confidence_out_of_range(self, percentage):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({**ANSWER, "percentage": percentage})

    @pytest.mark.parametrize("percentage", [1, 100])
    def test_confidence_bounds_inclusive(self, percentage):
        assert AnalysisResult.model_validate({**ANSWER, "percentage": percentage}).confidence == percentage

    def test_unknown_decision(self):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({**ANSWER, "decision": "HOLD"})

    @pytest.mark.parametrize("decision", ["bearish", " BEARISH", "Bearish"])
    def test_decision_must_match_exactly(self, decision):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({**ANSWER, "decision": decision})

    def test_boolean_price_rejected(self):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({**ANSWER, "expected_next_day_price": True})

    def test_wire_round_trip(self):
        wire = AnalysisResult.model_validate(ANSWER).to_wire()
        assert wire == ANSWER

    def test_label(self):
        assert Decision.NEUTRAL.label == "Neutral"


class TestParseAnalysis:

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_content(self, content):
        with pytest.raises(MalformedAnalysis):
            parse_analysis(content)

    def test_not_json(self):
        with pytest.raises(MalformedAnalysis) as excinfo:
            parse_analysis("BULLISH, definitely")
        assert excinfo.value.content == "BULLISH, definitely"

    def test_not_an_object(self):
        with pytest.raises(MalformedAnalysis):
            parse_analysis("[1, 2, 3]")

    def test_missing_field(self):
        with pytest.raises(MalformedAnalysis):
            parse_analysis(json.dumps({"decision": "BULLISH", "percentage": 50}))


class TestPrompt:

    def test_messages(self, payload):
        messages = build_messages(payload, "Deutsch")

        assert [m["role"] for m in messages] == ["system", "user"]
        assert "stock investment expert" in messages[0]["content"]
        assert payload.to_json() in messages[1]["content"]
        assert "provide your response in Deutsch language" in messages[1]["content"]
        assert '"decision": "BULLISH/BEARISH/NEUTRAL"' in messages[1]["content"]


class TestAnalysisOrchestrator:

    @pytest.mark.asyncio
    async def test_analyze(self, payload):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json=_completion(json.dumps(ANSWER)))

        ledger = UsageLedger()
        orchestrator = AnalysisOrchestrator(_openai_client(handler), ledger=ledger)

        result = await orchestrator.analyze(payload, "English")

        assert result.decision is Decision.BULLISH
        assert result.confidence == 72
        body = requests[0]
        assert body["model"] == "gpt-4-turbo-preview"
        assert body["response_format"] == {"type": "json_object"}
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 4000
        assert len(body["messages"]) == 2

    @pytest.mark.asyncio
    async def test_usage_is_charged(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(json.dumps(ANSWER), usage=(1000, 200)))

        ledger = UsageLedger(input_price_per_1k=0.01, output_price_per_1k=0.03)
        orchestrator = AnalysisOrchestrator(_openai_client(handler), ledger=ledger)

        await orchestrator.analyze(payload)
        await orchestrator.analyze(payload)

        assert ledger.prompt_units == 2000
        assert ledger.completion_units == 400
        assert ledger.cumulative_cost == pytest.approx(0.032)
        assert ledger.last_call.cost == pytest.approx(0.016)
        assert orchestrator.usage_summary() == (
            "Total Usage:\n"
            "- Prompt Tokens: 2000\n"
            "- Completion Tokens: 400\n"
            "- Total Cost: $0.0320"
        )

    @pytest.mark.asyncio
    async def test_missing_usage_is_not_charged(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion(json.dumps(ANSWER), usage=None))

        ledger = UsageLedger()
        orchestrator = AnalysisOrchestrator(_openai_client(handler), ledger=ledger)
        await orchestrator.analyze(payload)
        assert ledger.prompt_units == 0

    @pytest.mark.asyncio
    async def test_error_envelope(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={
                "error": {"message": "Incorrect API key provided", "type": "invalid_request_error", "code": "invalid_api_key"}
            })

        orchestrator = AnalysisOrchestrator(_openai_client(handler))
        with pytest.raises(AnalysisAPIError) as excinfo:
            await orchestrator.analyze(payload)
        assert excinfo.value.status == 401
        assert excinfo.value.message == "Incorrect API key provided"

    @pytest.mark.asyncio
    async def test_error_without_envelope(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="upstream exploded")

        orchestrator = AnalysisOrchestrator(_openai_client(handler))
        with pytest.raises(AnalysisAPIError) as excinfo:
            await orchestrator.analyze(payload)
        assert excinfo.value.status == 500
        assert excinfo.value.message == "HTTP status 500"

    @pytest.mark.asyncio
    async def test_transport_failure(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        orchestrator = AnalysisOrchestrator(_openai_client(handler))
        with pytest.raises(AnalysisAPIError) as excinfo:
            await orchestrator.analyze(payload)
        assert excinfo.value.status is None

    @pytest.mark.asyncio
    async def test_malformed_content(self, payload):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_completion('{"decision": "BULLISH", "percentage": 0}'))

        ledger = UsageLedger()
        orchestrator = AnalysisOrchestrator(_openai_client(handler), ledger=ledger)
        with pytest.raises(MalformedAnalysis):
            await orchestrator.analyze(payload)
        # Tokens were spent even though the answer was unusable
        assert ledger.prompt_units == 1000


class TestClientConstruction:

    def test_model_env_override(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
        assert get_model(OpenAISettings(model="gpt-4-turbo-preview")) == "gpt-4o"

    def test_model_from_settings(self, monkeypatch):
        monkeypatch.delenv("OPENAI_MODEL", raising=False)
        assert get_model(OpenAISettings(model="gpt-4o-mini")) == "gpt-4o-mini"

    def test_client_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError):
            create_client(OpenAISettings())

    def test_client_has_retries_disabled(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        client = create_client(OpenAISettings(api_key="sk-test", timeout=12.0))
        assert client.max_retries == 0
        assert client.timeout == 12.0

    @pytest.mark.parametrize("model, tier", [
        ("gpt-4-turbo-preview", "turbo"),
        ("gpt-4o", "omni"),
        ("gpt-4", "standard"),
        ("gpt-3.5-turbo", "basic"),
        ("claude", "unknown"),
    ])
    def test_model_info(self, model, tier):
        assert _get_model_info(model)[1] == tier
