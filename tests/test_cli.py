"""Tests for the command line front end.

**Feature: stock-analysis-pipeline**
"""

import json

import httpx
import pytest
from click.testing import CliRunner
from openai import AsyncOpenAI

from stocksage.agents.analyst import AnalysisOrchestrator
from stocksage.aggregator import FallbackAggregator
from stocksage.cli import analyze as analyze_module
from stocksage.cli.main import cli
from stocksage.pipeline import StockAnalyzer
from stocksage.providers import YahooProvider


ANSWER = {
    "decision": "BULLISH",
    "percentage": 81,
    "reason": "Breakout above resistance on rising volume.",
    "expected_next_day_price": "201.10",
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    for name in ("FINNHUB_API_KEY", "OPENAI_MODEL", "AZURE_TRANSLATOR_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STOCKSAGE_CONFIG", str(tmp_path / "config.toml"))
    return tmp_path / "config.toml"


def _completion(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1718380800,
        "model": "gpt-4-turbo-preview",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": json.dumps(ANSWER)},
            "finish_reason": "stop",
        }],
        "usage": {"prompt_tokens": 900, "completion_tokens": 150, "total_tokens": 1050},
    })


class TestLanguagesCommand:

    def test_lists_languages(self, runner):
        result = runner.invoke(cli, ["languages"])
        assert result.exit_code == 0
        assert "English" in result.output
        assert "zh-Hans" in result.output


class TestAnalyzeCommand:

    def test_missing_openai_key(self, runner, config_env, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        result = runner.invoke(cli, ["analyze", "AAPL"])
        assert result.exit_code == 1
        assert "openai.api_key" in result.output

    def test_analyze(self, runner, config_env, monkeypatch, yahoo_handler):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        def build(settings):
            yahoo = YahooProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(yahoo_handler)))
            llm = AsyncOpenAI(
                api_key="sk-test",
                base_url="https://llm.test/v1",
                max_retries=0,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(_completion)),
            )
            return StockAnalyzer(FallbackAggregator([yahoo], yahoo), AnalysisOrchestrator(llm))

        monkeypatch.setattr(analyze_module, "_build_analyzer", build)

        result = runner.invoke(cli, ["analyze", "aapl"])

        assert result.exit_code == 0, result.output
        assert "AAPL" in result.output
        assert "Bullish" in result.output
        assert "81%" in result.output
        assert "Total Usage" in result.output

    def test_analyze_json(self, runner, config_env, monkeypatch, yahoo_handler):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        def build(settings):
            yahoo = YahooProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(yahoo_handler)))
            llm = AsyncOpenAI(
                api_key="sk-test",
                base_url="https://llm.test/v1",
                max_retries=0,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(_completion)),
            )
            return StockAnalyzer(FallbackAggregator([yahoo], yahoo), AnalysisOrchestrator(llm))

        monkeypatch.setattr(analyze_module, "_build_analyzer", build)

        result = runner.invoke(cli, ["analyze", "AAPL", "--json"])

        assert result.exit_code == 0, result.output
        assert '"decision": "BULLISH"' in result.output
        assert '"expected_next_day_price": "201.10"' in result.output

    def test_unknown_language_rejected(self, runner, config_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        result = runner.invoke(cli, ["analyze", "AAPL", "--language", "xx"])
        assert result.exit_code == 2
        assert "xx" in result.output

    def test_market_data_error_exits_1(self, runner, config_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        def empty(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"chart": {"result": [], "error": None}})

        def build(settings):
            yahoo = YahooProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(empty)))
            llm = AsyncOpenAI(
                api_key="sk-test",
                base_url="https://llm.test/v1",
                max_retries=0,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(_completion)),
            )
            return StockAnalyzer(FallbackAggregator([yahoo], yahoo), AnalysisOrchestrator(llm))

        monkeypatch.setattr(analyze_module, "_build_analyzer", build)

        result = runner.invoke(cli, ["analyze", "ZZZZ"])

        assert result.exit_code == 1
        assert "No data available for this symbol" in result.output


class TestSearchCommand:

    def test_search(self, runner, config_env, monkeypatch):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "quotes": [{"symbol": "AAPL", "shortname": "Apple Inc."}],
                "news": [],
            })

        monkeypatch.setattr(
            analyze_module,
            "_build_search_provider",
            lambda settings: YahooProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(handler))),
        )

        result = runner.invoke(cli, ["search", "apple"])

        assert result.exit_code == 0, result.output
        assert "AAPL" in result.output
        assert "Apple Inc." in result.output

    def test_search_no_matches(self, runner, config_env, monkeypatch):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"quotes": [], "news": []})

        monkeypatch.setattr(
            analyze_module,
            "_build_search_provider",
            lambda settings: YahooProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(handler))),
        )

        result = runner.invoke(cli, ["search", "qqqqzz"])
        assert result.exit_code == 0
        assert "No symbols found" in result.output


class TestInitCommand:

    def test_writes_template(self, runner, config_env):
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert config_env.exists()

    def test_keeps_existing(self, runner, config_env):
        config_env.write_text("[openai]\napi_key = \"sk-mine\"\n")
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "sk-mine" in config_env.read_text()
