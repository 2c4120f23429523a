"""Shared fixtures: a fixed clock and canned upstream payloads."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest


NOW = datetime(2024, 6, 14, 16, 0, tzinfo=timezone.utc)


def _chart(timestamps, opens, highs, lows, closes, volumes, meta=None) -> dict:
    return {
        "chart": {
            "result": [
                {
                    "meta": meta or {},
                    "timestamp": timestamps,
                    "indicators": {
                        "quote": [
                            {
                                "open": opens,
                                "high": highs,
                                "low": lows,
                                "close": closes,
                                "volume": volumes,
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


def _series_chart(count: int, step: timedelta, end: datetime = NOW, base: float = 190.0) -> dict:
    """Chart body with ``count`` consistent bars, oldest first, ending at ``end``."""
    timestamps = [int((end - step * (count - 1 - i)).timestamp()) for i in range(count)]
    closes = [base + i * 0.25 for i in range(count)]
    opens = [c - 0.1 for c in closes]
    highs = [c + 0.5 for c in closes]
    lows = [c - 0.5 for c in closes]
    volumes = [1000 + i for i in range(count)]
    return _chart(timestamps, opens, highs, lows, closes, volumes)


def _vix_chart(value: float) -> dict:
    ts = int(NOW.timestamp())
    return _chart([ts], [value], [value + 0.5], [value - 0.5], [value], [0])


def _news_body(ages_in_hours: list[float]) -> dict:
    news = [
        {
            "uuid": f"n{i}",
            "title": f"Headline {i}",
            "link": f"https://news.example.com/{i}",
            "providerPublishTime": int((NOW - timedelta(hours=age)).timestamp()),
        }
        for i, age in enumerate(ages_in_hours)
    ]
    return {"quotes": [], "news": news}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def chart():
    return _chart


@pytest.fixture
def series_chart():
    return _series_chart


@pytest.fixture
def vix_chart():
    return _vix_chart


@pytest.fixture
def news_body():
    return _news_body


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient whose requests are served by ``handler``."""
    def make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make


@pytest.fixture
def yahoo_handler(series_chart, vix_chart, news_body):
    """Yahoo upstream: 40 intraday bars, 22 daily bars, VIX 18.4, 12 headlines."""
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v8/finance/chart/"):
            if "VIX" in path:
                return httpx.Response(200, json=vix_chart(18.4))
            if request.url.params.get("interval") == "15m":
                return httpx.Response(200, json=series_chart(40, timedelta(minutes=15)))
            return httpx.Response(200, json=series_chart(22, timedelta(days=1)))
        if path == "/v1/finance/search":
            ages = [1, 2, 3, 5, 8, 13, 21, 30, 40, 47, 49, 72]
            return httpx.Response(200, json=news_body(ages))
        return httpx.Response(404, json={"finance": {"error": {"description": "Not found"}}})

    return handler
