"""Tests for the market data cache and the Yahoo quote source."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from core.market import MarketDataCache, QuoteSourceError, YahooQuoteSource
from core.models import PriceQuote


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _rate_fetcher(*values):
    calls = []
    pending = list(values)

    async def fetch():
        calls.append(1)
        value = pending.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    return fetch, calls


def test_fresh_rate_is_served_from_cache():
    clock = FakeClock()
    cache = MarketDataCache(ttl_seconds=3600, clock=clock)
    fetch, calls = _rate_fetcher(3.6, 3.9)

    assert asyncio.run(cache.exchange_rate(fetch)) == 3.6
    clock.now = 3599
    assert asyncio.run(cache.exchange_rate(fetch)) == 3.6
    assert len(calls) == 1

    clock.now = 3600
    assert asyncio.run(cache.exchange_rate(fetch)) == 3.9
    assert cache.last_exchange_rate.value == 3.9
    assert cache.last_exchange_rate.fetched_at == 3600


def test_failed_refresh_keeps_last_good_rate(caplog):
    clock = FakeClock()
    cache = MarketDataCache(ttl_seconds=60, clock=clock)
    fetch, _ = _rate_fetcher(3.6, httpx.ConnectError("offline"), 0.0)

    asyncio.run(cache.exchange_rate(fetch))
    clock.now = 1_000_000
    with caplog.at_level(logging.WARNING, logger="ourglass.market"):
        assert asyncio.run(cache.exchange_rate(fetch)) == 3.6
        assert asyncio.run(cache.exchange_rate(fetch)) == 3.6

    assert cache.last_exchange_rate.value == 3.6
    assert "FX refresh failed" in caplog.text


def test_fallback_rate_before_first_success():
    cache = MarketDataCache(fallback_fx_rate=3.7)
    fetch, _ = _rate_fetcher(RuntimeError("boom"))

    assert asyncio.run(cache.exchange_rate(fetch)) == 3.7
    assert cache.last_exchange_rate is None


def test_quotes_request_only_stale_symbols():
    clock = FakeClock()
    cache = MarketDataCache(ttl_seconds=100, clock=clock)
    requested = []

    async def fetch(symbols):
        requested.append(list(symbols))
        return {symbol: PriceQuote(symbol, 10.0) for symbol in symbols if symbol != "NOPE"}

    first = asyncio.run(cache.quotes(["AAPL", "NOPE"], fetch))
    clock.now = 50
    second = asyncio.run(cache.quotes(["AAPL", "MSFT"], fetch))

    assert set(first) == {"AAPL"}
    assert set(second) == {"AAPL", "MSFT"}
    assert requested == [["AAPL", "NOPE"], ["MSFT"]]


def test_unusable_quotes_are_not_cached():
    cache = MarketDataCache()

    async def fetch(symbols):
        return {"AAPL": PriceQuote("AAPL", 0.0), "MSFT": {"price": 3}}

    assert asyncio.run(cache.quotes(["AAPL", "MSFT"], fetch)) == {}


def test_non_mapping_quote_payload_keeps_cached_quotes(caplog):
    clock = FakeClock()
    cache = MarketDataCache(ttl_seconds=10, clock=clock)
    payloads = [{"AAPL": PriceQuote("AAPL", 10.0)}, ["AAPL"]]

    async def fetch(symbols):
        return payloads.pop(0)

    asyncio.run(cache.quotes(["AAPL"], fetch))
    clock.now = 20
    with caplog.at_level(logging.WARNING, logger="ourglass.market"):
        quotes = asyncio.run(cache.quotes(["AAPL"], fetch))

    assert quotes["AAPL"].price_usd == 10.0
    assert "instead of a mapping" in caplog.text


def _yahoo(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YahooQuoteSource("https://quotes.test/v7/finance/quote", "ILS=X", client=client)


def test_yahoo_source_parses_batched_quotes():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["symbols"] = request.url.params["symbols"]
        return httpx.Response(
            200,
            json={
                "quoteResponse": {
                    "result": [
                        {"symbol": "AAPL", "regularMarketPrice": 190.5, "regularMarketChangePercent": -1.2},
                        {"symbol": "BROKEN"},
                    ]
                }
            },
        )

    quotes = asyncio.run(_yahoo(handler).fetch_quotes(["AAPL", "ZZZZ", "BROKEN"]))

    assert seen["symbols"] == "AAPL,ZZZZ,BROKEN"
    assert quotes == {"AAPL": PriceQuote("AAPL", 190.5, -1.2)}


def test_yahoo_source_reads_exchange_rate():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["symbols"] == "ILS=X"
        return httpx.Response(200, json={"quoteResponse": {"result": [{"regularMarketPrice": 3.65}]}})

    assert asyncio.run(_yahoo(handler).fetch_fx_rate()) == pytest.approx(3.65)


def test_yahoo_source_raises_on_missing_rate_or_http_error():
    def empty(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"quoteResponse": {"result": []}})

    def failing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={})

    with pytest.raises(QuoteSourceError):
        asyncio.run(_yahoo(empty).fetch_fx_rate())
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(_yahoo(failing).fetch_quotes(["AAPL"]))
