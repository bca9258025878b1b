"""Live price and exchange-rate access with a last-good-value cache."""

from __future__ import annotations

import math
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Mapping

import httpx

from core.logging_setup import get_logger
from core.models import ExchangeRate, PriceQuote, coerce_float

__all__ = [
    "DEFAULT_QUOTE_URL",
    "QuoteSourceError",
    "MarketDataCache",
    "YahooQuoteSource",
]

DEFAULT_QUOTE_URL = "https://query1.finance.yahoo.com/v7/finance/quote"

QuoteFetcher = Callable[[list[str]], Awaitable[Mapping[str, PriceQuote]]]
FxFetcher = Callable[[], Awaitable[float]]

_logger = get_logger("ourglass.market")


class QuoteSourceError(RuntimeError):
    """Raised when the quote endpoint returns nothing usable."""


def _usable_quote(quote: Any) -> bool:
    return isinstance(quote, PriceQuote) and coerce_float(quote.price_usd) > 0


class MarketDataCache:
    """Process-lifetime cache for quotes and the USD exchange rate.

    Entries younger than ``ttl_seconds`` are served without a request. A
    failed refresh never clears an entry: the last good value is returned
    however old it is. Before any successful FX fetch, ``fallback_fx_rate``
    is used. Writes are last-writer-wins.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        fallback_fx_rate: float = 3.7,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.fallback_fx_rate = fallback_fx_rate
        self._clock = clock
        self._fx: ExchangeRate | None = None
        self._quotes: dict[str, tuple[PriceQuote, float]] = {}

    @property
    def last_exchange_rate(self) -> ExchangeRate | None:
        return self._fx

    def _is_fresh(self, fetched_at: float) -> bool:
        return self._clock() - fetched_at < self.ttl_seconds

    def _last_fx_value(self) -> float:
        return self._fx.value if self._fx is not None else self.fallback_fx_rate

    async def exchange_rate(self, fetcher: FxFetcher) -> float:
        """Return the USD to local-currency rate, refreshing when stale."""

        if self._fx is not None and self._is_fresh(self._fx.fetched_at):
            return self._fx.value

        try:
            value = await fetcher()
        except Exception as exc:  # transport failures differ per source
            _logger.warning("FX refresh failed (%s); using %.4f", exc, self._last_fx_value())
            return self._last_fx_value()

        rate = coerce_float(value, default=math.nan)
        if not rate > 0:
            _logger.warning("FX source returned unusable rate %r; using %.4f", value, self._last_fx_value())
            return self._last_fx_value()

        self._fx = ExchangeRate(value=rate, fetched_at=self._clock())
        return rate

    async def quotes(self, symbols: Iterable[str], fetcher: QuoteFetcher) -> dict[str, PriceQuote]:
        """Return cached or freshly fetched quotes for ``symbols``.

        Stale or missing symbols are requested in one batch. Symbols the
        source omits, and symbols that were never priced, are absent from
        the result.
        """

        wanted = sorted({symbol for symbol in symbols if symbol})
        stale = [
            symbol
            for symbol in wanted
            if symbol not in self._quotes or not self._is_fresh(self._quotes[symbol][1])
        ]

        if stale:
            try:
                fetched = await fetcher(stale)
            except Exception as exc:  # transport failures differ per source
                _logger.warning("Quote refresh failed for %s (%s); using cached quotes", ",".join(stale), exc)
            else:
                if fetched is not None and not isinstance(fetched, Mapping):
                    _logger.warning(
                        "Quote source returned %s instead of a mapping; using cached quotes",
                        type(fetched).__name__,
                    )
                    fetched = None
                fetched_at = self._clock()
                for symbol, quote in (fetched or {}).items():
                    if _usable_quote(quote):
                        self._quotes[symbol] = (quote, fetched_at)

        return {symbol: self._quotes[symbol][0] for symbol in wanted if symbol in self._quotes}


class YahooQuoteSource:
    """Batched quote and FX lookups against the Yahoo Finance v7 endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_QUOTE_URL,
        fx_symbol: str = "ILS=X",
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url
        self.fx_symbol = fx_symbol
        self._client = client
        self._timeout = timeout

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _fetch_results(self, symbols: list[str]) -> list[dict[str, Any]]:
        async with self._session() as client:
            response = await client.get(self.base_url, params={"symbols": ",".join(symbols)})
            response.raise_for_status()
            payload = response.json()
        return list((payload.get("quoteResponse") or {}).get("result") or [])

    async def fetch_quotes(self, symbols: list[str]) -> dict[str, PriceQuote]:
        if not symbols:
            return {}

        quotes: dict[str, PriceQuote] = {}
        for item in await self._fetch_results(symbols):
            symbol = item.get("symbol")
            price = coerce_float(item.get("regularMarketPrice"), default=math.nan)
            if not symbol or math.isnan(price):
                continue
            quotes[symbol] = PriceQuote(
                symbol=symbol,
                price_usd=price,
                change_percent=coerce_float(item.get("regularMarketChangePercent")),
            )
        return quotes

    async def fetch_fx_rate(self) -> float:
        results = await self._fetch_results([self.fx_symbol])
        rate = coerce_float(results[0].get("regularMarketPrice") if results else None)
        if rate <= 0:
            raise QuoteSourceError(f"No usable rate for {self.fx_symbol}")
        return rate
