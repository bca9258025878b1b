"""Net-worth aggregation over manually valued and live-priced assets."""

from __future__ import annotations

import asyncio
import math
from dataclasses import fields, replace
from typing import Any, Iterable, Mapping

import pandas as pd

from core.data_loader import to_timestamp
from core.logging_setup import get_logger
from core.market import FxFetcher, MarketDataCache, QuoteFetcher
from core.models import Asset, PriceQuote, ValuedAsset, WealthSummary, coerce_float

__all__ = [
    "INVESTMENT_SUBTYPES",
    "PRICED_SUBTYPES",
    "is_investment",
    "is_live_priced",
    "WealthAggregator",
    "aggregate_wealth",
    "accrue_interest",
]

INVESTMENT_SUBTYPES = frozenset({"crypto", "real_estate"})
PRICED_SUBTYPES = frozenset({"crypto"})

_logger = get_logger("ourglass.wealth")


def is_investment(asset: Asset) -> bool:
    return asset.kind == "stock" or asset.subtype in INVESTMENT_SUBTYPES


def is_live_priced(asset: Asset) -> bool:
    """Return ``True`` for exchange-traded assets carrying a ticker symbol."""

    return bool(asset.symbol) and (asset.kind == "stock" or asset.subtype in PRICED_SUBTYPES)


def _with_value(asset: Asset, value: float) -> ValuedAsset:
    values = {item.name: getattr(asset, item.name) for item in fields(Asset)}
    return ValuedAsset(**values, calculated_value=value)


class WealthAggregator:
    """Price assets and split them into investment and cash subtotals.

    The aggregator owns a :class:`MarketDataCache`; keep one instance alive
    to benefit from cached quotes and exchange rates across calls.
    """

    def __init__(
        self,
        quote_fetcher: QuoteFetcher,
        fx_fetcher: FxFetcher,
        cache: MarketDataCache | None = None,
        *,
        local_currency: str = "ILS",
    ) -> None:
        self.quote_fetcher = quote_fetcher
        self.fx_fetcher = fx_fetcher
        self.cache = cache if cache is not None else MarketDataCache()
        self.local_currency = local_currency.upper()

    async def _market_data(self, symbols: list[str]) -> tuple[Mapping[str, PriceQuote], float]:
        if not symbols:
            return {}, self.cache.fallback_fx_rate
        quotes, fx_rate = await asyncio.gather(
            self.cache.quotes(symbols, self.quote_fetcher),
            self.cache.exchange_rate(self.fx_fetcher),
        )
        return quotes, fx_rate

    def _value(self, asset: Asset, quotes: Mapping[str, PriceQuote], fx_rate: float) -> float:
        stored = coerce_float(asset.stored_value)
        quote = quotes.get(asset.symbol or "") if is_live_priced(asset) else None
        if quote is None:
            return stored

        quantity = 0.0 if asset.quantity is None else coerce_float(asset.quantity, default=math.nan)
        # The rate is USD to local; quotes in any other currency are taken as-is.
        currency = (asset.currency or "USD").upper()
        rate = fx_rate if currency == "USD" and self.local_currency != "USD" else 1.0
        value = quantity * coerce_float(quote.price_usd) * rate
        return value if math.isfinite(value) else stored

    async def aggregate(self, assets: Iterable[Asset]) -> WealthSummary:
        holdings = [asset for asset in (assets or []) if isinstance(asset, Asset)]
        symbols = [asset.symbol for asset in holdings if is_live_priced(asset) and asset.symbol]
        quotes, fx_rate = await self._market_data(symbols)

        missing = sorted({symbol for symbol in symbols if symbol not in quotes})
        if missing:
            _logger.info("No live quote for %s; using stored values", ", ".join(missing))

        valued = [_with_value(asset, self._value(asset, quotes, fx_rate)) for asset in holdings]
        investments_value = sum(item.calculated_value for item in valued if is_investment(item))
        cash_value = sum(item.calculated_value for item in valued if not is_investment(item))

        return WealthSummary(
            net_worth=investments_value + cash_value,
            investments_value=investments_value,
            cash_value=cash_value,
            assets=valued,
        )


async def aggregate_wealth(
    assets: Iterable[Asset],
    quote_fetcher: QuoteFetcher,
    fx_fetcher: FxFetcher,
    cache: MarketDataCache | None = None,
    *,
    local_currency: str = "ILS",
) -> WealthSummary:
    """Aggregate ``assets`` into a net-worth summary.

    Never raises for missing prices or malformed numbers: such assets fall
    back to their stored value, or to zero.
    """

    aggregator = WealthAggregator(quote_fetcher, fx_fetcher, cache, local_currency=local_currency)
    return await aggregator.aggregate(assets)


def accrue_interest(assets: Iterable[Asset], now: Any = None) -> list[Asset]:
    """Compound each yielding asset's stored value up to ``now``.

    Assets with a positive ``annual_yield_pct`` and at least one whole day
    since ``last_accrued_at`` are returned as updated copies; the rest are
    returned unchanged. Assets never accrued before are stamped with ``now``
    without growth. Persisting the result is the caller's concern.
    """

    moment = to_timestamp(now)
    moment = moment if moment is not None else pd.Timestamp.now()

    updated: list[Asset] = []
    for asset in assets:
        rate = coerce_float(asset.annual_yield_pct) / 100
        if rate <= 0:
            updated.append(asset)
            continue

        last = to_timestamp(asset.last_accrued_at)
        if last is None:
            updated.append(replace(asset, last_accrued_at=moment))
            continue

        days = (moment - last).days
        if days < 1:
            updated.append(asset)
            continue

        try:
            grown = coerce_float(asset.stored_value) * (1 + rate) ** (days / 365.25)
        except OverflowError:
            grown = math.inf
        if not math.isfinite(grown):
            updated.append(asset)
            continue
        updated.append(replace(asset, stored_value=round(grown, 2), last_accrued_at=moment))

    return updated
