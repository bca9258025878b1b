"""Shared data model definitions for the OurGlass analytics engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict

import pandas as pd

Payer = Literal["A", "B", "joint"]
AssetKind = Literal["cash", "stock", "crypto", "real_estate"]
BurnStatus = Literal["safe", "warning", "critical"]


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a finite float, or ``default`` when it is not one."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    date: Any
    payer: Payer = "joint"
    category: str = ""
    description: str | None = None


@dataclass(frozen=True)
class Subscription:
    id: str
    name: str
    amount: float
    billing_day: int = 1
    owner: Payer = "joint"


@dataclass(frozen=True)
class Asset:
    """A holding contributing to net worth.

    ``stored_value`` is the last manually entered (or previously computed)
    value in local currency and is the fallback whenever live pricing is
    unavailable.
    """

    id: str
    kind: AssetKind
    stored_value: float = 0.0
    symbol: str | None = None
    quantity: float | None = None
    annual_yield_pct: float = 0.0
    investment_subtype: str | None = None
    currency: str = "USD"
    last_accrued_at: pd.Timestamp | None = None

    @property
    def subtype(self) -> str:
        return self.investment_subtype or self.kind


@dataclass(frozen=True)
class ValuedAsset(Asset):
    calculated_value: float = 0.0


@dataclass(frozen=True)
class BillingPeriod:
    """Half-open ``[start, end)`` billing window, one calendar month wide."""

    start: pd.Timestamp
    end: pd.Timestamp

    def contains(self, moment: pd.Timestamp) -> bool:
        return self.start <= moment < self.end


@dataclass(frozen=True)
class RecurringCandidate:
    merchant_key: str
    representative_name: str
    amount: float
    occurrences: int
    days_of_month: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class PriceQuote:
    symbol: str
    price_usd: float
    change_percent: float = 0.0


@dataclass(frozen=True)
class ExchangeRate:
    value: float
    fetched_at: float


@dataclass(frozen=True)
class BurnRateProjection:
    status: BurnStatus
    days_until_zero: float
    projected_zero_date: pd.Timestamp | None


@dataclass(frozen=True)
class WealthSummary:
    net_worth: float
    investments_value: float
    cash_value: float
    assets: list[ValuedAsset]


class SubscriptionLoad(TypedDict):
    fixed_costs: float
    percentage: int
    show_alert: bool


class BudgetSnapshot(TypedDict):
    cycle: BillingPeriod
    monthly_budget: float
    fixed_expenses: float
    spent: float
    balance: float
    days_remaining: int
    cycle_progress: float
    average_daily_spend: float
    burn_rate: BurnRateProjection
    streak: int
    recurring: RecurringCandidate | None
    subscription_load: SubscriptionLoad


__all__ = [
    "Payer",
    "AssetKind",
    "BurnStatus",
    "coerce_float",
    "Transaction",
    "Subscription",
    "Asset",
    "ValuedAsset",
    "BillingPeriod",
    "RecurringCandidate",
    "PriceQuote",
    "ExchangeRate",
    "BurnRateProjection",
    "WealthSummary",
    "SubscriptionLoad",
    "BudgetSnapshot",
]
