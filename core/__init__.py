"""Core domain package for the OurGlass analytics engine."""

from .logging_setup import configure_logging, get_logger
from .models import (
    Asset,
    BillingPeriod,
    BudgetSnapshot,
    BurnRateProjection,
    ExchangeRate,
    PriceQuote,
    RecurringCandidate,
    Subscription,
    SubscriptionLoad,
    Transaction,
    ValuedAsset,
    WealthSummary,
)

__all__ = [
    "Asset",
    "BillingPeriod",
    "BudgetSnapshot",
    "BurnRateProjection",
    "ExchangeRate",
    "PriceQuote",
    "RecurringCandidate",
    "Subscription",
    "SubscriptionLoad",
    "Transaction",
    "ValuedAsset",
    "WealthSummary",
    "configure_logging",
    "get_logger",
]
