"""Read interfaces for the collaborators the engine consumes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

from core.data_loader import load_assets, load_subscriptions, load_transactions, to_timestamp
from core.models import Asset, PriceQuote, Subscription, Transaction

__all__ = [
    "TransactionReader",
    "AssetReader",
    "SubscriptionReader",
    "QuoteSource",
    "CsvLedger",
]

DateRange = tuple[Any, Any]


class TransactionReader(Protocol):
    def list_transactions(self, date_range: DateRange | None = None) -> list[Transaction]: ...


class AssetReader(Protocol):
    def list_assets(self) -> list[Asset]: ...


class SubscriptionReader(Protocol):
    def list_subscriptions(self) -> list[Subscription]: ...


class QuoteSource(Protocol):
    async def fetch_quotes(self, symbols: list[str]) -> Mapping[str, PriceQuote]: ...

    async def fetch_fx_rate(self) -> float: ...


@dataclass(frozen=True)
class CsvLedger:
    """File-backed stand-in for the remote table store.

    Expects ``transactions.csv``, ``assets.csv`` and ``subscriptions.csv``
    inside ``directory``. A missing assets or subscriptions file reads as
    empty; a missing transactions file raises ``FileNotFoundError``.
    """

    directory: Path

    def list_transactions(self, date_range: DateRange | None = None) -> list[Transaction]:
        transactions = load_transactions(self.directory / "transactions.csv")
        if date_range is None:
            return transactions

        start, end = (to_timestamp(bound) for bound in date_range)
        return [
            tx
            for tx in transactions
            if tx.date is not None
            and (start is None or tx.date >= start)
            and (end is None or tx.date < end)
        ]

    def list_assets(self) -> list[Asset]:
        path = self.directory / "assets.csv"
        return load_assets(path) if path.exists() else []

    def list_subscriptions(self) -> list[Subscription]:
        path = self.directory / "subscriptions.csv"
        return load_subscriptions(path) if path.exists() else []
