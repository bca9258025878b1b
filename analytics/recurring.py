"""Recurring charge suggestion and subscription load helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Iterable

from core.data_loader import record_field, transactions_to_frame
from core.models import RecurringCandidate, Subscription, SubscriptionLoad, coerce_float

__all__ = [
    "DEFAULT_ALPHABETS",
    "UNKNOWN_MERCHANT",
    "normalize_merchant_key",
    "is_amount_similar",
    "detect_recurring",
    "assess_subscription_load",
]

# Character ranges kept in merchant keys: Latin and Hebrew letters.
DEFAULT_ALPHABETS = "a-zA-Zא-ת"
UNKNOWN_MERCHANT = "unknown"

_DIGITS = re.compile(r"\d")


@lru_cache(maxsize=16)
def _disallowed_pattern(alphabets: str) -> re.Pattern[str]:
    return re.compile(f"[^{alphabets}\\s]")


@lru_cache(maxsize=1024)
def normalize_merchant_key(raw_name: str | None, alphabets: str = DEFAULT_ALPHABETS) -> str:
    """Return the grouping key for a transaction description.

    The description is lowercased, stripped of digits and of any character
    outside ``alphabets`` (a regex character-class body) or whitespace, then
    trimmed. Empty input maps to an empty key.
    """

    if not isinstance(raw_name, str) or not raw_name:
        return ""

    name = raw_name.lower()
    name = _DIGITS.sub("", name)
    name = _disallowed_pattern(alphabets).sub("", name)
    return name.strip()


def is_amount_similar(first: float, second: float, tolerance: float = 0.10) -> bool:
    """Return ``True`` when the amounts differ by at most ``tolerance`` of the larger."""

    largest = max(first, second)
    if largest <= 0:
        return False
    return abs(first - second) / largest <= tolerance


@dataclass
class _Cluster:
    merchant_key: str
    representative_name: str
    amount: float
    days_of_month: list[int] = field(default_factory=list)

    @property
    def occurrences(self) -> int:
        return len(self.days_of_month)


def _is_periodic(days: list[int], day_tolerance: float) -> bool:
    if len(days) < 2:
        return True
    average = sum(days) / len(days)
    return all(abs(day - average) <= day_tolerance for day in days)


def detect_recurring(
    transactions: Iterable[Any],
    known_subscriptions: Iterable[Subscription] | None = None,
    *,
    amount_tolerance: float = 0.10,
    day_tolerance: float = 5,
    min_occurrences: int = 2,
    alphabets: str = DEFAULT_ALPHABETS,
) -> RecurringCandidate | None:
    """Suggest one untracked recurring charge found in ``transactions``.

    Transactions are grouped by merchant key. Each group keeps a single
    cluster whose representative amount is the first charge seen; later
    charges join it only when their amount is similar. A cluster qualifies
    with ``min_occurrences`` charges whose days of month all sit within
    ``day_tolerance`` of their average, and when it matches no tracked
    subscription by amount or by name.

    Returns
    -------
    RecurringCandidate | None
        The first qualifying cluster in order of first occurrence.
    """

    frame = transactions_to_frame(transactions)
    if frame.empty:
        return None

    clusters: dict[str, _Cluster] = {}
    for record in frame.to_dict(orient="records"):
        key = normalize_merchant_key(record["description"], alphabets)
        if len(key) < 2 or key == UNKNOWN_MERCHANT:
            continue

        amount = float(record["amount"])
        cluster = clusters.get(key)
        if cluster is None:
            cluster = _Cluster(key, str(record["description"]).strip(), amount)
            clusters[key] = cluster
        elif not is_amount_similar(amount, cluster.amount, amount_tolerance):
            continue
        cluster.days_of_month.append(int(record["date"].day))

    tracked = [
        (
            coerce_float(record_field(sub, "amount")),
            normalize_merchant_key(record_field(sub, "name"), alphabets),
        )
        for sub in (known_subscriptions or [])
        if sub is not None
    ]

    for cluster in clusters.values():
        if cluster.occurrences < min_occurrences:
            continue
        if not _is_periodic(cluster.days_of_month, day_tolerance):
            continue
        if any(
            is_amount_similar(cluster.amount, amount, amount_tolerance) or name == cluster.merchant_key
            for amount, name in tracked
        ):
            continue
        return RecurringCandidate(
            merchant_key=cluster.merchant_key,
            representative_name=cluster.representative_name,
            amount=cluster.amount,
            occurrences=cluster.occurrences,
            days_of_month=list(cluster.days_of_month),
        )

    return None


def assess_subscription_load(
    subscriptions: Iterable[Subscription],
    monthly_budget: float,
    threshold_pct: float = 40.0,
) -> SubscriptionLoad:
    """Return how much of ``monthly_budget`` tracked subscriptions consume."""

    fixed_costs = sum(
        max(coerce_float(record_field(sub, "amount")), 0.0) for sub in (subscriptions or []) if sub is not None
    )
    budget = coerce_float(monthly_budget)
    percentage = fixed_costs / budget * 100 if budget > 0 else 0.0

    return {
        "fixed_costs": float(fixed_costs),
        "percentage": int(round(percentage)),
        "show_alert": percentage > threshold_pct,
    }
