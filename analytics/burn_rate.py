"""Balance depletion projection for the running billing cycle."""

from __future__ import annotations

import math
from typing import Any, Iterable

import pandas as pd

from analytics.cycles import cycle_spend
from core.data_loader import to_timestamp, transactions_to_frame
from core.models import BillingPeriod, BurnRateProjection, coerce_float

__all__ = ["WARNING_BAND_DAYS", "project_burn_rate", "average_daily_spend"]

# Half-width of the straddling warning band around ``days_remaining``.
WARNING_BAND_DAYS = 2


def project_burn_rate(
    balance: float,
    days_remaining: float,
    avg_daily_spend: float,
    today: Any = None,
) -> BurnRateProjection:
    """Classify how soon ``balance`` runs out at the current spending pace.

    A balance at or below zero is ``critical`` immediately. Without any
    spending the balance never depletes and the result is ``safe`` with an
    infinite horizon. Otherwise the depletion horizon is compared against
    the days left in the cycle with a band of ``WARNING_BAND_DAYS`` either
    side: clearly short is ``critical``, inside the band is ``warning``.
    """

    now = to_timestamp(today)
    now = (now if now is not None else pd.Timestamp.now()).normalize()

    balance = coerce_float(balance)
    days_remaining = coerce_float(days_remaining)
    avg_daily_spend = coerce_float(avg_daily_spend)

    if balance <= 0:
        return BurnRateProjection(status="critical", days_until_zero=0.0, projected_zero_date=now)

    if avg_daily_spend <= 0:
        return BurnRateProjection(status="safe", days_until_zero=math.inf, projected_zero_date=None)

    days_until_zero = balance / avg_daily_spend
    if days_until_zero < days_remaining - WARNING_BAND_DAYS:
        status = "critical"
    elif days_until_zero < days_remaining + WARNING_BAND_DAYS:
        status = "warning"
    else:
        status = "safe"

    return BurnRateProjection(
        status=status,
        days_until_zero=days_until_zero,
        projected_zero_date=_project_date(now, days_until_zero),
    )


def _project_date(today: pd.Timestamp, days_until_zero: float) -> pd.Timestamp | None:
    if not math.isfinite(days_until_zero):
        return None
    try:
        return today + pd.Timedelta(days=math.ceil(days_until_zero))
    except (OverflowError, ValueError):
        return None


def average_daily_spend(transactions: Iterable[Any], period: BillingPeriod, today: Any = None) -> float:
    """Return spend per day lived so far in ``period`` (today included)."""

    now = to_timestamp(today)
    now = now if now is not None else pd.Timestamp.now()

    days_lived = int((now - period.start).days) + 1
    if days_lived <= 0:
        return 0.0

    spent = cycle_spend(transactions_to_frame(transactions), period.start, now, inclusive_end=True)
    return spent / days_lived
