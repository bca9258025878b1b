"""Cross-cycle "days under budget" streak."""

from __future__ import annotations

import math
from typing import Any, Iterable

import pandas as pd

from analytics.cycles import cycle_spend, days_in_cycle, previous_cycle, resolve_cycle
from core.data_loader import to_timestamp, transactions_to_frame
from core.models import coerce_float

__all__ = ["MAX_LOOKBACK_CYCLES", "calculate_streak"]

MAX_LOOKBACK_CYCLES = 24


def calculate_streak(
    transactions: Iterable[Any],
    monthly_budget: float,
    fixed_expenses: float,
    anchor_day: int,
    today: Any = None,
) -> int:
    """Return consecutive days spent under budget, across billing cycles.

    The running cycle is judged pro rata: spend up to ``today`` must not
    exceed the daily disposable budget times the days lived (today counts).
    Failing it resets the whole streak to zero. Otherwise closed cycles are
    walked backwards, each adding its full length while its total spend stays
    within ``monthly_budget``, for at most ``MAX_LOOKBACK_CYCLES`` cycles.

    The current ``monthly_budget`` and ``fixed_expenses`` are applied to every
    historical cycle. Without any valid transaction there is nothing to
    judge and the streak is zero.
    """

    now = to_timestamp(today)
    now = now if now is not None else pd.Timestamp.now()

    monthly_budget = coerce_float(monthly_budget, default=math.nan)
    fixed_expenses = coerce_float(fixed_expenses)
    if math.isnan(monthly_budget):
        return 0

    frame = transactions_to_frame(transactions)
    if frame.empty:
        return 0

    cycle = resolve_cycle(anchor_day, now)
    daily_budget = (monthly_budget - fixed_expenses) / days_in_cycle(cycle)
    days_passed = int(math.floor((now - cycle.start) / pd.Timedelta(days=1))) + 1
    allowed_to_date = daily_budget * days_passed

    actual_spend = cycle_spend(frame, cycle.start, now, inclusive_end=True)
    if actual_spend > allowed_to_date:
        return 0

    streak = days_passed
    for _ in range(MAX_LOOKBACK_CYCLES):
        cycle = previous_cycle(cycle, anchor_day)
        if cycle_spend(frame, cycle.start, cycle.end) > monthly_budget:
            break
        streak += days_in_cycle(cycle)

    return streak
