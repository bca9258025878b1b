"""Assembly of the budget signals shown for the running billing cycle."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from analytics.burn_rate import average_daily_spend, project_burn_rate
from analytics.cycles import cycle_progress, cycle_spend, days_remaining_in_cycle, resolve_cycle
from analytics.recurring import assess_subscription_load, detect_recurring
from analytics.streak import calculate_streak
from core.data_loader import to_timestamp, transactions_to_frame
from core.models import BudgetSnapshot, Subscription, coerce_float

__all__ = ["prepare_budget_snapshot"]


def prepare_budget_snapshot(
    transactions: Iterable[Any],
    subscriptions: Iterable[Subscription],
    monthly_budget: float,
    anchor_day: int,
    *,
    fixed_expenses: float | None = None,
    today: Any = None,
    recurring_options: Mapping[str, Any] | None = None,
    alert_pct: float = 40.0,
) -> BudgetSnapshot:
    """Compute every cycle signal for one household snapshot.

    ``fixed_expenses`` defaults to the total of tracked subscriptions. The
    balance is what remains of the disposable budget after this cycle's
    spend to date.
    """

    now = to_timestamp(today)
    now = now if now is not None else pd.Timestamp.now()

    transactions = list(transactions or [])
    subscriptions = list(subscriptions or [])
    monthly_budget = coerce_float(monthly_budget)

    subscription_load = assess_subscription_load(subscriptions, monthly_budget, alert_pct)
    if fixed_expenses is None:
        fixed_expenses = subscription_load["fixed_costs"]
    fixed_expenses = coerce_float(fixed_expenses)

    cycle = resolve_cycle(anchor_day, now)
    spent = cycle_spend(transactions_to_frame(transactions), cycle.start, now, inclusive_end=True)
    balance = monthly_budget - fixed_expenses - spent
    days_remaining = days_remaining_in_cycle(anchor_day, now)
    daily_spend = average_daily_spend(transactions, cycle, now)

    return {
        "cycle": cycle,
        "monthly_budget": monthly_budget,
        "fixed_expenses": fixed_expenses,
        "spent": spent,
        "balance": balance,
        "days_remaining": days_remaining,
        "cycle_progress": cycle_progress(anchor_day, now),
        "average_daily_spend": daily_spend,
        "burn_rate": project_burn_rate(balance, days_remaining, daily_spend, today=now),
        "streak": calculate_streak(transactions, monthly_budget, fixed_expenses, anchor_day, today=now),
        "recurring": detect_recurring(transactions, subscriptions, **dict(recurring_options or {})),
        "subscription_load": subscription_load,
    }
