"""Budget-cycle analytics shared across OurGlass services."""

from analytics.burn_rate import average_daily_spend, project_burn_rate
from analytics.cycles import (
    cycle_progress,
    cycle_spend,
    days_in_cycle,
    days_remaining_in_cycle,
    filter_by_cycle,
    previous_cycle,
    resolve_cycle,
)
from analytics.recurring import (
    assess_subscription_load,
    detect_recurring,
    is_amount_similar,
    normalize_merchant_key,
)
from analytics.streak import calculate_streak
from analytics.wealth import (
    WealthAggregator,
    accrue_interest,
    aggregate_wealth,
    is_investment,
    is_live_priced,
)

__all__ = [
    "resolve_cycle",
    "previous_cycle",
    "days_in_cycle",
    "days_remaining_in_cycle",
    "cycle_progress",
    "cycle_spend",
    "filter_by_cycle",
    "project_burn_rate",
    "average_daily_spend",
    "normalize_merchant_key",
    "is_amount_similar",
    "detect_recurring",
    "assess_subscription_load",
    "calculate_streak",
    "WealthAggregator",
    "aggregate_wealth",
    "accrue_interest",
    "is_investment",
    "is_live_priced",
]
