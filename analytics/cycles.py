"""Billing-cycle boundary helpers anchored to a day of the month."""

from __future__ import annotations

import calendar
from typing import Any, Iterable

import pandas as pd

from core.data_loader import to_timestamp, transactions_to_frame
from core.models import BillingPeriod, coerce_float

__all__ = [
    "DEFAULT_ANCHOR_DAY",
    "resolve_cycle",
    "previous_cycle",
    "days_in_cycle",
    "days_remaining_in_cycle",
    "cycle_progress",
    "filter_by_cycle",
    "cycle_spend",
]

DEFAULT_ANCHOR_DAY = 10


def _resolve_anchor(anchor_day: Any) -> int:
    day = int(coerce_float(anchor_day, default=DEFAULT_ANCHOR_DAY))
    return min(max(day, 1), 31)


def _resolve_reference(reference_date: Any) -> pd.Timestamp:
    stamp = to_timestamp(reference_date)
    return stamp if stamp is not None else pd.Timestamp.now()


def _anchor_in_month(year: int, month: int, anchor: int) -> pd.Timestamp:
    """Return midnight on ``anchor`` clamped to the length of the month."""

    day = min(anchor, calendar.monthrange(year, month)[1])
    return pd.Timestamp(year=year, month=month, day=day)


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    shifted_year, month_index = divmod(year * 12 + (month - 1) + offset, 12)
    return shifted_year, month_index + 1


def resolve_cycle(anchor_day: int, reference_date: Any = None) -> BillingPeriod:
    """Return the billing period containing ``reference_date``.

    The period starts on ``anchor_day`` and runs for exactly one calendar
    month. Months shorter than the anchor clamp to their last day, on both
    boundaries, so consecutive periods are contiguous.

    Parameters
    ----------
    anchor_day:
        Day of month the cycle starts on. Values outside ``1..31`` are
        clamped; non-numeric values fall back to ``DEFAULT_ANCHOR_DAY``.
    reference_date:
        Any value ``pandas.Timestamp`` accepts. Defaults to now.
    """

    anchor = _resolve_anchor(anchor_day)
    reference = _resolve_reference(reference_date)

    anchor_this_month = _anchor_in_month(reference.year, reference.month, anchor)
    if reference < anchor_this_month:
        start = _anchor_in_month(*_shift_month(reference.year, reference.month, -1), anchor)
    else:
        start = anchor_this_month

    end = _anchor_in_month(*_shift_month(start.year, start.month, 1), anchor)
    return BillingPeriod(start=start, end=end)


def previous_cycle(period: BillingPeriod, anchor_day: int) -> BillingPeriod:
    """Return the period immediately preceding ``period``."""

    return resolve_cycle(anchor_day, period.start - pd.Timedelta(days=1))


def days_in_cycle(period: BillingPeriod) -> int:
    return int((period.end - period.start).days)


def days_remaining_in_cycle(anchor_day: int, today: Any = None) -> int:
    """Return whole days left before the current cycle closes."""

    now = _resolve_reference(today)
    period = resolve_cycle(anchor_day, now)
    return max(int((period.end - now).days), 0)


def cycle_progress(anchor_day: int, today: Any = None) -> float:
    """Return the share of the current cycle already elapsed, in percent."""

    now = _resolve_reference(today)
    period = resolve_cycle(anchor_day, now)
    total_days = days_in_cycle(period)
    days_passed = (now - period.start).days
    return float(min(100.0, max(0.0, days_passed / total_days * 100)))


def cycle_spend(
    frame: pd.DataFrame,
    start: pd.Timestamp,
    end: pd.Timestamp,
    *,
    inclusive_end: bool = False,
) -> float:
    """Sum ``amount`` for rows dated within ``start`` and ``end``.

    ``frame`` is expected to come from :func:`transactions_to_frame`, so
    every row already carries a valid amount and date.
    """

    if frame.empty:
        return 0.0
    upper = frame["date"] <= end if inclusive_end else frame["date"] < end
    mask = (frame["date"] >= start) & upper
    return float(frame.loc[mask, "amount"].sum())


def filter_by_cycle(transactions: Iterable[Any], period: BillingPeriod) -> pd.DataFrame:
    """Return valid transactions dated inside ``period``."""

    frame = transactions_to_frame(transactions)
    if frame.empty:
        return frame
    mask = (frame["date"] >= period.start) & (frame["date"] < period.end)
    return frame.loc[mask].reset_index(drop=True)
