"""Snapshot loading and normalisation for the OurGlass engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

import numpy as np
import pandas as pd

from core.models import Asset, Subscription, Transaction, coerce_float

__all__ = [
    "TRANSACTION_COLUMNS",
    "load_transactions",
    "load_assets",
    "load_subscriptions",
    "transactions_to_frame",
    "to_timestamp",
    "record_field",
]


_CACHE_SIZE: Final[int] = 8

TRANSACTION_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "amount",
    "date",
    "payer",
    "category",
    "description",
)


def record_field(record: Any, name: str) -> Any:
    """Read ``name`` from a dataclass-like object or a mapping; missing is ``None``."""

    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def to_timestamp(value: Any) -> pd.Timestamp | None:
    """Return a naive ``Timestamp`` for ``value`` or ``None`` when unparseable."""

    if value is None:
        return None
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(stamp):
        return None
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    return stamp


def transactions_to_frame(transactions: Iterable[Any] | None) -> pd.DataFrame:
    """Return valid transactions as a DataFrame, preserving input order.

    Rows whose amount is not a positive finite number, or whose date is
    missing or unparseable, are dropped. Accepts :class:`Transaction`
    instances or plain mappings with the same keys.
    """

    records = [
        {column: record_field(record, column) for column in TRANSACTION_COLUMNS}
        for record in (transactions or [])
        if record is not None
    ]
    frame = pd.DataFrame(records, columns=list(TRANSACTION_COLUMNS))
    if frame.empty:
        frame["amount"] = frame["amount"].astype(float)
        frame["date"] = pd.to_datetime(frame["date"])
        return frame

    frame["amount"] = pd.to_numeric(frame["amount"], errors="coerce")
    frame["date"] = frame["date"].map(to_timestamp)
    frame["date"] = pd.to_datetime(frame["date"])

    valid = (frame["amount"] > 0) & np.isfinite(frame["amount"]) & frame["date"].notna()
    return frame.loc[valid].reset_index(drop=True)


@lru_cache(maxsize=_CACHE_SIZE)
def _read_csv(csv_path: Path) -> pd.DataFrame:
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")
    return pd.read_csv(csv_path)


def _optional_str(value: Any) -> str | None:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


def load_transactions(csv_path: str | Path) -> list[Transaction]:
    """Return transactions stored in ``csv_path``.

    Parsed frames are cached to avoid redundant disk reads when the dashboard
    recomputes signals for the same file. Invalid rows are kept here; the
    analytics layer excludes them.
    """

    df = _read_csv(Path(csv_path))
    return [
        Transaction(
            id=str(row.get("id", index)),
            amount=coerce_float(row.get("amount"), default=float("nan")),
            date=to_timestamp(row.get("date")),
            payer=_optional_str(row.get("payer")) or "joint",
            category=_optional_str(row.get("category")) or "",
            description=_optional_str(row.get("description")),
        )
        for index, row in enumerate(df.to_dict(orient="records"))
    ]


def load_assets(csv_path: str | Path) -> list[Asset]:
    """Return assets stored in ``csv_path``."""

    df = _read_csv(Path(csv_path))
    assets: list[Asset] = []
    for index, row in enumerate(df.to_dict(orient="records")):
        quantity = row.get("quantity")
        assets.append(
            Asset(
                id=str(row.get("id", index)),
                kind=_optional_str(row.get("kind")) or "cash",
                stored_value=coerce_float(row.get("stored_value")),
                symbol=_optional_str(row.get("symbol")),
                quantity=None if _optional_str(quantity) is None else coerce_float(quantity),
                annual_yield_pct=coerce_float(row.get("annual_yield_pct")),
                investment_subtype=_optional_str(row.get("investment_subtype")),
                currency=_optional_str(row.get("currency")) or "USD",
                last_accrued_at=to_timestamp(row.get("last_accrued_at")),
            )
        )
    return assets


def load_subscriptions(csv_path: str | Path) -> list[Subscription]:
    """Return tracked subscriptions stored in ``csv_path``."""

    df = _read_csv(Path(csv_path))
    return [
        Subscription(
            id=str(row.get("id", index)),
            name=_optional_str(row.get("name")) or "",
            amount=coerce_float(row.get("amount")),
            billing_day=int(coerce_float(row.get("billing_day"), default=1.0)),
            owner=_optional_str(row.get("owner")) or "joint",
        )
        for index, row in enumerate(df.to_dict(orient="records"))
    ]
