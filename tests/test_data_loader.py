"""Tests for snapshot normalisation and the CSV-backed ledger."""

from __future__ import annotations

import pandas as pd
import pytest

from core.data_loader import to_timestamp, transactions_to_frame
from core.sources import CsvLedger


def test_transactions_to_frame_drops_invalid_rows(make_tx):
    frame = transactions_to_frame(
        [
            make_tx(12.5, "2024-03-02", "Coffee"),
            make_tx(0.0, "2024-03-02"),
            make_tx(-4.0, "2024-03-02"),
            make_tx(float("nan"), "2024-03-02"),
            make_tx("abc", "2024-03-02"),
            make_tx(8.0, None),
            make_tx(8.0, "not a date"),
            {"id": "m1", "amount": "7.25", "date": "2024-03-01", "description": "Bakery"},
        ]
    )

    assert frame["amount"].tolist() == [12.5, 7.25]
    assert frame["description"].tolist() == ["Coffee", "Bakery"]
    assert frame["date"].tolist() == [pd.Timestamp("2024-03-02"), pd.Timestamp("2024-03-01")]


def test_transactions_to_frame_handles_empty_input():
    frame = transactions_to_frame([])

    assert frame.empty
    assert list(frame.columns) == ["id", "amount", "date", "payer", "category", "description"]
    assert transactions_to_frame(None).empty


def test_to_timestamp_strips_timezone():
    stamp = to_timestamp("2024-03-02T10:00:00+02:00")

    assert stamp == pd.Timestamp("2024-03-02 08:00")
    assert stamp.tzinfo is None
    assert to_timestamp(None) is None
    assert to_timestamp("garbage") is None


@pytest.fixture()
def ledger(tmp_path):
    (tmp_path / "transactions.csv").write_text(
        "id,amount,date,payer,category,description\n"
        "t1,40.0,2024-03-01,A,groceries,Market\n"
        "t2,,2024-03-05,B,dining,\n"
        "t3,15.0,2024-04-02,joint,transport,Bus\n",
        encoding="utf-8",
    )
    (tmp_path / "assets.csv").write_text(
        "id,kind,stored_value,symbol,quantity,annual_yield_pct,investment_subtype,currency,last_accrued_at\n"
        "a1,stock,1000,AAPL,10,0,,USD,\n"
        "a2,cash,500,,,3,,ILS,2024-01-01\n",
        encoding="utf-8",
    )
    return CsvLedger(tmp_path)


def test_csv_ledger_reads_transactions(ledger):
    transactions = ledger.list_transactions()

    assert [tx.id for tx in transactions] == ["t1", "t2", "t3"]
    assert transactions[1].description is None
    assert pd.isna(transactions[1].amount)

    march = ledger.list_transactions(("2024-03-01", "2024-04-01"))
    assert [tx.id for tx in march] == ["t1", "t2"]


def test_csv_ledger_reads_assets_and_tolerates_missing_files(ledger):
    assets = ledger.list_assets()

    assert assets[0].symbol == "AAPL"
    assert assets[0].quantity == 10
    assert assets[1].symbol is None
    assert assets[1].quantity is None
    assert assets[1].last_accrued_at == pd.Timestamp("2024-01-01")
    assert ledger.list_subscriptions() == []


def test_csv_ledger_requires_transactions(tmp_path):
    with pytest.raises(FileNotFoundError):
        CsvLedger(tmp_path).list_transactions()
