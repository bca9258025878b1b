"""Shared pytest fixtures for the OurGlass engine tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import get_settings  # noqa: E402
from core.models import Transaction  # noqa: E402


@pytest.fixture(autouse=True)
def clear_streamlit_secrets(monkeypatch):
    """Provide an empty secrets mapping so tests don't rely on Streamlit runtime."""

    monkeypatch.setattr(st, "secrets", {}, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def make_tx():
    counter = iter(range(1, 10_000))

    def _make(amount, date, description="Groceries", **extra):
        return Transaction(
            id=f"tx-{next(counter)}",
            amount=amount,
            date=date,
            description=description,
            **extra,
        )

    return _make
