"""Centralised configuration handling for OurGlass."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import streamlit as st
from pydantic_settings import BaseSettings, SettingsConfigDict

from analytics.cycles import DEFAULT_ANCHOR_DAY
from analytics.recurring import DEFAULT_ALPHABETS
from core.market import DEFAULT_QUOTE_URL

DEFAULT_BILLING_DAY = DEFAULT_ANCHOR_DAY
DEFAULT_FALLBACK_FX_RATE = 3.7


def _streamlit_section(name: str) -> Mapping[str, Any] | None:
    """Return a mapping from Streamlit secrets for the given section."""

    try:
        if hasattr(st, "secrets") and name in st.secrets:
            section = st.secrets[name]
            if isinstance(section, Mapping):
                return section
            return dict(section)
    except Exception:  # pragma: no cover - accessing secrets may fail in tests
        return None
    return None


class Settings(BaseSettings):
    """Engine settings sourced from env vars and Streamlit secrets."""

    billing_day: int = DEFAULT_BILLING_DAY
    monthly_budget: float = 0.0
    local_currency: str = "ILS"
    fallback_fx_rate: float = DEFAULT_FALLBACK_FX_RATE
    market_cache_ttl_seconds: float = 3600.0
    quote_url: str = DEFAULT_QUOTE_URL

    recurring_amount_tolerance: float = 0.10
    recurring_day_tolerance: float = 5.0
    merchant_alphabets: str = DEFAULT_ALPHABETS
    subscription_alert_pct: float = 40.0

    data_dir: Path = Path("data")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="OURGLASS_", extra="ignore")

    @property
    def fx_symbol(self) -> str:
        return f"{self.local_currency.upper()}=X"

    @property
    def recurring_kwargs(self) -> dict[str, Any]:
        return {
            "amount_tolerance": self.recurring_amount_tolerance,
            "day_tolerance": self.recurring_day_tolerance,
            "alphabets": self.merchant_alphabets,
        }


@lru_cache
def get_settings() -> Settings:
    """Load and cache engine settings."""

    overrides: dict[str, Any] = {}
    secrets_section = _streamlit_section("ourglass")
    if secrets_section:
        overrides = {name: secrets_section.get(name) for name in Settings.model_fields}

    return Settings(**{k: v for k, v in overrides.items() if v is not None})
