"""Read-only OurGlass engine dashboard."""

from __future__ import annotations

import asyncio

import pandas as pd
import streamlit as st

from analytics import WealthAggregator, accrue_interest
from config import Settings, get_settings
from core import BudgetSnapshot, WealthSummary, configure_logging
from core.market import MarketDataCache, YahooQuoteSource
from core.sources import CsvLedger
from core.summary_service import prepare_budget_snapshot

_STATUS_LABELS = {"safe": "Safe", "warning": "Warning", "critical": "Critical"}


@st.cache_resource(show_spinner=False)
def _wealth_aggregator(quote_url: str, fx_symbol: str, ttl: float, fallback: float, currency: str) -> WealthAggregator:
    """Keep one aggregator, and so one market cache, per server process."""

    source = YahooQuoteSource(quote_url, fx_symbol)
    cache = MarketDataCache(ttl_seconds=ttl, fallback_fx_rate=fallback)
    return WealthAggregator(source.fetch_quotes, source.fetch_fx_rate, cache, local_currency=currency)


def _load_snapshot(ledger: CsvLedger, settings: Settings) -> BudgetSnapshot:
    return prepare_budget_snapshot(
        ledger.list_transactions(),
        ledger.list_subscriptions(),
        settings.monthly_budget,
        settings.billing_day,
        recurring_options=settings.recurring_kwargs,
        alert_pct=settings.subscription_alert_pct,
    )


def _load_wealth(ledger: CsvLedger, settings: Settings) -> WealthSummary:
    aggregator = _wealth_aggregator(
        settings.quote_url,
        settings.fx_symbol,
        settings.market_cache_ttl_seconds,
        settings.fallback_fx_rate,
        settings.local_currency,
    )
    assets = accrue_interest(ledger.list_assets())
    return asyncio.run(aggregator.aggregate(assets))


def _render_cycle(snapshot: BudgetSnapshot) -> None:
    cycle = snapshot["cycle"]
    st.subheader("Billing cycle")
    st.caption(f"{cycle.start:%d %b %Y} → {cycle.end:%d %b %Y}")
    st.progress(int(snapshot["cycle_progress"]))
    cols = st.columns(3)
    cols[0].metric("Spent", f"{snapshot['spent']:,.0f}")
    cols[1].metric("Left to spend", f"{snapshot['balance']:,.0f}")
    cols[2].metric("Days remaining", snapshot["days_remaining"])


def _render_signals(snapshot: BudgetSnapshot) -> None:
    burn = snapshot["burn_rate"]
    cols = st.columns(2)
    cols[0].metric("Smart streak", f"{snapshot['streak']} days")
    horizon = "never" if burn.projected_zero_date is None else f"{burn.projected_zero_date:%d %b}"
    cols[1].metric("Burn rate", _STATUS_LABELS[burn.status], f"runs out {horizon}", delta_color="off")

    load = snapshot["subscription_load"]
    if load["show_alert"]:
        st.warning(f"Fixed costs take {load['percentage']}% of the monthly budget ({load['fixed_costs']:,.0f}).")

    candidate = snapshot["recurring"]
    if candidate is not None:
        st.info(
            f"{candidate.representative_name} charged {candidate.occurrences} times "
            f"(~{candidate.amount:,.0f}). Track it as a subscription?"
        )


def _render_wealth(summary: WealthSummary) -> None:
    st.subheader("Net worth")
    cols = st.columns(3)
    cols[0].metric("Net worth", f"{summary.net_worth:,.0f}")
    cols[1].metric("Investments", f"{summary.investments_value:,.0f}")
    cols[2].metric("Cash & savings", f"{summary.cash_value:,.0f}")
    if summary.assets:
        st.dataframe(
            pd.DataFrame(
                {
                    "Asset": [asset.symbol or asset.id for asset in summary.assets],
                    "Type": [asset.subtype for asset in summary.assets],
                    "Value": [asset.calculated_value for asset in summary.assets],
                }
            ),
            hide_index=True,
            use_container_width=True,
        )


def main() -> None:
    """Application entrypoint for the OurGlass dashboard."""

    settings = get_settings()
    configure_logging(settings.log_level)
    st.set_page_config(page_title="OurGlass | Budget cycle", page_icon="⏳", layout="wide")

    ledger = CsvLedger(settings.data_dir)
    try:
        snapshot = _load_snapshot(ledger, settings)
    except FileNotFoundError as exc:
        st.info(f"No ledger found: {exc}")
        return

    _render_cycle(snapshot)
    _render_signals(snapshot)
    _render_wealth(_load_wealth(ledger, settings))


if __name__ == "__main__":
    main()
