"""dashboard/pages/performance.py — Calendar and cumulative P&L chart."""
from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

import streamlit as st

_ROOT = Path(__file__).resolve().parents[2]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import aiosqlite  # type: ignore[import]

from analytics.performance import apply_commission, summarize
from analytics.pnl_series import build_pnl_series, filter_trades
from dashboard.app import get_services
from dashboard.components.pnl_chart import render_pnl_chart
from dashboard.components.trade_calendar import render_trade_calendar
from dashboard.components.trade_journal_view import run_async
from models.chart import ViewMode

LOGGER = logging.getLogger(__name__)

st.title("📈 Performance")

try:
    config, store, _instruments = get_services()
except ValueError as exc:
    st.error(f"Journal configuration invalid: {exc}")
    st.stop()

# ── Controls ──────────────────────────────────────────────────────────────────
col_date, col_view, col_comm = st.columns([2, 2, 1])
with col_date:
    reference = st.date_input("Period", value=date.today(), key="perf_reference")
with col_view:
    view_label = st.radio("View", ["Monthly", "Yearly"], horizontal=True, key="perf_view")
with col_comm:
    commission = st.number_input(
        "Commission / trade", min_value=0.0, step=0.25,
        value=float(config.commission_per_trade), key="perf_commission",
    )

view_mode = ViewMode(view_label.lower())

try:
    trades = run_async(store.load_trades(profile_id=config.profile_id, limit=100_000))
except aiosqlite.Error as exc:
    LOGGER.error("Could not load trades: %s", exc)
    st.error(f"Could not load trades: {exc}")
    st.stop()

trades = apply_commission(trades, commission)

# ── Summary ───────────────────────────────────────────────────────────────────
stats = summarize(filter_trades(trades, view_mode, reference))
m1, m2, m3, m4, m5 = st.columns(5)
m1.metric("Trades", stats.trade_count)
m2.metric("Win rate", f"{stats.win_rate:.1f}%")
m3.metric("Avg P&L", f"${stats.avg_pnl:+,.2f}")
m4.metric("Largest win", f"${stats.largest_win:,.2f}")
m5.metric("Largest loss", f"${stats.largest_loss:,.2f}")

# ── Chart ─────────────────────────────────────────────────────────────────────
st.markdown(f"#### Cumulative P&L — {reference:%B %Y}" if view_mode is ViewMode.MONTHLY
            else f"#### Cumulative P&L — {reference:%Y}")
render_pnl_chart(build_pnl_series(trades, view_mode, reference))

# ── Calendar ──────────────────────────────────────────────────────────────────
if view_mode is ViewMode.MONTHLY:
    st.markdown(f"#### {reference:%B %Y}")
    render_trade_calendar(trades, reference.year, reference.month)
