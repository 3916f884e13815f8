"""dashboard/components/trade_journal_view.py — Stored trades table.

Renders the journal tab with:
- Reverse-chronological trade table for the active profile
- Date range / symbol filters
- Summary metrics (net P&L, win rate, profit factor)
- Row deletion and CSV export
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

import aiosqlite  # type: ignore[import]

from analytics.performance import summarize
from models.trade import JournalTrade

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Async helper (Streamlit runs synchronously; TradeStore is async)
# ---------------------------------------------------------------------------

def run_async(coro):
    """Run an async coroutine from a synchronous Streamlit context."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result(timeout=30)


def rows_to_frame(rows: list[dict[str, Any]]):
    """Display-ready DataFrame for trade rows (newest first)."""
    import pandas as pd

    display_rows = [
        {
            "Date": (r.get("date") or "")[:19].replace("T", " "),
            "Symbol": r.get("symbol", ""),
            "Side": r.get("side") or "—",
            "Qty": r.get("quantity"),
            "Entry": r.get("entry_price"),
            "Exit": r.get("exit_price"),
            "P&L": r.get("profit"),
            "Commission": r.get("commission"),
            "Setup": r.get("setup") or "",
            "Rating": r.get("rating"),
        }
        for r in rows
    ]
    return pd.DataFrame(display_rows)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def render_trade_journal(store, profile_id: str = "default") -> None:
    """Render the stored-trades panel.

    Parameters
    ----------
    store:
        A ``TradeStore`` instance.
    profile_id:
        Trading profile whose trades are listed.
    """
    import streamlit as st

    st.subheader("📓 Trades")

    if store is None:
        st.warning("Trade journal unavailable — TradeStore not configured.")
        return

    # ── Filters ──────────────────────────────────────────────────────────────
    with st.expander("🔍 Filters", expanded=False):
        col1, col2 = st.columns(2)
        with col1:
            today = date.today()
            date_options = {
                "Last 7 days": (today - timedelta(days=7), today),
                "Last 30 days": (today - timedelta(days=30), today),
                "Year to date": (date(today.year, 1, 1), today),
                "All time": (None, None),
            }
            selected_range = st.selectbox(
                "Date range", list(date_options.keys()), index=3, key="tj_date_range",
            )
            start_date, end_date = date_options[selected_range]
        with col2:
            symbol_filter = st.text_input(
                "Symbol", value="", placeholder="e.g. ES, MNQ, SPY", key="tj_symbol",
            )

    start_dt = start_date.isoformat() if start_date else None
    end_dt = f"{end_date.isoformat()}T23:59:59" if end_date else None

    # ── Fetch rows ────────────────────────────────────────────────────────────
    try:
        with st.spinner("Loading trades…"):
            rows = run_async(
                store.query_trades(
                    profile_id=profile_id,
                    start_dt=start_dt,
                    end_dt=end_dt,
                    symbol=symbol_filter.strip() or None,
                    limit=5000,
                )
            )
    except aiosqlite.Error as exc:
        logger.error("Trade query failed: %s", exc)
        st.error(f"Could not load trades: {exc}")
        return

    if not rows:
        st.info("No trades match the current filters.")
        return

    # ── Summary metrics ───────────────────────────────────────────────────────
    stats = summarize(JournalTrade.from_row(r) for r in rows)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Trades", stats.trade_count)
    m2.metric("Net P&L", f"${stats.total_pnl:+,.2f}")
    m3.metric("Win rate", f"{stats.win_rate:.1f}%")
    m4.metric("Profit factor", f"{stats.profit_factor:.2f}" if stats.profit_factor else "—")

    st.dataframe(rows_to_frame(rows), use_container_width=True, hide_index=True)

    # ── Delete a row ──────────────────────────────────────────────────────────
    with st.expander("🗑 Delete trade", expanded=False):
        labels = {
            f"{(r.get('date') or '')[:19]}  {r.get('symbol')}  {r.get('profit'):+,.2f}": r["id"]
            for r in rows
        }
        choice = st.selectbox("Trade", list(labels.keys()), key="tj_delete_choice")
        if st.button("Delete", key="tj_delete_btn"):
            try:
                removed = run_async(store.delete_trade(labels[choice]))
            except aiosqlite.Error as exc:
                st.error(f"Delete failed: {exc}")
            else:
                if removed:
                    st.success("Trade deleted.")
                    st.rerun()

    # ── Export CSV ────────────────────────────────────────────────────────────
    csv_data = store.export_csv(rows)
    if csv_data:
        st.download_button(
            label="⬇ Export CSV",
            data=csv_data,
            file_name=f"trades_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.csv",
            mime="text/csv",
            help="Download all filtered trades as a CSV file",
        )
