"""dashboard/components/trade_import.py — Upload → detect → preview → save flow."""
from __future__ import annotations

import logging
from typing import Optional

import aiosqlite  # type: ignore[import]
import streamlit as st

from analytics.instruments import InstrumentTable
from dashboard.components.trade_journal_view import run_async
from importers.base_importer import TradeProvider
from importers.registry import detect_trade_provider, parse_trade_file
from models.trade import CompletedTrade, PositionMode

logger = logging.getLogger(__name__)

_AUTO = "Auto-detect"


def trades_to_frame(trades: list[CompletedTrade]):
    import pandas as pd

    return pd.DataFrame(
        [
            {
                "Date": t.date.strftime("%Y-%m-%d %H:%M:%S"),
                "Symbol": t.symbol,
                "Side": t.side.value,
                "Qty": t.quantity,
                "Entry": t.entry_price,
                "Exit": t.exit_price,
                "P&L": round(t.profit, 2),
                "Commission": t.commission,
            }
            for t in trades
        ]
    )


def render_trade_import(
    store,
    *,
    profile_id: str = "default",
    instruments: Optional[InstrumentTable] = None,
    position_mode: PositionMode = PositionMode.OVERWRITE,
) -> None:
    """Render the import panel and save parsed trades into *store*."""
    st.subheader("📥 Import trades")

    uploaded = st.file_uploader(
        "Broker export", type=["txt", "csv", "tsv"], key="ti_upload",
        help="Sierra Chart activity log, Tradovate, TradingView, IBKR, Robinhood, thinkorswim or TopOne CSV",
    )
    if uploaded is None:
        return

    content = uploaded.getvalue().decode("utf-8-sig", errors="replace")
    detected = detect_trade_provider(content)

    col_provider, col_mode = st.columns(2)
    with col_provider:
        options = [_AUTO] + [p.value for p in TradeProvider if p is not TradeProvider.UNKNOWN]
        choice = st.selectbox("Provider", options, index=0, key="ti_provider")
        st.caption(f"Detected: **{detected.value}**")
    with col_mode:
        modes = [m.value for m in PositionMode]
        mode = st.selectbox(
            "Sierra Chart pairing", modes, index=modes.index(PositionMode(position_mode).value),
            key="ti_mode",
        )

    provider = detected if choice == _AUTO else TradeProvider(choice)
    trades = parse_trade_file(content, provider, instruments=instruments, position_mode=mode)
    logger.info("Upload %s parsed as %s: %d trades", uploaded.name, provider.value, len(trades))

    if not trades:
        st.warning("No completed trades found in this file.")
        return

    st.dataframe(trades_to_frame(trades), use_container_width=True, hide_index=True)
    st.caption(f"{len(trades)} trades · net {sum(t.profit for t in trades):+,.2f}")

    if st.button(f"Save {len(trades)} trades", type="primary", key="ti_save"):
        try:
            result = run_async(store.bulk_import(trades, profile_id=profile_id))
        except aiosqlite.Error as exc:
            logger.error("Import into store failed: %s", exc)
            st.error(f"Import failed: {exc}")
            return
        st.success(
            f"Imported {result.imported_count} trades"
            + (f" ({result.skipped} duplicates skipped)" if result.skipped else "")
        )
