"""tests/test_dashboard_helpers.py — Non-rendering helpers used by the Streamlit pages."""
from __future__ import annotations

import asyncio
from datetime import datetime

from dashboard.components.trade_import import trades_to_frame
from dashboard.components.trade_journal_view import rows_to_frame, run_async
from models.trade import CompletedTrade


def _completed() -> CompletedTrade:
    return CompletedTrade(
        date=datetime(2025, 10, 15, 9, 30),
        symbol="ESZ5",
        quantity=1,
        entry_price=100.0,
        exit_price=101.256,
        profit=62.8049,
    )


def test_trades_to_frame():
    frame = trades_to_frame([_completed()])
    assert list(frame["Date"]) == ["2025-10-15 09:30:00"]
    assert list(frame["P&L"]) == [62.8]
    assert list(frame["Side"]) == ["LONG"]


def test_rows_to_frame_formats_iso_dates():
    frame = rows_to_frame([{"date": "2025-10-15T09:30:00", "symbol": "ESZ5", "profit": 5.0}])
    assert frame.loc[0, "Date"] == "2025-10-15 09:30:00"
    assert frame.loc[0, "Side"] == "—"


def test_run_async_without_loop(store):
    assert run_async(store.query_trades()) == []


def test_run_async_inside_running_loop(store):
    async def outer():
        return run_async(store.query_trades())

    assert asyncio.run(outer()) == []
