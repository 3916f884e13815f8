"""dashboard/components/trade_calendar.py — Monthly P&L calendar grid."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

import streamlit as st

from analytics.performance import daily_pnl, month_grid

LOGGER = logging.getLogger(__name__)

_WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _cell_html(day: int, summary) -> str:
    if summary is None:
        return f"<div style='opacity:.45;padding:.4rem'>{day}</div>"
    color = "#16a34a" if summary.total_pnl > 0 else "#dc2626" if summary.total_pnl < 0 else "#64748b"
    return (
        f"<div style='border-left:3px solid {color};padding:.4rem'>"
        f"<b>{day}</b><br>"
        f"<span style='color:{color};font-weight:600'>${summary.total_pnl:,.2f}</span><br>"
        f"<small>{summary.trade_count} trade{'s' if summary.trade_count != 1 else ''}</small>"
        f"</div>"
    )


def render_trade_calendar(trades: Iterable[Any], year: int, month: int) -> None:
    """Seven-column grid of daily P&L for *year*/*month* (weeks start Sunday)."""
    days = daily_pnl(trades, year, month)
    days_in_month, offset = month_grid(year, month)

    header = st.columns(7)
    for col, name in zip(header, _WEEKDAYS):
        col.markdown(f"**{name}**")

    cells: list[int | None] = [None] * offset + list(range(1, days_in_month + 1))
    for week_start in range(0, len(cells), 7):
        row = st.columns(7)
        for col, day in zip(row, cells[week_start:week_start + 7]):
            if day is None:
                continue
            col.markdown(_cell_html(day, days.get(date(year, month, day))), unsafe_allow_html=True)

    LOGGER.debug("Rendered calendar %d-%02d with %d active days", year, month, len(days))
