"""analytics/performance.py — Commission adjustment, calendar roll-ups and summary stats."""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional, TypeVar

from analytics.pnl_series import as_datetime

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def apply_commission(trades: Iterable[T], per_trade: float) -> list[T]:
    """Return copies with a flat per-trade commission deducted from profit.

    The deducted amount is added to each copy's ``commission``.  Works on any
    pydantic trade model (``CompletedTrade`` or ``JournalTrade``).
    """
    if per_trade < 0:
        raise ValueError(f"Commission must be non-negative, got {per_trade}")
    if not per_trade:
        return list(trades)
    adjusted = []
    for trade in trades:
        existing = getattr(trade, "commission", None) or 0.0
        adjusted.append(
            trade.model_copy(  # type: ignore[attr-defined]
                update={"profit": trade.profit - per_trade, "commission": existing + per_trade}
            )
        )
    LOGGER.debug("Applied $%.2f commission to %d trades", per_trade, len(adjusted))
    return adjusted


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


@dataclass
class DaySummary:
    day: date
    total_pnl: float = 0.0
    trade_count: int = 0
    winners: int = 0
    losers: int = 0
    symbols: list[str] = field(default_factory=list)


def daily_pnl(trades: Iterable[Any], year: int, month: int) -> dict[date, DaySummary]:
    """Group the month's trades by calendar day, ordered by day."""
    days: dict[date, DaySummary] = {}
    for trade in trades:
        when = as_datetime(trade.date)
        if when.year != year or when.month != month:
            continue
        summary = days.setdefault(when.date(), DaySummary(day=when.date()))
        summary.total_pnl += trade.profit
        summary.trade_count += 1
        if trade.profit > 0:
            summary.winners += 1
        elif trade.profit < 0:
            summary.losers += 1
        if trade.symbol not in summary.symbols:
            summary.symbols.append(trade.symbol)
    return dict(sorted(days.items()))


def month_grid(year: int, month: int) -> tuple[int, int]:
    """Return ``(days_in_month, first_weekday)`` where Sunday is 0."""
    monday_based, days_in_month = calendar.monthrange(year, month)
    return days_in_month, (monday_based + 1) % 7


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------


@dataclass
class PerformanceSummary:
    trade_count: int = 0
    winners: int = 0
    losers: int = 0
    breakeven: int = 0
    win_rate: float = 0.0          # percent
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    profit_factor: Optional[float] = None  # None when there are no losses


def summarize(trades: Iterable[Any]) -> PerformanceSummary:
    profits = [trade.profit for trade in trades]
    if not profits:
        return PerformanceSummary()

    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p < 0]
    gross_loss = abs(sum(losses))
    total = sum(profits)

    return PerformanceSummary(
        trade_count=len(profits),
        winners=len(wins),
        losers=len(losses),
        breakeven=len(profits) - len(wins) - len(losses),
        win_rate=len(wins) / len(profits) * 100.0,
        total_pnl=total,
        avg_pnl=total / len(profits),
        largest_win=max(wins, default=0.0),
        largest_loss=min(losses, default=0.0),
        profit_factor=(sum(wins) / gross_loss) if gross_loss else None,
    )
