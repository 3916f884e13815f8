"""analytics/pnl_series.py — Cumulative P&L series for the performance chart.

build_pnl_series() filters trades to a month or year window, orders them,
accumulates a running P&L, inserts a synthetic zero point wherever the line
changes sign, and computes the padded Y-axis domain and tick labels.

Trades are duck-typed: anything exposing ``date``, ``profit`` and ``symbol``
(and optionally ``entry_time``) works, so both importer output
(:class:`models.trade.CompletedTrade`) and stored rows
(:class:`models.trade.JournalTrade`) can be charted.

Usage example::

    series = build_pnl_series(trades, ViewMode.MONTHLY, date(2025, 10, 1))
    series.domain      # (-87.5, 137.5)
    series.x_ticks     # ["Oct 01", "Oct 28"]
"""
from __future__ import annotations

import functools
import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable, Sequence

from models.chart import ChartPoint, PnLSeries, ViewMode

LOGGER = logging.getLogger(__name__)

DOMAIN_PADDING = 0.25
LABEL_FORMAT = "%b %d"
Y_TICK_COUNT = 5


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"Unsupported trade date type: {type(value).__name__}")


def timestamp_ms(value: Any) -> float:
    """Epoch milliseconds; naive datetimes are read as UTC."""
    moment = as_datetime(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp() * 1000.0


def _label_from_ms(ms: float) -> str:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc).strftime(LABEL_FORMAT)


# ---------------------------------------------------------------------------
# Filtering & ordering
# ---------------------------------------------------------------------------


def filter_trades(trades: Iterable[Any], view_mode: ViewMode | str, reference_date: date) -> list[Any]:
    """Keep trades in the reference month (monthly) or year (yearly)."""
    mode = ViewMode(view_mode)
    kept = []
    for trade in trades:
        when = as_datetime(trade.date)
        if when.year != reference_date.year:
            continue
        if mode is ViewMode.MONTHLY and when.month != reference_date.month:
            continue
        kept.append(trade)
    return kept


def _compare_trades(a: Any, b: Any) -> int:
    ta, tb = timestamp_ms(a.date), timestamp_ms(b.date)
    if ta != tb:
        return -1 if ta < tb else 1
    ea, eb = getattr(a, "entry_time", None), getattr(b, "entry_time", None)
    if ea and eb and ea != eb:
        return -1 if ea < eb else 1
    return 0


def sort_trades(trades: Iterable[Any]) -> list[Any]:
    """Chronological order; equal timestamps fall back to entry_time, then input order."""
    return sorted(trades, key=functools.cmp_to_key(_compare_trades))


# ---------------------------------------------------------------------------
# Series construction
# ---------------------------------------------------------------------------


def cumulative_points(ordered: Sequence[Any]) -> list[ChartPoint]:
    running = 0.0
    points: list[ChartPoint] = []
    for seq, trade in enumerate(ordered, start=1):
        running += trade.profit
        when = as_datetime(trade.date)
        points.append(
            ChartPoint(
                label=when.strftime(LABEL_FORMAT),
                cumulative_pnl=round(running, 2),
                raw_cumulative_pnl=running,
                trade_profit=trade.profit,
                timestamp_ms=timestamp_ms(when),
                sequence_index=seq,
                symbol=trade.symbol,
            )
        )
    return points


def _crosses_zero(prev: float, curr: float) -> bool:
    return (prev < 0 <= curr) or (curr < 0 <= prev)


def interpolate_zero_crossings(points: Sequence[ChartPoint]) -> list[ChartPoint]:
    """Insert a 0-valued point before each real point that flips sign class."""
    result: list[ChartPoint] = []
    for idx, point in enumerate(points):
        if idx > 0:
            prev = points[idx - 1]
            if _crosses_zero(prev.cumulative_pnl, point.cumulative_pnl):
                ratio = abs(prev.cumulative_pnl) / (abs(prev.cumulative_pnl) + abs(point.cumulative_pnl))
                ms = prev.timestamp_ms + (point.timestamp_ms - prev.timestamp_ms) * ratio
                result.append(
                    ChartPoint(
                        label=_label_from_ms(ms),
                        cumulative_pnl=0.0,
                        trade_profit=0.0,
                        timestamp_ms=ms,
                        interpolated=True,
                    )
                )
        result.append(point)
    return result


def compute_domain(points: Sequence[ChartPoint]) -> tuple[float, float, tuple[float, float]]:
    """Return ``(min_pnl, max_pnl, padded_domain)``; empty input gives zeros."""
    if not points:
        return 0.0, 0.0, (0.0, 0.0)
    values = [p.cumulative_pnl for p in points]
    min_pnl = min(0.0, *values)
    max_pnl = max(0.0, *values)
    pad = (max_pnl - min_pnl) * DOMAIN_PADDING
    return min_pnl, max_pnl, (min_pnl - pad, max_pnl + pad)


def x_ticks(points: Sequence[ChartPoint]) -> list[str]:
    if not points:
        return []
    if len(points) == 1:
        return [points[0].label]
    return [points[0].label, points[-1].label]


def y_ticks(min_pnl: float, max_pnl: float) -> list[float]:
    """Evenly spaced ticks over the unpadded range, with 0 when the range spans it."""
    step = (max_pnl - min_pnl) / (Y_TICK_COUNT - 1)
    ticks = {round(min_pnl + step * i, 2) for i in range(Y_TICK_COUNT - 1)}
    ticks.add(round(max_pnl, 2))
    if min_pnl < 0 < max_pnl:
        ticks.add(0.0)
    return sorted(ticks)


def build_pnl_series(
    trades: Iterable[Any],
    view_mode: ViewMode | str,
    reference_date: date,
) -> PnLSeries:
    """Filter, order and accumulate *trades* into a chart-ready series.

    Raises ``ValueError`` for an unknown view mode.
    """
    mode = ViewMode(view_mode)
    selected = filter_trades(trades, mode, reference_date)
    points = interpolate_zero_crossings(cumulative_points(sort_trades(selected)))
    min_pnl, max_pnl, domain = compute_domain(points)

    LOGGER.debug(
        "P&L series (%s, %s): %d trades, %d points, domain=%s",
        mode.value, reference_date, len(selected), len(points), domain,
    )
    return PnLSeries(
        view_mode=mode,
        points=points,
        min_pnl=min_pnl,
        max_pnl=max_pnl,
        domain=domain,
        x_ticks=x_ticks(points),
        y_ticks=y_ticks(min_pnl, max_pnl),
    )
