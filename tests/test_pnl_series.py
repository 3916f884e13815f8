"""tests/test_pnl_series.py — Cumulative P&L series construction."""
from __future__ import annotations

from datetime import date, datetime

import pytest

from analytics.pnl_series import build_pnl_series, sort_trades, timestamp_ms, y_ticks
from models.chart import ViewMode

OCT = date(2025, 10, 1)


# ---------------------------------------------------------------------------
# Cumulative values & ordering
# ---------------------------------------------------------------------------


class TestCumulative:
    def test_prefix_sum_in_sorted_order(self, make_trade):
        trades = [
            make_trade(datetime(2025, 10, 3, 10), 25.0),
            make_trade(datetime(2025, 10, 1, 10), 100.0),
            make_trade(datetime(2025, 10, 2, 10), 50.0),
        ]
        series = build_pnl_series(trades, ViewMode.MONTHLY, OCT)

        assert [p.trade_profit for p in series.points] == [100.0, 50.0, 25.0]
        assert [p.cumulative_pnl for p in series.points] == [100.0, 150.0, 175.0]
        assert [p.sequence_index for p in series.points] == [1, 2, 3]

    def test_values_rounded_to_cents(self, make_trade):
        trades = [
            make_trade(datetime(2025, 10, 1), 33.333),
            make_trade(datetime(2025, 10, 2), 33.333),
        ]
        series = build_pnl_series(trades, "monthly", OCT)
        assert [p.cumulative_pnl for p in series.points] == [33.33, 66.67]

    def test_unrounded_running_sum_is_kept(self, make_trade):
        trades = [make_trade(datetime(2025, 10, d), 1.234) for d in (1, 2, 3)]
        points = build_pnl_series(trades, "monthly", OCT).points

        assert [p.cumulative_pnl for p in points] == [1.23, 2.47, 3.7]
        assert [p.raw_cumulative_pnl for p in points] == pytest.approx([1.234, 2.468, 3.702])

    def test_equal_dates_tie_break_on_entry_time(self, make_trade):
        when = datetime(2025, 10, 1)
        trades = [
            make_trade(when, 1.0, symbol="LATE", entry_time="10:00:00"),
            make_trade(when, 2.0, symbol="EARLY", entry_time="09:00:00"),
        ]
        assert [t.symbol for t in sort_trades(trades)] == ["EARLY", "LATE"]

    def test_equal_dates_without_entry_time_keep_input_order(self, make_trade):
        when = datetime(2025, 10, 1)
        trades = [make_trade(when, 1.0, symbol="FIRST"), make_trade(when, 2.0, symbol="SECOND")]
        assert [t.symbol for t in sort_trades(trades)] == ["FIRST", "SECOND"]

    def test_symbol_and_label_carried(self, make_trade):
        series = build_pnl_series([make_trade(datetime(2025, 10, 5, 14), 10.0, symbol="MNQZ5")], "monthly", OCT)
        point = series.points[0]
        assert point.symbol == "MNQZ5"
        assert point.label == "Oct 05"
        assert point.timestamp_ms == timestamp_ms(datetime(2025, 10, 5, 14))


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    def _trades(self, make_trade):
        return [
            make_trade(datetime(2024, 10, 15), 1.0),
            make_trade(datetime(2025, 9, 30), 2.0),
            make_trade(datetime(2025, 10, 1), 4.0),
            make_trade(datetime(2025, 10, 31, 23, 59), 8.0),
            make_trade(datetime(2025, 11, 1), 16.0),
        ]

    def test_monthly_keeps_reference_month(self, make_trade):
        series = build_pnl_series(self._trades(make_trade), ViewMode.MONTHLY, date(2025, 10, 20))
        assert [p.trade_profit for p in series.points] == [4.0, 8.0]

    def test_yearly_keeps_reference_year(self, make_trade):
        series = build_pnl_series(self._trades(make_trade), ViewMode.YEARLY, date(2025, 10, 20))
        assert [p.trade_profit for p in series.points] == [2.0, 4.0, 8.0, 16.0]

    def test_unknown_view_mode_rejected(self, make_trade):
        with pytest.raises(ValueError):
            build_pnl_series([], "weekly", OCT)


# ---------------------------------------------------------------------------
# Zero-crossing interpolation
# ---------------------------------------------------------------------------


class TestZeroCrossing:
    def test_single_synthetic_point_at_expected_fraction(self, make_trade):
        t1, t2 = datetime(2025, 10, 1), datetime(2025, 10, 9)
        series = build_pnl_series([make_trade(t1, -50.0), make_trade(t2, 80.0)], "monthly", OCT)

        assert [p.cumulative_pnl for p in series.points] == [-50.0, 0.0, 30.0]
        synthetic = series.points[1]
        assert synthetic.interpolated
        assert synthetic.sequence_index is None
        assert synthetic.symbol is None
        assert synthetic.trade_profit == 0.0

        start, end = timestamp_ms(t1), timestamp_ms(t2)
        assert synthetic.timestamp_ms == pytest.approx(start + (end - start) * 0.625)
        assert start < synthetic.timestamp_ms < end
        assert synthetic.label == "Oct 06"

    def test_no_point_when_sign_unchanged(self, make_trade):
        trades = [make_trade(datetime(2025, 10, d), 10.0) for d in (1, 2, 3)]
        series = build_pnl_series(trades, "monthly", OCT)
        assert not any(p.interpolated for p in series.points)

    def test_crossing_down_through_zero(self, make_trade):
        trades = [make_trade(datetime(2025, 10, 1), 20.0), make_trade(datetime(2025, 10, 2), -30.0)]
        series = build_pnl_series(trades, "monthly", OCT)
        assert [p.interpolated for p in series.points] == [False, True, False]

    def test_colour_segments(self, make_trade):
        trades = [make_trade(datetime(2025, 10, 1), -50.0), make_trade(datetime(2025, 10, 2), 80.0)]
        points = build_pnl_series(trades, "monthly", OCT).points

        assert points[0].positive_pnl is None and points[0].negative_pnl == -50.0
        assert points[1].positive_pnl == 0.0 and points[1].negative_pnl is None
        assert points[2].positive_pnl == 30.0 and points[2].negative_pnl is None


# ---------------------------------------------------------------------------
# Domain & ticks
# ---------------------------------------------------------------------------


class TestDomain:
    def test_padded_domain(self, make_trade):
        trades = [make_trade(datetime(2025, 10, 1), -50.0), make_trade(datetime(2025, 10, 20), 150.0)]
        series = build_pnl_series(trades, "monthly", OCT)

        assert series.min_pnl == -50.0
        assert series.max_pnl == 100.0
        assert series.domain == pytest.approx((-87.5, 137.5))
        assert series.x_ticks == ["Oct 01", "Oct 20"]

    def test_domain_always_includes_zero(self, make_trade):
        trades = [make_trade(datetime(2025, 10, 1), 40.0), make_trade(datetime(2025, 10, 2), 60.0)]
        series = build_pnl_series(trades, "monthly", OCT)
        assert series.min_pnl == 0.0
        assert series.domain == pytest.approx((-25.0, 125.0))

    def test_empty_series(self):
        series = build_pnl_series([], ViewMode.YEARLY, OCT)

        assert series.is_empty
        assert series.points == []
        assert series.domain == (0.0, 0.0)
        assert series.x_ticks == []
        assert series.final_pnl == 0.0

    def test_y_ticks_insert_zero_when_spanning(self):
        assert y_ticks(-50.0, 100.0) == [-50.0, -12.5, 0.0, 25.0, 62.5, 100.0]

    def test_y_ticks_positive_range(self):
        assert y_ticks(0.0, 100.0) == [0.0, 25.0, 50.0, 75.0, 100.0]

    def test_builder_is_idempotent(self, make_trade):
        trades = [make_trade(datetime(2025, 10, d), p) for d, p in ((1, -20.0), (2, 45.0), (3, -60.0))]
        first = build_pnl_series(trades, "monthly", OCT)
        second = build_pnl_series(trades, "monthly", OCT)
        assert first == second
