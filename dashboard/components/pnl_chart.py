"""dashboard/components/pnl_chart.py — Cumulative P&L area chart.

Renders a :class:`models.chart.PnLSeries` as two filled Plotly traces (green
above zero, red below) sharing the synthetic zero-cross points so the colour
change happens exactly on the axis.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import streamlit as st

from models.chart import PnLSeries

LOGGER = logging.getLogger(__name__)

_GREEN = "#22c55e"
_RED = "#ef4444"
_GREEN_FILL = "rgba(34, 197, 94, 0.25)"
_RED_FILL = "rgba(239, 68, 68, 0.25)"


def _x_values(series: PnLSeries) -> list[datetime]:
    return [datetime.fromtimestamp(p.timestamp_ms / 1000.0, tz=timezone.utc) for p in series.points]


def _hover_text(series: PnLSeries) -> list[str]:
    text = []
    for p in series.points:
        if p.interpolated:
            text.append(f"{p.label} · break-even")
        else:
            text.append(
                f"#{p.sequence_index} {p.symbol} · {p.label}<br>"
                f"trade {p.trade_profit:+,.2f} · total {p.cumulative_pnl:+,.2f}"
            )
    return text


def build_pnl_figure(series: PnLSeries, *, height: int = 360) -> Any:
    """Build the Plotly figure for *series*.  Pure: no Streamlit calls."""
    import plotly.graph_objects as go

    x = _x_values(series)
    hover = _hover_text(series)

    fig = go.Figure()
    # Zero-cross points carry 0 in both segments so the fills meet on the axis.
    fig.add_trace(
        go.Scatter(
            x=x,
            y=[0.0 if p.interpolated else p.positive_pnl for p in series.points],
            name="Profit",
            mode="lines",
            line=dict(color=_GREEN, width=2),
            fill="tozeroy",
            fillcolor=_GREEN_FILL,
            connectgaps=False,
            hovertext=hover,
            hoverinfo="text",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=x,
            y=[0.0 if p.interpolated else p.negative_pnl for p in series.points],
            name="Drawdown",
            mode="lines",
            line=dict(color=_RED, width=2),
            fill="tozeroy",
            fillcolor=_RED_FILL,
            connectgaps=False,
            hovertext=hover,
            hoverinfo="text",
        )
    )
    fig.add_hline(y=0, line_dash="dash", line_color="gray", opacity=0.6)

    tick_positions = [x[0], x[-1]][: len(series.x_ticks)] if x else []
    fig.update_layout(
        height=height,
        margin=dict(l=20, r=20, t=20, b=20),
        showlegend=False,
        hovermode="closest",
        yaxis=dict(range=list(series.domain), tickvals=series.y_ticks, tickformat="$,.0f"),
        xaxis=dict(tickvals=tick_positions, ticktext=series.x_ticks),
    )
    return fig


def render_pnl_chart(series: PnLSeries) -> None:
    """Render *series* in the current Streamlit container."""
    if series.is_empty:
        st.info("No trades in this period.")
        return

    final = series.final_pnl
    st.metric("Cumulative P&L", f"${final:,.2f}", delta=f"{final:+,.2f}")
    st.plotly_chart(build_pnl_figure(series), use_container_width=True)
    LOGGER.debug("Rendered P&L chart with %d points", len(series.points))
