"""models/chart.py — Chart-ready P&L series models.

Produced by analytics/pnl_series.py, consumed by the dashboard chart and the CLI.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field


class ViewMode(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ChartPoint(BaseModel):
    """One point of the cumulative P&L line.

    Real points carry ``sequence_index`` (1-based) and ``symbol``; synthetic
    zero-cross points have ``interpolated=True`` and leave both unset.
    ``cumulative_pnl`` is rounded to cents for display; ``raw_cumulative_pnl``
    keeps the unrounded running sum.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    cumulative_pnl: float
    trade_profit: float
    raw_cumulative_pnl: float = 0.0
    timestamp_ms: float
    sequence_index: Optional[int] = None
    symbol: Optional[str] = None
    interpolated: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def positive_pnl(self) -> Optional[float]:
        """Value for the green segment; None below zero."""
        return self.cumulative_pnl if self.cumulative_pnl >= 0 else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def negative_pnl(self) -> Optional[float]:
        """Value for the red segment; None at or above zero."""
        return self.cumulative_pnl if self.cumulative_pnl < 0 else None


class PnLSeries(BaseModel):
    """Everything the rendering layer needs for one chart."""

    model_config = ConfigDict(frozen=True)

    view_mode: ViewMode
    points: list[ChartPoint]
    min_pnl: float
    max_pnl: float
    domain: tuple[float, float]
    x_ticks: list[str]
    y_ticks: list[float]

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def final_pnl(self) -> float:
        return self.points[-1].cumulative_pnl if self.points else 0.0
