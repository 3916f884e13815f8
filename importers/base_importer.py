from __future__ import annotations

import csv
import io
import logging
import math
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from analytics.instruments import DEFAULT_INSTRUMENTS, InstrumentTable
from models.trade import CompletedTrade, TradeSide

logger = logging.getLogger(__name__)


class TradeProvider(str, Enum):
    SIERRA_CHART = "SierraChart"
    TRADOVATE = "Tradovate"
    TRADINGVIEW = "TradingView"
    INTERACTIVE_BROKERS = "InteractiveBrokers"
    ROBINHOOD = "Robinhood"
    THINKORSWIM = "Thinkorswim"
    TOPONE = "TopOne"
    UNKNOWN = "Unknown"


class TradeImporter(ABC):
    """Abstract contract for broker/platform trade-log parsers."""

    provider: TradeProvider = TradeProvider.UNKNOWN

    def __init__(self, instruments: Optional[InstrumentTable] = None) -> None:
        self.instruments = instruments or DEFAULT_INSTRUMENTS

    @abstractmethod
    def parse(self, content: str) -> List[CompletedTrade]:
        """Parse raw export text into completed round-trip trades."""

        raise NotImplementedError


# ---------------------------------------------------------------------------
# Shared parsing helpers
# ---------------------------------------------------------------------------


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse a broker timestamp; ``None`` when unparseable.

    Timezone-aware values are converted to naive UTC so every trade in a
    series compares cleanly.
    """
    if not text or not text.strip():
        return None
    value = pd.to_datetime(text.strip(), errors="coerce")
    if value is None or pd.isna(value):
        return None
    result = value.to_pydatetime()
    if result.tzinfo is not None:
        result = result.astimezone(timezone.utc).replace(tzinfo=None)
    return result


def parse_number(text: str) -> float:
    """Strict float parse; raises ``ValueError`` on empty, NaN or infinite input."""
    value = float(text.strip())
    if not math.isfinite(value):
        raise ValueError(f"not a number: {text!r}")
    return value


def parse_currency(text: str) -> float:
    """Parse ``$1,234.50`` or accounting-style ``$(67.50)`` amounts."""
    negative = "(" in text
    value = parse_number(re.sub(r"[$,()\s]", "", text))
    return -abs(value) if negative else value


def read_csv_rows(content: str) -> list[list[str]]:
    """Split CSV text into rows, dropping rows with no non-empty field."""
    reader = csv.reader(io.StringIO(content.lstrip("\ufeff")))
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def find_column(headers: Sequence[str], *needles: str) -> Optional[int]:
    """Index of the first header containing any *needles* (case-insensitive)."""
    for idx, header in enumerate(headers):
        lowered = header.lower()
        if any(needle in lowered for needle in needles):
            return idx
    return None


def cell(row: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def round_trip_profit(
    is_long: bool,
    entry_price: float,
    exit_price: float,
    quantity: float,
    point_value: float = 1.0,
) -> float:
    """Signed P&L of a round trip in dollars."""
    delta = exit_price - entry_price if is_long else entry_price - exit_price
    return delta * quantity * point_value


def clock(value: Optional[datetime], fmt: str = "%H:%M:%S") -> Optional[str]:
    return value.strftime(fmt) if value is not None else None


def match_long_only(
    rows: Iterable[Sequence[str]],
    *,
    date_idx: Optional[int],
    symbol_idx: Optional[int],
    side_idx: Optional[int],
    qty_idx: Optional[int],
    price_idx: Optional[int],
    buy_words: tuple[str, ...],
    instruments: Optional[InstrumentTable] = None,
    absolute: bool = False,
) -> list[CompletedTrade]:
    """Pair buys with the next sell of the same symbol.

    Used by the fill-level CSV formats.  A buy while a position is already
    open for the symbol is ignored, and a sell with nothing open is dropped.
    When *instruments* is given, P&L is scaled by the symbol's point value.
    """
    open_by_symbol: dict[str, tuple[datetime, float, float]] = {}
    trades: list[CompletedTrade] = []

    for row in rows:
        try:
            timestamp = parse_timestamp(cell(row, date_idx))
            symbol = cell(row, symbol_idx)
            quantity = parse_number(cell(row, qty_idx))
            price = parse_number(cell(row, price_idx))
        except ValueError:
            logger.debug("Skipping unparseable row: %s", row)
            continue
        if timestamp is None or not symbol or not quantity or not price:
            continue
        if absolute:
            quantity, price = abs(quantity), abs(price)

        side_text = cell(row, side_idx).lower()
        is_buy = any(word in side_text for word in buy_words)

        if is_buy and symbol not in open_by_symbol:
            open_by_symbol[symbol] = (timestamp, quantity, price)
        elif not is_buy and symbol in open_by_symbol:
            opened_at, open_qty, entry_price = open_by_symbol.pop(symbol)
            point_value = instruments.get_point_value(symbol) if instruments else 1.0
            trades.append(
                CompletedTrade(
                    date=opened_at,
                    symbol=symbol,
                    quantity=open_qty,
                    entry_price=entry_price,
                    exit_price=price,
                    profit=round_trip_profit(True, entry_price, price, open_qty, point_value),
                    side=TradeSide.LONG,
                    entry_time=clock(opened_at),
                    exit_time=clock(timestamp),
                )
            )
    return trades
