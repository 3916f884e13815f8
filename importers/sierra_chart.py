"""importers/sierra_chart.py — Sierra Chart trade activity log → completed trades.

Reads the tab-delimited activity export, resolves columns by header name and
pairs opening fills with closing fills.  Three pairing strategies are
available through :class:`models.trade.PositionMode`:

 - ``OVERWRITE`` (default): one pending open per raw symbol; an Open for an
   already-open symbol replaces the unmatched prior fill.
 - ``QUEUE``: pending opens form a FIFO per symbol; each Close consumes the
   oldest.
 - ``ORDER_LINK``: opens keyed by ``InternalOrderID``; ``Close``/``Filled``
   rows grouped by ``ParentInternalOrderID`` and exited at their VWAP.

Usage example::

    importer = SierraChartImporter(position_mode=PositionMode.QUEUE)
    trades = importer.parse(Path("TradeActivityLog.txt").read_text())
"""
from __future__ import annotations

import logging
from collections import OrderedDict, deque
from datetime import datetime
from typing import Iterator, List, Optional

from analytics.instruments import InstrumentTable
from importers.base_importer import (
    TradeImporter,
    TradeProvider,
    clock,
    parse_number,
    parse_timestamp,
    round_trip_profit,
)
from models.trade import (
    CompletedTrade,
    FillAction,
    FillEvent,
    FillSide,
    OpenPosition,
    PositionMode,
    TradeSide,
)

logger = logging.getLogger(__name__)

HEADER_MARKER = "DateTime"
REQUIRED_COLUMNS = ("DateTime", "Symbol", "Quantity", "FillPrice", "BuySell", "OpenClose")
ORDER_ID_COLUMNS = ("InternalOrderID", "ParentInternalOrderID")
_SKIP_PREFIXES = ("ActivityType", "DateTime")


class SierraChartImporter(TradeImporter):
    """Rebuilds round-trip trades from a Sierra Chart fill log.

    Parameters
    ----------
    instruments:
        Point-value source.  Defaults to the built-in table.
    position_mode:
        Pairing strategy (enum member or its string value).  Unknown values
        raise ``ValueError``.
    """

    provider = TradeProvider.SIERRA_CHART

    def __init__(
        self,
        instruments: Optional[InstrumentTable] = None,
        position_mode: PositionMode | str = PositionMode.OVERWRITE,
    ) -> None:
        super().__init__(instruments)
        self.position_mode = PositionMode(position_mode)

    def parse(self, content: str) -> List[CompletedTrade]:
        lines = content.splitlines()
        header_line = next((line for line in lines if HEADER_MARKER in line), None)
        if header_line is None:
            logger.warning("No Sierra Chart header line (containing %r) found", HEADER_MARKER)
            return []

        columns = self._resolve_columns(header_line)
        if columns is None:
            return []

        fills = list(self._iter_fills(lines, columns))
        if self.position_mode is PositionMode.ORDER_LINK:
            trades = self._match_by_order_id(fills)
        else:
            trades = self._match_by_symbol(fills)

        logger.info(
            "Sierra Chart import: %d fills → %d trades (%s mode)",
            len(fills), len(trades), self.position_mode.value,
        )
        return trades

    # ------------------------------------------------------------------ #
    # Header & line parsing                                                #
    # ------------------------------------------------------------------ #

    def _resolve_columns(self, header_line: str) -> Optional[dict[str, int]]:
        headers = [h.strip() for h in header_line.split("\t")]
        columns = {name: headers.index(name) for name in REQUIRED_COLUMNS + ORDER_ID_COLUMNS if name in headers}
        logger.debug("Sierra Chart column indices: %s", columns)

        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            logger.warning("Sierra Chart header is missing columns: %s", ", ".join(missing))
            return None
        if self.position_mode is PositionMode.ORDER_LINK and "InternalOrderID" not in columns:
            logger.warning("Order-linked matching needs an InternalOrderID column")
            return None
        return columns

    def _iter_fills(self, lines: list[str], columns: dict[str, int]) -> Iterator[FillEvent]:
        for raw in lines:
            stripped = raw.strip()
            if not stripped or stripped.startswith(_SKIP_PREFIXES):
                continue
            cells = raw.rstrip("\r\n").split("\t")
            try:
                fill = self._read_fill(cells, columns)
            except (ValueError, IndexError) as exc:
                logger.debug("Skipping malformed line %r: %s", stripped, exc)
                continue
            if fill is not None:
                yield fill

    @staticmethod
    def _read_fill(cells: list[str], columns: dict[str, int]) -> Optional[FillEvent]:
        def read(name: str) -> str:
            idx = columns.get(name)
            if idx is None or idx >= len(cells):
                return ""
            return cells[idx].strip()

        date_text = read("DateTime")
        symbol = read("Symbol")
        quantity = parse_number(read("Quantity") or "0")
        fill_price = parse_number(read("FillPrice") or "0")
        if not date_text or not symbol or not quantity or not fill_price:
            return None

        timestamp = parse_timestamp(date_text)
        if timestamp is None:
            return None

        return FillEvent(
            timestamp=timestamp,
            symbol=symbol,
            quantity=quantity,
            fill_price=fill_price,
            side=read("BuySell"),
            action=read("OpenClose"),
            internal_order_id=read("InternalOrderID"),
            parent_internal_order_id=read("ParentInternalOrderID"),
        )

    # ------------------------------------------------------------------ #
    # Matching                                                             #
    # ------------------------------------------------------------------ #

    def _match_by_symbol(self, fills: list[FillEvent]) -> list[CompletedTrade]:
        pending: dict[str, deque[OpenPosition]] = {}
        trades: list[CompletedTrade] = []

        for fill in fills:
            if fill.action == FillAction.OPEN.value:
                queue = pending.setdefault(fill.symbol, deque())
                if queue and self.position_mode is PositionMode.OVERWRITE:
                    logger.warning(
                        "Open for %s at %s overwrites unmatched open from %s",
                        fill.symbol, fill.timestamp, queue[0].timestamp,
                    )
                    queue.clear()
                queue.append(OpenPosition.from_fill(fill))
            elif fill.action == FillAction.CLOSE.value:
                queue = pending.get(fill.symbol)
                if not queue:
                    logger.debug("Dropping unmatched close for %s at %s", fill.symbol, fill.timestamp)
                    continue
                position = queue.popleft()
                if not queue:
                    del pending[fill.symbol]
                trades.append(self._complete(position, fill.fill_price, fill.timestamp))

        return trades

    def _match_by_order_id(self, fills: list[FillEvent]) -> list[CompletedTrade]:
        opens: OrderedDict[str, OpenPosition] = OrderedDict()
        closes_by_parent: dict[str, list[FillEvent]] = {}

        for fill in fills:
            if fill.action == FillAction.OPEN.value:
                opens[fill.internal_order_id] = OpenPosition.from_fill(fill)
            elif fill.action in (FillAction.CLOSE.value, FillAction.FILLED.value):
                if fill.parent_internal_order_id:
                    closes_by_parent.setdefault(fill.parent_internal_order_id, []).append(fill)

        trades: list[CompletedTrade] = []
        for order_id, position in opens.items():
            closing = closes_by_parent.get(order_id)
            if not closing:
                continue
            total_qty = sum(f.quantity for f in closing)
            if not total_qty:
                continue
            vwap = sum(f.fill_price * f.quantity for f in closing) / total_qty
            trades.append(self._complete(position, vwap, closing[-1].timestamp))
        return trades

    def _complete(
        self,
        position: OpenPosition,
        exit_price: float,
        exit_timestamp: Optional[datetime],
    ) -> CompletedTrade:
        is_long = position.side == FillSide.BUY.value
        point_value = self.instruments.get_point_value(position.symbol)
        return CompletedTrade(
            date=position.timestamp,
            symbol=position.symbol,
            quantity=position.quantity,
            entry_price=position.entry_price,
            exit_price=exit_price,
            profit=round_trip_profit(is_long, position.entry_price, exit_price, position.quantity, point_value),
            side=TradeSide.LONG if is_long else TradeSide.SHORT,
            entry_time=clock(position.timestamp),
            exit_time=clock(exit_timestamp),
        )


def parse_sierra_chart_log(
    content: str,
    *,
    instruments: Optional[InstrumentTable] = None,
    position_mode: PositionMode | str = PositionMode.OVERWRITE,
) -> List[CompletedTrade]:
    """Convenience wrapper around :class:`SierraChartImporter`."""
    return SierraChartImporter(instruments, position_mode).parse(content)
