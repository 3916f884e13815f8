"""importers/topone.py — TopOne Futures closed-positions CSV (one trade per row)."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from importers.base_importer import (
    TradeImporter,
    TradeProvider,
    cell,
    parse_number,
    read_csv_rows,
)
from models.trade import CompletedTrade, TradeSide

logger = logging.getLogger(__name__)


def _exact(headers: Sequence[str], name: str) -> Optional[int]:
    lowered = [h.lower() for h in headers]
    return lowered.index(name) if name in lowered else None


def _containing(headers: Sequence[str], needle: str) -> Optional[int]:
    return next((idx for idx, h in enumerate(headers) if needle in h.lower()), None)


def _parse_open_date(text: str) -> Optional[datetime]:
    """``DD/MM/YYYY HH:MM:SS`` → calendar date (time is kept separately)."""
    day_part = text.split(" ")[0]
    try:
        day, month, year = (int(part) for part in day_part.split("/"))
        return datetime(year, month, day)
    except ValueError:
        return None


def _loose_float(text: str, default: float) -> float:
    try:
        return parse_number(text.replace("$", "").replace(",", ""))
    except ValueError:
        return default


class TopOneImporter(TradeImporter):
    provider = TradeProvider.TOPONE

    def parse(self, content: str) -> List[CompletedTrade]:
        rows = read_csv_rows(content)
        if len(rows) < 2:
            return []
        headers = rows[0]
        symbol_idx = _exact(headers, "symbol")
        side_idx = _exact(headers, "side")
        open_time_idx = _containing(headers, "open time")
        open_price_idx = _containing(headers, "open price")
        close_price_idx = _containing(headers, "close price")
        pnl_idx = _exact(headers, "pnl")
        lots_idx = _exact(headers, "lots")
        commissions_idx = _exact(headers, "commissions")

        trades: list[CompletedTrade] = []
        for row in rows[1:]:
            symbol = cell(row, symbol_idx)
            open_time = cell(row, open_time_idx)
            open_price = _loose_float(cell(row, open_price_idx), 0.0)
            if not symbol or not open_time or not open_price:
                continue

            opened_on = _parse_open_date(open_time)
            if opened_on is None:
                continue

            pnl = _loose_float(cell(row, pnl_idx), 0.0)
            commission = _loose_float(cell(row, commissions_idx), 0.0)
            parts = open_time.split(" ")
            trades.append(
                CompletedTrade(
                    date=opened_on,
                    symbol=symbol,
                    quantity=_loose_float(cell(row, lots_idx), 1.0),
                    entry_price=open_price,
                    exit_price=_loose_float(cell(row, close_price_idx), 0.0),
                    profit=pnl - commission,
                    side=TradeSide.LONG if cell(row, side_idx).upper() == "BUY" else TradeSide.SHORT,
                    commission=commission,
                    entry_time=parts[1] if len(parts) > 1 else None,
                )
            )

        logger.info("TopOne import: %d trades", len(trades))
        return trades
