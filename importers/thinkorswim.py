"""importers/thinkorswim.py — thinkorswim account statement (Cash Balance TRD rows).

Option fills are decoded from the DESCRIPTION column, e.g.::

    BOT +1 SPX 100 (Weeklys) 4 NOV 25 6785 PUT @7.30 CBOE

and paired FIFO per ``SYMBOL STRIKE CALL|PUT`` with partial-quantity matching.
"""
from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from importers.base_importer import (
    TradeImporter,
    TradeProvider,
    cell,
    parse_currency,
    parse_timestamp,
)
from models.trade import CompletedTrade, TradeSide

logger = logging.getLogger(__name__)

SECTION_MARKER = "Cash Balance"
SECTION_END_MARKER = "Futures Statements"

_DESCRIPTION_RE = re.compile(
    r"(BOT|SOLD)\s+([+\-]\d+)\s+(\w+)\s+(\d+)\s+\([^)]+\)\s+.*?(\d+)\s+(CALL|PUT)\s+@([\d.]+)",
    re.IGNORECASE,
)


@dataclass(slots=True)
class _OpenLot:
    date: datetime
    quantity: int
    entry_price: float
    entry_fees: float
    entry_time: str


def _cash_balance_lines(content: str) -> list[str]:
    collected: list[str] = []
    in_section = False
    for line in content.splitlines():
        if SECTION_MARKER in line:
            in_section = True
            continue
        if in_section:
            if not line.strip() or SECTION_END_MARKER in line:
                break
            collected.append(line)
    return collected


def _fees(text: str) -> float:
    return abs(parse_currency(text)) if text else 0.0


class ThinkorswimImporter(TradeImporter):
    provider = TradeProvider.THINKORSWIM

    def parse(self, content: str) -> List[CompletedTrade]:
        section = _cash_balance_lines(content)
        if len(section) < 2:
            return []

        rows = list(csv.reader(section))
        headers = [h.strip() for h in rows[0]]

        def index(name: str) -> Optional[int]:
            return headers.index(name) if name in headers else None

        date_idx, time_idx = index("DATE"), index("TIME")
        type_idx, desc_idx = index("TYPE"), index("DESCRIPTION")
        fees_idx = index("Commissions & Fees")

        open_lots: dict[str, list[_OpenLot]] = {}
        trades: list[CompletedTrade] = []

        for row in rows[1:]:
            if not row or not any(row) or row[0].strip().startswith("TOTAL"):
                continue
            if cell(row, type_idx) != "TRD":
                continue

            date_text, description = cell(row, date_idx), cell(row, desc_idx)
            if not date_text or not description:
                continue
            match = _DESCRIPTION_RE.search(description)
            if match is None:
                logger.debug("Unrecognised thinkorswim description: %s", description)
                continue

            action, qty_text, symbol, multiplier_text, strike, option_type, price_text = match.groups()
            try:
                quantity = abs(int(qty_text))
                multiplier = int(multiplier_text)
                price = float(price_text)
                fees = _fees(cell(row, fees_idx))
            except ValueError:
                logger.debug("Skipping unparseable thinkorswim row: %s", row)
                continue

            timestamp = parse_timestamp(f"{date_text} {cell(row, time_idx)}")
            if timestamp is None:
                continue
            clock_text = timestamp.strftime("%I:%M:%S %p")
            key = f"{symbol} {strike} {option_type.upper()}"

            if action.upper() == "BOT":
                open_lots.setdefault(key, []).append(
                    _OpenLot(timestamp, quantity, price, fees, clock_text)
                )
                continue

            lots = open_lots.get(key)
            if not lots:
                logger.debug("Dropping SOLD without open lot: %s", key)
                continue

            remaining = quantity
            while remaining > 0 and lots:
                lot = lots[0]
                close_qty = min(remaining, lot.quantity)
                commission = lot.entry_fees + fees
                trades.append(
                    CompletedTrade(
                        date=lot.date,
                        symbol=symbol,
                        quantity=close_qty,
                        entry_price=lot.entry_price,
                        exit_price=price,
                        profit=(price - lot.entry_price) * close_qty * multiplier - commission,
                        side=TradeSide.LONG,
                        commission=commission,
                        entry_time=lot.entry_time,
                        exit_time=clock_text,
                    )
                )
                if close_qty >= lot.quantity:
                    lots.pop(0)
                else:
                    lot.quantity -= close_qty
                remaining -= close_qty
            if not lots:
                del open_lots[key]

        logger.info("thinkorswim import: %d trades", len(trades))
        return trades
