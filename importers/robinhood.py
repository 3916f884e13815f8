"""importers/robinhood.py — Robinhood account activity CSV (options BTO/STC).

Activity rows have fixed positions: Activity Date, Process Date, Settle Date,
Instrument, Description, Trans Code, Quantity, Price, Amount.  Descriptions
may span several lines inside quotes; the csv reader keeps them in one field.
"""
from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import List, NamedTuple

from importers.base_importer import (
    TradeImporter,
    TradeProvider,
    cell,
    parse_currency,
    parse_number,
    parse_timestamp,
    read_csv_rows,
)
from models.trade import CompletedTrade, TradeSide

logger = logging.getLogger(__name__)

_DATE, _INSTRUMENT, _TRANS_CODE, _QUANTITY, _PRICE, _AMOUNT = 0, 3, 5, 6, 7, 8
_OPEN_CODE = "BTO"
_CLOSE_CODE = "STC"


class _OpenLot(NamedTuple):
    date: datetime
    symbol: str
    entry_price: float
    entry_amount: float
    entry_time: str


def _clock_12h(value: datetime) -> str:
    return value.strftime("%I:%M %p")


class RobinhoodImporter(TradeImporter):
    """FIFO pairing of buy-to-open and sell-to-close per option contract."""

    provider = TradeProvider.ROBINHOOD

    def parse(self, content: str) -> List[CompletedTrade]:
        rows = read_csv_rows(content)
        if len(rows) < 2:
            return []

        open_lots: dict[str, deque[_OpenLot]] = {}
        trades: list[CompletedTrade] = []

        for row in rows[1:]:
            date_text = cell(row, _DATE)
            instrument = cell(row, _INSTRUMENT)
            code = cell(row, _TRANS_CODE)
            if not date_text or not instrument or code not in (_OPEN_CODE, _CLOSE_CODE):
                continue

            try:
                quantity = parse_number(cell(row, _QUANTITY) or "0")
                price = parse_number(cell(row, _PRICE).replace("$", "").replace(",", "") or "0")
                amount_text = cell(row, _AMOUNT)
                amount = parse_currency(amount_text) if amount_text else 0.0
            except ValueError:
                logger.debug("Skipping unparseable Robinhood row: %s", row)
                continue
            if not quantity or not price:
                continue

            timestamp = parse_timestamp(date_text)
            if timestamp is None:
                continue

            if code == _OPEN_CODE:
                open_lots.setdefault(instrument, deque()).append(
                    _OpenLot(
                        date=timestamp,
                        symbol=instrument.split(" ")[0],
                        entry_price=price,
                        entry_amount=abs(amount),
                        entry_time=_clock_12h(timestamp),
                    )
                )
                continue

            lots = open_lots.get(instrument)
            if not lots:
                logger.debug("Dropping STC without open lot: %s", instrument)
                continue
            lot = lots.popleft()
            if not lots:
                del open_lots[instrument]
            trades.append(
                CompletedTrade(
                    date=lot.date,
                    symbol=lot.symbol,
                    quantity=quantity,
                    entry_price=lot.entry_price,
                    exit_price=price,
                    profit=amount - lot.entry_amount,
                    side=TradeSide.LONG,
                    entry_time=lot.entry_time,
                    exit_time=_clock_12h(timestamp),
                )
            )

        logger.info("Robinhood import: %d trades", len(trades))
        return trades
