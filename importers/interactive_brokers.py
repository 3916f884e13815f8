"""importers/interactive_brokers.py — IBKR activity statement trades CSV.

The statement carries preamble sections, so the header is the first row that
mentions both ``date`` and ``symbol``.  Quantities and prices are taken as
absolute values and P&L is unscaled (multiplier 1).
"""
from __future__ import annotations

import logging
from typing import List

from importers.base_importer import TradeImporter, TradeProvider, find_column, match_long_only, read_csv_rows
from models.trade import CompletedTrade

logger = logging.getLogger(__name__)


class InteractiveBrokersImporter(TradeImporter):
    provider = TradeProvider.INTERACTIVE_BROKERS

    def parse(self, content: str) -> List[CompletedTrade]:
        rows = read_csv_rows(content)
        header_pos = next(
            (
                pos for pos, row in enumerate(rows)
                if "date" in ",".join(row).lower() and "symbol" in ",".join(row).lower()
            ),
            None,
        )
        if header_pos is None:
            logger.debug("No IBKR trades header found")
            return []

        headers = rows[header_pos]
        trades = match_long_only(
            rows[header_pos + 1:],
            date_idx=find_column(headers, "date"),
            symbol_idx=find_column(headers, "symbol"),
            side_idx=find_column(headers, "buy", "side"),
            qty_idx=find_column(headers, "quantity"),
            price_idx=find_column(headers, "price"),
            buy_words=("buy", "bot"),
            absolute=True,
        )
        logger.info("Interactive Brokers import: %d trades", len(trades))
        return trades
