"""importers/tradingview.py — TradingView paper/broker trade history CSV."""
from __future__ import annotations

import logging
from typing import List

from importers.base_importer import TradeImporter, TradeProvider, find_column, match_long_only, read_csv_rows
from models.trade import CompletedTrade

logger = logging.getLogger(__name__)


class TradingViewImporter(TradeImporter):
    provider = TradeProvider.TRADINGVIEW

    def parse(self, content: str) -> List[CompletedTrade]:
        rows = read_csv_rows(content)
        if len(rows) < 2:
            return []
        headers = rows[0]
        trades = match_long_only(
            rows[1:],
            date_idx=find_column(headers, "time", "date"),
            symbol_idx=find_column(headers, "symbol", "instrument"),
            side_idx=find_column(headers, "type", "side"),
            qty_idx=find_column(headers, "qty", "contracts"),
            price_idx=find_column(headers, "price"),
            buy_words=("buy", "long"),
            instruments=self.instruments,
        )
        logger.info("TradingView import: %d trades", len(trades))
        return trades
