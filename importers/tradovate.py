"""importers/tradovate.py — Tradovate exports (performance report and fill log)."""
from __future__ import annotations

import logging
from typing import List, Sequence

from importers.base_importer import (
    TradeImporter,
    TradeProvider,
    cell,
    clock,
    find_column,
    match_long_only,
    parse_currency,
    parse_number,
    parse_timestamp,
    read_csv_rows,
)
from models.trade import CompletedTrade, TradeSide

logger = logging.getLogger(__name__)

_PERFORMANCE_COLUMNS = {"pnl", "buyPrice", "sellPrice"}


class TradovateImporter(TradeImporter):
    """Handles both Tradovate CSV shapes.

    The performance report already has one closed trade per row; the fill log
    is paired buy→sell per contract.
    """

    provider = TradeProvider.TRADOVATE

    def parse(self, content: str) -> List[CompletedTrade]:
        rows = read_csv_rows(content)
        if len(rows) < 2:
            return []
        headers, body = rows[0], rows[1:]
        if _PERFORMANCE_COLUMNS.issubset(headers):
            trades = self._parse_performance(headers, body)
        else:
            trades = self._parse_fills(headers, body)
        logger.info("Tradovate import: %d trades", len(trades))
        return trades

    def _parse_performance(self, headers: Sequence[str], body: list[list[str]]) -> list[CompletedTrade]:
        def index(name: str):
            return headers.index(name) if name in headers else None

        symbol_idx = index("symbol")
        qty_idx = index("qty")
        buy_idx = index("buyPrice")
        sell_idx = index("sellPrice")
        pnl_idx = index("pnl")
        bought_idx = index("boughtTimestamp")
        commission_idx = find_column(headers, "commission", "fee")

        trades: list[CompletedTrade] = []
        for row in body:
            try:
                symbol = cell(row, symbol_idx)
                quantity = parse_number(cell(row, qty_idx) or "0")
                buy_price = parse_number(cell(row, buy_idx) or "0")
                sell_price = parse_number(cell(row, sell_idx) or "0")
                date_text = cell(row, bought_idx)
                if not symbol or not quantity or not buy_price or not sell_price or not date_text:
                    continue
                pnl = parse_currency(cell(row, pnl_idx))
                commission_text = cell(row, commission_idx)
                commission = abs(parse_currency(commission_text)) if commission_text else 0.0
            except ValueError:
                logger.debug("Skipping unparseable Tradovate row: %s", row)
                continue

            opened_at = parse_timestamp(date_text)
            if opened_at is None:
                continue

            trades.append(
                CompletedTrade(
                    date=opened_at,
                    symbol=symbol,
                    quantity=quantity,
                    entry_price=buy_price,
                    exit_price=sell_price,
                    profit=pnl - commission,
                    side=TradeSide.LONG if buy_price < sell_price else TradeSide.SHORT,
                    commission=commission,
                    entry_time=clock(opened_at),
                )
            )
        return trades

    def _parse_fills(self, headers: Sequence[str], body: list[list[str]]) -> list[CompletedTrade]:
        return match_long_only(
            body,
            date_idx=find_column(headers, "date", "time"),
            symbol_idx=find_column(headers, "contract", "symbol"),
            side_idx=find_column(headers, "side", "action"),
            qty_idx=find_column(headers, "qty", "size"),
            price_idx=find_column(headers, "price"),
            buy_words=("buy",),
            instruments=self.instruments,
        )
