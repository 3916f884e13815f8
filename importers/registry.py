"""importers/registry.py — Provider detection and importer dispatch.

Usage example::

    provider = detect_trade_provider(text)          # TradeProvider.SIERRA_CHART
    trades = parse_trade_file(text)                 # auto-detect
    trades = parse_trade_file(text, "Tradovate")    # explicit
"""
from __future__ import annotations

import logging
from typing import List, Optional, Type

from analytics.instruments import InstrumentTable
from importers.base_importer import TradeImporter, TradeProvider
from importers.interactive_brokers import InteractiveBrokersImporter
from importers.robinhood import RobinhoodImporter
from importers.sierra_chart import SierraChartImporter
from importers.thinkorswim import ThinkorswimImporter
from importers.topone import TopOneImporter
from importers.tradingview import TradingViewImporter
from importers.tradovate import TradovateImporter
from models.trade import CompletedTrade, PositionMode

logger = logging.getLogger(__name__)

IMPORTERS: dict[TradeProvider, Type[TradeImporter]] = {
    TradeProvider.SIERRA_CHART: SierraChartImporter,
    TradeProvider.ROBINHOOD: RobinhoodImporter,
    TradeProvider.INTERACTIVE_BROKERS: InteractiveBrokersImporter,
    TradeProvider.TRADOVATE: TradovateImporter,
    TradeProvider.TRADINGVIEW: TradingViewImporter,
    TradeProvider.THINKORSWIM: ThinkorswimImporter,
    TradeProvider.TOPONE: TopOneImporter,
}

_SNIFF_LINES = 10


def detect_trade_provider(content: str) -> TradeProvider:
    """Guess the export's origin from its first lines."""
    head = "\n".join(content.splitlines()[:_SNIFF_LINES]).lower()

    def has(*needles: str) -> bool:
        return all(needle in head for needle in needles)

    if has("ticket", "open time", "close time", "pnl", "lots"):
        return TradeProvider.TOPONE
    if has("account statement", "cash balance") and ("bot" in head or "sold" in head):
        return TradeProvider.THINKORSWIM
    if has("datetime", "fillprice", "openclose"):
        return TradeProvider.SIERRA_CHART
    if "robinhood" in head or has("activity date", "process date"):
        return TradeProvider.ROBINHOOD
    if "interactive brokers" in head or "statement" in head or "trades,header" in head:
        return TradeProvider.INTERACTIVE_BROKERS
    if "tradovate" in head or has("contract", "action") or has("buyprice", "sellprice", "pnl"):
        return TradeProvider.TRADOVATE
    if "tradingview" in head or has("type", "profit"):
        return TradeProvider.TRADINGVIEW
    return TradeProvider.UNKNOWN


def build_importer(
    provider: TradeProvider | str,
    *,
    instruments: Optional[InstrumentTable] = None,
    position_mode: PositionMode | str = PositionMode.OVERWRITE,
) -> TradeImporter:
    """Instantiate the importer for *provider*; ``ValueError`` if unsupported."""
    resolved = TradeProvider(provider)
    if resolved is TradeProvider.UNKNOWN:
        raise ValueError("Cannot build an importer for an unknown provider")
    if resolved is TradeProvider.SIERRA_CHART:
        return SierraChartImporter(instruments, position_mode)
    return IMPORTERS[resolved](instruments)


def parse_trade_file(
    content: str,
    provider: TradeProvider | str | None = None,
    *,
    instruments: Optional[InstrumentTable] = None,
    position_mode: PositionMode | str = PositionMode.OVERWRITE,
) -> List[CompletedTrade]:
    """Parse *content* with the given or detected provider.

    An undetectable file is run through every importer and the result with
    the most trades wins (earliest importer on ties).
    """
    resolved = TradeProvider(provider) if provider else detect_trade_provider(content)
    logger.info("Parsing trade file as %s", resolved.value)

    if resolved is not TradeProvider.UNKNOWN:
        return build_importer(resolved, instruments=instruments, position_mode=position_mode).parse(content)

    best: List[CompletedTrade] = []
    for candidate in IMPORTERS:
        trades = build_importer(candidate, instruments=instruments, position_mode=position_mode).parse(content)
        if len(trades) > len(best):
            best = trades
    return best
