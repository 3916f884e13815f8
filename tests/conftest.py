from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from analytics.instruments import InstrumentTable
from database.local_store import TradeStore
from models.trade import JournalTrade

SIERRA_HEADER = (
    "ActivityType", "DateTime", "Symbol", "Quantity", "BuySell",
    "FillPrice", "OpenClose", "InternalOrderID", "ParentInternalOrderID",
)


def _sierra_row(
    when: str,
    symbol: str,
    qty: str,
    side: str,
    price: str,
    action: str,
    order_id: str = "",
    parent_id: str = "",
) -> dict[str, str]:
    return {
        "ActivityType": "Fills",
        "DateTime": when,
        "Symbol": symbol,
        "Quantity": qty,
        "BuySell": side,
        "FillPrice": price,
        "OpenClose": action,
        "InternalOrderID": order_id,
        "ParentInternalOrderID": parent_id,
    }


@pytest.fixture
def sierra_row() -> Callable[..., dict[str, str]]:
    return _sierra_row


@pytest.fixture
def make_sierra_log() -> Callable[..., str]:
    """Build a tab-delimited Sierra Chart activity log from row dicts."""

    def _build(*rows: dict[str, str], header: tuple[str, ...] = SIERRA_HEADER, newline: str = "\n") -> str:
        lines = ["\t".join(header)]
        for row in rows:
            lines.append("\t".join(row.get(col, "") for col in header))
        return newline.join(lines) + newline

    return _build


@pytest.fixture
def sierra_round_trip(make_sierra_log) -> str:
    """One long ES round trip: buy 2 @ 100, sell 2 @ 110."""
    return make_sierra_log(
        _sierra_row("2025-10-15 09:30:00", "F.US.ESZ25", "2", "Buy", "100", "Open", "1"),
        _sierra_row("2025-10-15 09:45:30", "F.US.ESZ25", "2", "Sell", "110", "Close", "2", "1"),
    )


@pytest.fixture
def instruments() -> InstrumentTable:
    return InstrumentTable()


@pytest.fixture
def store(tmp_path: Path) -> TradeStore:
    """Fresh TradeStore backed by a temp SQLite file."""
    return TradeStore(db_path=str(tmp_path / "journal.db"))


@pytest.fixture
def make_trade() -> Callable[..., JournalTrade]:
    def _make(when: datetime, profit: float, symbol: str = "ESZ5", **kwargs) -> JournalTrade:
        return JournalTrade(date=when, symbol=symbol, profit=profit, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def _isolated_log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))
