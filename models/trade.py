"""models/trade.py — Fill, position and trade models for the import pipeline.

FillEvent and OpenPosition only live inside a single parse pass.  CompletedTrade
is the immutable output of an importer; JournalTrade is the persisted record
shape handed back by database/local_store.py.
"""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FillSide(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class FillAction(str, Enum):
    OPEN = "Open"
    CLOSE = "Close"
    FILLED = "Filled"  # closing fills in order-linked Sierra exports


class TradeSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class PositionMode(str, Enum):
    """How the Sierra Chart importer pairs opening and closing fills."""

    OVERWRITE = "overwrite"    # one pending open per symbol; a new Open replaces it
    QUEUE = "queue"            # FIFO of pending opens per symbol
    ORDER_LINK = "order_link"  # InternalOrderID → ParentInternalOrderID linkage


# Journaling side-channel fields that may ride along with a trade.
EXTENSION_KEYS: frozenset[str] = frozenset({
    "setup",      # free-text setup name
    "mistake",    # free-text mistake tag
    "rating",     # 1-5 self rating
    "target",     # planned target price
    "stop_loss",  # planned stop price
    "edges",      # comma-separated edge names
    "notes",      # short plain-text note
})

ExtensionValue = Union[str, float, int, bool, None]


def _check_extension_keys(value: dict[str, ExtensionValue]) -> dict[str, ExtensionValue]:
    unknown = sorted(set(value) - EXTENSION_KEYS)
    if unknown:
        raise ValueError(f"Unknown trade extension keys: {', '.join(unknown)}")
    return value


# ---------------------------------------------------------------------------
# Parse-pass intermediates
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FillEvent:
    """One execution row from a broker log."""

    timestamp: datetime
    symbol: str
    quantity: float
    fill_price: float
    side: str                  # raw BuySell value
    action: str                # raw OpenClose value
    internal_order_id: str = ""
    parent_internal_order_id: str = ""


@dataclass(slots=True)
class OpenPosition:
    """An opening fill waiting for its close."""

    timestamp: datetime
    symbol: str
    quantity: float
    entry_price: float
    side: str
    internal_order_id: str = ""

    @classmethod
    def from_fill(cls, fill: FillEvent) -> "OpenPosition":
        return cls(
            timestamp=fill.timestamp,
            symbol=fill.symbol,
            quantity=fill.quantity,
            entry_price=fill.fill_price,
            side=fill.side,
            internal_order_id=fill.internal_order_id,
        )


# ---------------------------------------------------------------------------
# Importer output
# ---------------------------------------------------------------------------


class CompletedTrade(BaseModel):
    """A matched open+close round trip.  ``date`` is the opening timestamp."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    symbol: str
    quantity: float
    entry_price: float
    exit_price: float
    profit: float
    side: TradeSide = TradeSide.LONG
    commission: Optional[float] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    extensions: dict[str, ExtensionValue] = Field(default_factory=dict)

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, value: dict[str, ExtensionValue]) -> dict[str, ExtensionValue]:
        return _check_extension_keys(value)


# ---------------------------------------------------------------------------
# Persisted record (trades table)
# ---------------------------------------------------------------------------


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class JournalTrade(BaseModel):
    """Trade row as stored by TradeStore.  Consumable by the P&L series builder."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    profile_id: str = "default"

    date: datetime
    symbol: str
    profit: float
    side: Optional[TradeSide] = None
    quantity: Optional[float] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    commission: Optional[float] = None

    # Journaling columns promoted out of the extension map
    setup: Optional[str] = None
    mistake: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    target: Optional[float] = None
    stop_loss: Optional[float] = None
    extensions: dict[str, ExtensionValue] = Field(default_factory=dict)

    created_at: str = Field(default_factory=_utc_now_iso)
    updated_at: str = Field(default_factory=_utc_now_iso)

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, value: dict[str, ExtensionValue]) -> dict[str, ExtensionValue]:
        return _check_extension_keys(value)

    @classmethod
    def from_completed(cls, trade: CompletedTrade, profile_id: str = "default") -> "JournalTrade":
        """Build a persistable record from importer output."""
        extras = dict(trade.extensions)
        promoted = {
            key: extras.pop(key)
            for key in ("setup", "mistake", "rating", "target", "stop_loss")
            if key in extras
        }
        return cls(
            profile_id=profile_id,
            date=trade.date,
            symbol=trade.symbol,
            profit=trade.profit,
            side=trade.side,
            quantity=trade.quantity,
            entry_price=trade.entry_price,
            exit_price=trade.exit_price,
            entry_time=trade.entry_time,
            exit_time=trade.exit_time,
            commission=trade.commission,
            extensions=extras,
            **promoted,
        )

    def to_row(self) -> dict[str, Any]:
        """Flatten for SQLite: ISO date string, JSON-encoded extensions."""
        row = self.model_dump(mode="json", exclude={"extensions"})
        row["date"] = self.date.isoformat()
        row["extensions_json"] = json.dumps(self.extensions)
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "JournalTrade":
        data = dict(row)
        raw_extensions = data.pop("extensions_json", None)
        data["extensions"] = json.loads(raw_extensions) if raw_extensions else {}
        return cls.model_validate(data)
