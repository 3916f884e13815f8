"""database/local_store.py — SQLite-backed trade journal store.

Persists imported trades per trading profile using :mod:`aiosqlite` (async
SQLite).  The file is created automatically at ``./data/trade_journal.db``
(relative to the project root) unless a custom path is passed.

Thread-safety note: aiosqlite wraps a dedicated worker thread, so it is safe
to call from any event-loop coroutine as long as a single :class:`TradeStore`
instance is not shared across *multiple* event-loops simultaneously.
"""
from __future__ import annotations

import csv
import io
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

import aiosqlite  # type: ignore[import]

from models.trade import CompletedTrade, JournalTrade

logger = logging.getLogger(__name__)

# Default path (relative to project root; created on first use)
_DEFAULT_DB_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "data", "trade_journal.db"
)

TRADE_COLUMNS = (
    "id", "profile_id", "date", "symbol", "profit", "side", "quantity",
    "entry_price", "exit_price", "entry_time", "exit_time", "commission",
    "setup", "mistake", "rating", "target", "stop_loss", "extensions_json",
    "created_at", "updated_at",
)

CSV_COLUMNS = (
    "id", "date", "symbol", "side", "quantity", "entry_price", "exit_price",
    "profit", "commission", "entry_time", "exit_time",
    "setup", "mistake", "rating", "target", "stop_loss",
)


@dataclass
class ImportResult:
    """Outcome of :meth:`TradeStore.bulk_import`."""

    imported: list[JournalTrade] = field(default_factory=list)
    skipped: int = 0

    @property
    def imported_count(self) -> int:
        return len(self.imported)


class TradeStore:
    """Async SQLite store for journal trades.

    Args:
        db_path: Absolute or relative path for the SQLite file.
                 Defaults to ``<project_root>/data/trade_journal.db``.
    """

    def __init__(self, db_path: str = _DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._initialised = False

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    async def _ensure_init(self) -> None:
        """Create the table schema the first time we open the DB."""
        if self._initialised:
            return
        parent = os.path.dirname(self._db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                    id              TEXT PRIMARY KEY,
                    profile_id      TEXT NOT NULL DEFAULT 'default',
                    date            TEXT NOT NULL,
                    symbol          TEXT NOT NULL,
                    profit          REAL NOT NULL,
                    side            TEXT,
                    quantity        REAL,
                    entry_price     REAL,
                    exit_price      REAL,
                    entry_time      TEXT,
                    exit_time       TEXT,
                    commission      REAL,
                    setup           TEXT,
                    mistake         TEXT,
                    rating          INTEGER,
                    target          REAL,
                    stop_loss       REAL,
                    extensions_json TEXT NOT NULL DEFAULT '{}',
                    created_at      TEXT NOT NULL,
                    updated_at      TEXT NOT NULL
                );
                """
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS ix_trades_profile_date ON trades(profile_id, date DESC);"
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS ix_trades_symbol ON trades(symbol, date DESC);"
            )
            await db.commit()
        self._initialised = True
        logger.info("TradeStore ready at %s", self._db_path)

    # ------------------------------------------------------------------ #
    # Write methods                                                        #
    # ------------------------------------------------------------------ #

    async def save_trade(self, trade: JournalTrade) -> str:
        """Insert or replace *trade* by id and return the id."""
        await self._ensure_init()
        row = trade.to_row()
        row["updated_at"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        placeholders = ",".join("?" for _ in TRADE_COLUMNS)
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                f"INSERT OR REPLACE INTO trades ({', '.join(TRADE_COLUMNS)}) VALUES ({placeholders});",
                tuple(row.get(col) for col in TRADE_COLUMNS),
            )
            await db.commit()
        logger.debug("Saved trade %s (%s %s)", trade.id, trade.symbol, row["date"])
        return trade.id

    async def bulk_import(
        self,
        trades: Iterable[Union[CompletedTrade, JournalTrade]],
        profile_id: str = "default",
    ) -> ImportResult:
        """Persist *trades* for *profile_id*, skipping existing ``(date, symbol)`` pairs.

        Duplicates are checked against what is already stored for the profile,
        so re-importing the same export is a no-op.
        """
        await self._ensure_init()
        records = [
            JournalTrade.from_completed(t, profile_id) if isinstance(t, CompletedTrade)
            else t.model_copy(update={"profile_id": profile_id})
            for t in trades
        ]

        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                "SELECT date, symbol FROM trades WHERE profile_id = ?;",
                (profile_id,),
            ) as cursor:
                existing = {(r[0], r[1]) for r in await cursor.fetchall()}

            result = ImportResult()
            placeholders = ",".join("?" for _ in TRADE_COLUMNS)
            for record in records:
                row = record.to_row()
                if (row["date"], row["symbol"]) in existing:
                    result.skipped += 1
                    continue
                await db.execute(
                    f"INSERT OR REPLACE INTO trades ({', '.join(TRADE_COLUMNS)}) VALUES ({placeholders});",
                    tuple(row.get(col) for col in TRADE_COLUMNS),
                )
                result.imported.append(record)
            await db.commit()

        logger.info(
            "Imported %d trades for profile %s (%d duplicates skipped)",
            result.imported_count, profile_id, result.skipped,
        )
        return result

    async def delete_trade(self, trade_id: str) -> bool:
        """Delete one trade; returns True if a row was removed."""
        await self._ensure_init()
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute("DELETE FROM trades WHERE id = ?;", (trade_id,))
            await db.commit()
            removed = cursor.rowcount > 0
        logger.debug("Delete trade %s → %s", trade_id, removed)
        return removed

    # ------------------------------------------------------------------ #
    # Read methods                                                         #
    # ------------------------------------------------------------------ #

    async def query_trades(
        self,
        *,
        profile_id: Optional[str] = None,
        start_dt: Optional[str] = None,
        end_dt: Optional[str] = None,
        symbol: Optional[str] = None,
        limit: int = 1000,
    ) -> list[dict[str, Any]]:
        """Query trades with optional filters.  Returns rows newest-first."""
        await self._ensure_init()
        clauses: list[str] = []
        params: list[Any] = []
        if profile_id:
            clauses.append("profile_id = ?")
            params.append(profile_id)
        if start_dt:
            clauses.append("date >= ?")
            params.append(start_dt)
        if end_dt:
            clauses.append("date <= ?")
            params.append(end_dt)
        if symbol:
            clauses.append("symbol LIKE ?")
            params.append(f"%{symbol}%")
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
        params.append(limit)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"""
                SELECT * FROM trades
                {where}
                ORDER BY date DESC
                LIMIT ?;
                """,
                params,
            ) as cursor:
                rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    async def load_trades(self, **filters: Any) -> list[JournalTrade]:
        """Like :meth:`query_trades` but returns validated ``JournalTrade`` models."""
        return [JournalTrade.from_row(row) for row in await self.query_trades(**filters)]

    def export_csv(self, rows: list[dict[str, Any]]) -> str:
        """Serialise a list of trade row dicts to a CSV string."""
        if not rows:
            return ""
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=list(CSV_COLUMNS), extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
        return buf.getvalue()
