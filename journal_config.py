from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from models.trade import PositionMode


@dataclass(slots=True)
class JournalConfig:
    db_path: str
    profile_id: str
    commission_per_trade: float
    position_mode: PositionMode
    instruments_file: str


def load_journal_config(env_file: str = ".env") -> JournalConfig:
    """Read journal settings from the environment (after loading *env_file*).

    Raises ``ValueError`` for a negative commission or an unknown position mode.
    """
    load_dotenv(env_file, override=False)

    commission = float(os.getenv("JOURNAL_COMMISSION", "0"))
    if commission < 0:
        raise ValueError(f"JOURNAL_COMMISSION must be non-negative, got {commission}")

    return JournalConfig(
        db_path=os.getenv("JOURNAL_DB_PATH", "data/trade_journal.db"),
        profile_id=os.getenv("JOURNAL_PROFILE_ID", "default"),
        commission_per_trade=commission,
        position_mode=PositionMode(os.getenv("JOURNAL_POSITION_MODE", PositionMode.OVERWRITE.value).lower()),
        instruments_file=os.getenv("JOURNAL_INSTRUMENTS_FILE", "config/instruments.yaml"),
    )
