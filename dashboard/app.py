"""dashboard/app.py — Shared services for the trade journal pages.

Pages import :func:`get_services` rather than building their own store so the
SQLite path, profile and instrument overrides stay consistent across the app.
"""
from __future__ import annotations

import logging
from pathlib import Path

import streamlit as st

from analytics.instruments import InstrumentTable
from database.local_store import TradeStore
from journal_config import JournalConfig, load_journal_config
from logging_config import setup_logging

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOGGER = logging.getLogger(__name__)


@st.cache_resource
def get_services() -> tuple[JournalConfig, TradeStore, InstrumentTable]:
    setup_logging("dashboard")
    config = load_journal_config(str(PROJECT_ROOT / ".env"))
    db_path = Path(config.db_path)
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path
    instruments_path = Path(config.instruments_file)
    if not instruments_path.is_absolute():
        instruments_path = PROJECT_ROOT / instruments_path

    store = TradeStore(db_path=str(db_path))
    instruments = InstrumentTable.from_yaml(instruments_path)
    LOGGER.info("Dashboard services ready (profile=%s, db=%s)", config.profile_id, db_path)
    return config, store, instruments
