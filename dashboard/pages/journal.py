"""dashboard/pages/journal.py — Trade import and stored-trades page."""
from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

_ROOT = Path(__file__).resolve().parents[2]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from dashboard.app import get_services
from dashboard.components.trade_import import render_trade_import
from dashboard.components.trade_journal_view import render_trade_journal

st.title("📓 Trade Journal")

try:
    config, store, instruments = get_services()
except ValueError as exc:
    st.error(f"Journal configuration invalid: {exc}")
    st.stop()

render_trade_import(
    store,
    profile_id=config.profile_id,
    instruments=instruments,
    position_mode=config.position_mode,
)
st.divider()
render_trade_journal(store, profile_id=config.profile_id)
