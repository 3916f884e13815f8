"""dashboard/main.py — Trade Journal navigation entry point.

Run with:
    streamlit run dashboard/main.py --server.port 8506

Architecture
------------
This is the ONLY file that calls ``st.set_page_config``.
It uses ``st.navigation`` (Streamlit ≥ 1.36) to define 2 pages:

  📓  Journal      — Upload broker exports, review and export stored trades
  📈  Performance  — Cumulative P&L chart (monthly / yearly) and P&L calendar

Both pages share the cached ``get_services()`` objects (TradeStore,
InstrumentTable, JournalConfig) from ``dashboard/app.py``.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

import streamlit as st

# ── Path bootstrap ────────────────────────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

os.chdir(_ROOT)

# ── Page config (called ONCE here, never inside page files) ──────────────────
st.set_page_config(
    page_title="Trade Journal",
    page_icon="📓",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
    [data-testid="stSidebarNav"] li { padding: .15rem 0; }
    [data-testid="stSidebarNav"] li[aria-selected="true"] a {
        color: #6366f1 !important;
        font-weight: 700;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# ── Navigation ────────────────────────────────────────────────────────────────
_PAGES_DIR = Path(__file__).parent / "pages"

journal_page = st.Page(
    str(_PAGES_DIR / "journal.py"),
    title="Journal",
    icon="📓",
    default=True,
)
performance_page = st.Page(
    str(_PAGES_DIR / "performance.py"),
    title="Performance",
    icon="📈",
)

nav = st.navigation({"Journal": [journal_page, performance_page]}, expanded=True)

# ── Sidebar footer: active profile ────────────────────────────────────────────
with st.sidebar:
    st.markdown("---")
    try:
        from dashboard.app import get_services

        _config, *_ = get_services()
        st.caption(f"Profile: **{_config.profile_id}**")
        st.caption(f"Pairing: {_config.position_mode.value}")
    except ValueError as exc:
        st.caption(f"Configuration error: {exc}")

# ── Run selected page ─────────────────────────────────────────────────────────
nav.run()
