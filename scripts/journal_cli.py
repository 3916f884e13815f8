#!/usr/bin/env python3
"""
journal_cli.py — command-line mirror of the trade journal dashboard.

Sub-commands
------------
  parse     Parse a broker export and print the reconstructed trades.
  import    Parse a broker export and persist the trades for a profile.
  chart     Print the cumulative P&L series (monthly or yearly) and its domain.
  calendar  Print daily P&L for one month.
  export    Dump stored trades as CSV.

Quick examples
--------------
  python scripts/journal_cli.py parse TradeActivityLog.txt
  python scripts/journal_cli.py parse fills.csv --provider Tradovate --json
  python scripts/journal_cli.py parse TradeActivityLog.txt --mode queue
  python scripts/journal_cli.py import TradeActivityLog.txt --profile evals
  python scripts/journal_cli.py chart --date 2025-10-01 --commission 2.5
  python scripts/journal_cli.py chart --yearly --json
  python scripts/journal_cli.py calendar --month 2025-10
  python scripts/journal_cli.py export --output trades.csv

Exit codes: 0 success, 1 nothing imported / storage failure, 2 missing input.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Sequence

# ── add repo root to path so local imports work when run from any cwd ──────────
_REPO = Path(__file__).resolve().parent.parent
if str(_REPO) not in sys.path:
    sys.path.insert(0, str(_REPO))

import aiosqlite  # type: ignore[import]

from analytics.instruments import InstrumentTable
from analytics.performance import apply_commission, daily_pnl, month_grid, summarize
from analytics.pnl_series import build_pnl_series
from database.local_store import TradeStore
from importers.base_importer import TradeProvider
from importers.registry import detect_trade_provider, parse_trade_file
from journal_config import JournalConfig, load_journal_config
from logging_config import setup_logging
from models.chart import ViewMode
from models.trade import PositionMode

logger = logging.getLogger("journal_cli")

# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

LINE_FILL = "─"
EXIT_NO_TRADES = 1
EXIT_MISSING_INPUT = 2


def _hr(width: int = 78) -> str:
    return LINE_FILL * width


def _money(value: float | None, width: int = 11) -> str:
    if value is None:
        return "N/A".rjust(width)
    return f"{value:{width},.2f}"


def _print_kv(key: str, value, width: int = 20) -> None:
    print(f"  {key:<{width}}: {value}")


def _read_input(path_text: str) -> str:
    path = Path(path_text)
    if not path.is_file():
        print(f"error: input file not found: {path}", file=sys.stderr)
        sys.exit(EXIT_MISSING_INPUT)
    return path.read_text(encoding="utf-8-sig", errors="replace")


def _settings(args: argparse.Namespace) -> JournalConfig:
    config = load_journal_config(args.env_file)
    if getattr(args, "db", None):
        config.db_path = args.db
    if getattr(args, "profile", None):
        config.profile_id = args.profile
    if getattr(args, "mode", None):
        config.position_mode = PositionMode(args.mode)
    return config


def _parse_file(args: argparse.Namespace, config: JournalConfig):
    content = _read_input(args.file)
    provider = TradeProvider(args.provider) if args.provider else detect_trade_provider(content)
    instruments = InstrumentTable.from_yaml(config.instruments_file)
    trades = parse_trade_file(
        content,
        provider,
        instruments=instruments,
        position_mode=config.position_mode,
    )
    return provider, trades


async def _load_trades(config: JournalConfig):
    store = TradeStore(db_path=config.db_path)
    return await store.load_trades(profile_id=config.profile_id, limit=100_000)


def _run_store(coro):
    try:
        return asyncio.run(coro)
    except aiosqlite.Error as exc:
        logger.error("Trade store failure: %s", exc)
        print(f"error: trade store failure: {exc}", file=sys.stderr)
        sys.exit(EXIT_NO_TRADES)


# ═══════════════════════════════════════════════════════════════════════════════
# Argument parsing
# ═══════════════════════════════════════════════════════════════════════════════


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="journal_cli",
        description="CLI mirror of the trade journal dashboard.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("--env-file", default=".env", help="dotenv file with JOURNAL_* settings")
    p.add_argument("--db", default=None, help="override JOURNAL_DB_PATH")
    p.add_argument("--profile", default=None, help="override JOURNAL_PROFILE_ID")
    sub = p.add_subparsers(dest="cmd", required=True)

    providers = [prov.value for prov in TradeProvider]
    modes = [mode.value for mode in PositionMode]

    pa = sub.add_parser("parse", help="Parse a broker export and print trades")
    pa.add_argument("file")
    pa.add_argument("--provider", choices=providers, default=None,
                    help="skip auto-detection")
    pa.add_argument("--mode", choices=modes, default=None,
                    help="Sierra Chart open/close pairing strategy")
    pa.add_argument("--json", dest="as_json", action="store_true")

    im = sub.add_parser("import", help="Parse a broker export and save trades")
    im.add_argument("file")
    im.add_argument("--provider", choices=providers, default=None)
    im.add_argument("--mode", choices=modes, default=None)

    ch = sub.add_parser("chart", help="Cumulative P&L series for a month or year")
    ch.add_argument("--yearly", action="store_true", help="whole year instead of one month")
    ch.add_argument("--date", default=None, help="reference date YYYY-MM-DD (default today)")
    ch.add_argument("--commission", type=float, default=None,
                    help="flat per-trade commission (default JOURNAL_COMMISSION)")
    ch.add_argument("--json", dest="as_json", action="store_true")

    ca = sub.add_parser("calendar", help="Daily P&L for one month")
    ca.add_argument("--month", default=None, help="YYYY-MM (default current month)")

    ex = sub.add_parser("export", help="Dump stored trades as CSV")
    ex.add_argument("--output", default=None, help="write to this file instead of stdout")

    return p


# ═══════════════════════════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════════════════════════


def cmd_parse(args: argparse.Namespace) -> None:
    config = _settings(args)
    provider, trades = _parse_file(args, config)

    if args.as_json:
        print(json.dumps([t.model_dump(mode="json") for t in trades], indent=2))
        return

    print(f"{provider.value}: {len(trades)} trades")
    print(_hr())
    print(f"  {'Date':<19}  {'Symbol':<14} {'Side':<5} {'Qty':>5} {'Entry':>11} {'Exit':>11} {'P&L':>11}")
    print(_hr())
    for t in trades:
        print(
            f"  {t.date:%Y-%m-%d %H:%M:%S}  {t.symbol:<14} {t.side.value:<5} {t.quantity:>5g}"
            f" {_money(t.entry_price)} {_money(t.exit_price)} {_money(t.profit)}"
        )
    print(_hr())
    _print_kv("Net P&L", f"{sum(t.profit for t in trades):,.2f}")


def cmd_import(args: argparse.Namespace) -> None:
    config = _settings(args)
    provider, trades = _parse_file(args, config)
    if not trades:
        print(f"error: no trades found in {args.file} ({provider.value})", file=sys.stderr)
        sys.exit(EXIT_NO_TRADES)

    store = TradeStore(db_path=config.db_path)
    result = _run_store(store.bulk_import(trades, profile_id=config.profile_id))
    _print_kv("Provider", provider.value)
    _print_kv("Profile", config.profile_id)
    _print_kv("Imported", result.imported_count)
    _print_kv("Skipped duplicates", result.skipped)


def cmd_chart(args: argparse.Namespace) -> None:
    config = _settings(args)
    reference = date.fromisoformat(args.date) if args.date else date.today()
    commission = config.commission_per_trade if args.commission is None else args.commission
    view_mode = ViewMode.YEARLY if args.yearly else ViewMode.MONTHLY

    trades = apply_commission(_run_store(_load_trades(config)), commission)
    series = build_pnl_series(trades, view_mode, reference)

    if args.as_json:
        print(series.model_dump_json(indent=2))
        return

    print(f"P&L {view_mode.value} series around {reference} (commission {commission:.2f}/trade)")
    print(_hr())
    for point in series.points:
        marker = "·" if point.interpolated else str(point.sequence_index)
        print(f"  {marker:>4}  {point.label}  {point.symbol or '':<14} {_money(point.cumulative_pnl)}")
    print(_hr())
    _print_kv("Final P&L", f"{series.final_pnl:,.2f}")
    _print_kv("Domain", f"[{series.domain[0]:,.2f}, {series.domain[1]:,.2f}]")
    _print_kv("X ticks", ", ".join(series.x_ticks) or "—")
    _print_kv("Y ticks", ", ".join(f"{tick:,.2f}" for tick in series.y_ticks))


def cmd_calendar(args: argparse.Namespace) -> None:
    config = _settings(args)
    month_ref = datetime.strptime(args.month, "%Y-%m") if args.month else datetime.today()
    year, month = month_ref.year, month_ref.month

    trades = apply_commission(_run_store(_load_trades(config)), config.commission_per_trade)
    days = daily_pnl(trades, year, month)
    days_in_month, _offset = month_grid(year, month)

    print(f"Daily P&L for {year}-{month:02d}")
    print(_hr(60))
    for day_num in range(1, days_in_month + 1):
        summary = days.get(date(year, month, day_num))
        if summary is None:
            continue
        print(
            f"  {summary.day:%a %d}  {_money(summary.total_pnl)}  "
            f"{summary.trade_count:>3} trades  {', '.join(summary.symbols)}"
        )
    print(_hr(60))
    stats = summarize([t for t in trades if t.date.year == year and t.date.month == month])
    _print_kv("Trades", stats.trade_count)
    _print_kv("Win rate", f"{stats.win_rate:.1f}%")
    _print_kv("Net P&L", f"{stats.total_pnl:,.2f}")


def cmd_export(args: argparse.Namespace) -> None:
    config = _settings(args)
    store = TradeStore(db_path=config.db_path)
    rows = _run_store(store.query_trades(profile_id=config.profile_id, limit=100_000))
    text = store.export_csv(rows)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        _print_kv("Exported", f"{len(rows)} trades → {args.output}")
    else:
        sys.stdout.write(text)


# ═══════════════════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════════════════

_COMMANDS = {
    "parse":    cmd_parse,
    "import":   cmd_import,
    "chart":    cmd_chart,
    "calendar": cmd_calendar,
    "export":   cmd_export,
}


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging("journal_cli")
    fn = _COMMANDS.get(args.cmd)
    if fn is None:
        parser.print_help()
        sys.exit(1)
    fn(args)


if __name__ == "__main__":
    main()
