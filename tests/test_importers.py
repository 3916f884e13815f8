"""tests/test_importers.py — CSV/statement importers and provider dispatch."""
from __future__ import annotations

from datetime import datetime

import pytest

from importers.base_importer import TradeProvider, parse_currency, parse_timestamp
from importers.interactive_brokers import InteractiveBrokersImporter
from importers.registry import build_importer, detect_trade_provider, parse_trade_file
from importers.robinhood import RobinhoodImporter
from importers.sierra_chart import SierraChartImporter
from importers.thinkorswim import ThinkorswimImporter
from importers.topone import TopOneImporter
from importers.tradingview import TradingViewImporter
from importers.tradovate import TradovateImporter
from models.trade import PositionMode, TradeSide

# ---------------------------------------------------------------------------
# Sample exports
# ---------------------------------------------------------------------------

TRADOVATE_PERFORMANCE = (
    "symbol,_priceFormat,_tickSize,buyFillId,sellFillId,qty,buyPrice,sellPrice,pnl,"
    "boughtTimestamp,soldTimestamp,duration\n"
    "MESZ5,-2,0.25,1,2,1,6000.00,6010.00,$50.00,10/15/2025 09:30:00,10/15/2025 09:45:00,15min\n"
    "MESZ5,-2,0.25,3,4,1,6010.00,6005.00,$(25.00),10/15/2025 10:00:00,10/15/2025 09:58:00,2min\n"
)

TRADOVATE_FILLS = (
    "Date,Contract,Action,Qty,Price\n"
    "2025-10-15 09:30:00,MNQZ5,Buy,2,20000.00\n"
    "2025-10-15 09:40:00,MNQZ5,Sell,2,20010.50\n"
)

TRADINGVIEW = (
    "Time,Symbol,Type,Qty,Price,Profit\n"
    "2025-10-15 14:00:00,ESZ5,Buy,1,6000,\n"
    "2025-10-15 14:30:00,ESZ5,Sell,1,6004,200\n"
)

INTERACTIVE_BROKERS = (
    "Statement,Header,Field Name,Field Value\n"
    "Statement,Data,BrokerName,Interactive Brokers LLC\n"
    "Trades,Header,DataDiscriminator,Asset Category,Currency,Symbol,Date/Time,Quantity,T. Price,Buy/Sell\n"
    "Trades,Data,Order,Stocks,USD,AAPL,2025-10-15 09:30:00,10,150.00,BUY\n"
    "Trades,Data,Order,Stocks,USD,AAPL,2025-10-15 15:00:00,-10,155.50,SELL\n"
)

ROBINHOOD = (
    '"Activity Date","Process Date","Settle Date","Instrument","Description",'
    '"Trans Code","Quantity","Price","Amount"\n'
    '"10/15/2025","10/15/2025","10/16/2025","SPY","SPY 10/17/2025 Call $600.00\nCUSIP: 78462F103",'
    '"BTO","1","$2.50","($250.04)"\n'
    '"10/15/2025","10/15/2025","10/16/2025","SPY","SPY 10/17/2025 Call $600.00","BTO","1","$3.00","($300.04)"\n'
    '"10/16/2025","10/16/2025","10/17/2025","SPY","SPY 10/17/2025 Call $600.00","STC","1","$3.10","$309.95"\n'
    '"10/16/2025","10/16/2025","10/17/2025","QQQ","QQQ 10/17/2025 Put $500.00","STC","1","$1.00","$99.95"\n'
    '"10/16/2025","10/16/2025","10/17/2025","SPY","SPY Dividend","CDIV","","","$1.20"\n'
    '"","","","","","","","",""\n'
    '"The data provided is for informational purposes only."\n'
)

THINKORSWIM = (
    "This document was exported from the paperMoney platform.\n"
    "\n"
    "Account Statement for 12345 since 11/1/25 through 11/5/25\n"
    "\n"
    "Cash Balance\n"
    "DATE,TIME,TYPE,REF #,DESCRIPTION,Misc Fees,Commissions & Fees,AMOUNT,BALANCE\n"
    '11/4/25,09:35:10,TRD,="1001",BOT +2 SPX 100 (Weeklys) 4 NOV 25 6785 PUT @7.30 CBOE,-1.00,-1.30,"-1,461.30","98,538.70"\n'
    '11/4/25,09:50:00,BAL,,Cash balance adjustment,,,,"98,538.70"\n'
    '11/4/25,10:05:00,TRD,="1002",SOLD -1 SPX 100 (Weeklys) 4 NOV 25 6785 PUT @9.00 CBOE,,-0.65,899.35,"99,438.05"\n'
    '11/4/25,10:20:00,TRD,="1003",SOLD -1 SPX 100 (Weeklys) 4 NOV 25 6785 PUT @6.00 CBOE,,-0.65,599.35,"100,037.40"\n'
    'TOTAL,,,,,,,,"$100,037.40"\n'
    "\n"
    "Futures Statements\n"
    "Trade Date,Exec Date,Exec Time,Type,Ref #,Description\n"
)

TOPONE = (
    "Ticket,Symbol,Side,Lots,Open Time,Open Price,Close Time,Close Price,Commissions,Swap,PnL\n"
    "1001,MNQZ5,BUY,2,15/10/2025 09:30:00,20000.00,15/10/2025 09:45:00,20010.00,1.50,0,40.00\n"
    "1002,MESZ5,SELL,1,16/10/2025 10:00:00,6000.00,16/10/2025 10:05:00,6005.00,0.75,0,-25.00\n"
    "1003,MESZ5,SELL,1,not a date,6000.00,,6005.00,0.75,0,-25.00\n"
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("$50.00", 50.0), ("$(67.50)", -67.5), ("-12", -12.0), ("1,234.50", 1234.5)],
    )
    def test_parse_currency(self, text, expected):
        assert parse_currency(text) == pytest.approx(expected)

    def test_parse_currency_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_currency("n/a")

    def test_parse_timestamp_converts_aware_to_naive_utc(self):
        assert parse_timestamp("2025-10-15T09:30:00-04:00") == datetime(2025, 10, 15, 13, 30)

    @pytest.mark.parametrize("text", ["", "   ", "not-a-date"])
    def test_parse_timestamp_invalid(self, text):
        assert parse_timestamp(text) is None


# ---------------------------------------------------------------------------
# Per-provider parsing
# ---------------------------------------------------------------------------


class TestTradovate:
    def test_performance_report(self):
        trades = TradovateImporter().parse(TRADOVATE_PERFORMANCE)

        assert len(trades) == 2
        win, loss = trades
        assert win.profit == pytest.approx(50.0)
        assert win.side is TradeSide.LONG
        assert win.date == datetime(2025, 10, 15, 9, 30)
        assert win.commission == 0.0
        assert loss.profit == pytest.approx(-25.0)
        assert loss.side is TradeSide.SHORT

    def test_performance_commission_is_deducted(self):
        content = (
            "symbol,qty,buyPrice,sellPrice,pnl,boughtTimestamp,Commission\n"
            "MESZ5,1,6000.00,6010.00,$50.00,10/15/2025 09:30:00,1.04\n"
        )
        trade = TradovateImporter().parse(content)[0]
        assert trade.profit == pytest.approx(48.96)
        assert trade.commission == pytest.approx(1.04)

    def test_fill_log_uses_point_value(self):
        trades = TradovateImporter().parse(TRADOVATE_FILLS)

        assert len(trades) == 1
        assert trades[0].profit == pytest.approx(10.5 * 2 * 2.0)
        assert trades[0].entry_time == "09:30:00"
        assert trades[0].exit_time == "09:40:00"

    def test_header_only(self):
        assert TradovateImporter().parse("Date,Contract,Action,Qty,Price\n") == []


class TestTradingView:
    def test_long_round_trip(self):
        trades = TradingViewImporter().parse(TRADINGVIEW)

        assert len(trades) == 1
        assert trades[0].symbol == "ESZ5"
        assert trades[0].profit == pytest.approx(200.0)

    def test_sell_without_open_is_dropped(self):
        content = "Time,Symbol,Type,Qty,Price\n2025-10-15 14:30:00,ESZ5,Sell,1,6004\n"
        assert TradingViewImporter().parse(content) == []


class TestInteractiveBrokers:
    def test_header_found_after_preamble(self):
        trades = InteractiveBrokersImporter().parse(INTERACTIVE_BROKERS)

        assert len(trades) == 1
        trade = trades[0]
        assert trade.symbol == "AAPL"
        assert trade.quantity == 10.0
        assert trade.profit == pytest.approx(55.0)

    def test_no_trades_section(self):
        assert InteractiveBrokersImporter().parse("Statement,Header,Field Name\n") == []


class TestRobinhood:
    def test_fifo_pairing_per_instrument(self):
        trades = RobinhoodImporter().parse(ROBINHOOD)

        assert len(trades) == 1
        trade = trades[0]
        assert trade.symbol == "SPY"
        assert trade.entry_price == 2.50
        assert trade.exit_price == 3.10
        assert trade.profit == pytest.approx(309.95 - 250.04)
        assert trade.entry_time == "12:00 AM"

    def test_only_bto_and_stc_rows_count(self):
        content = ROBINHOOD.replace('"STC"', '"SELL"')
        assert RobinhoodImporter().parse(content) == []


class TestThinkorswim:
    def test_partial_fifo_closes(self):
        trades = ThinkorswimImporter().parse(THINKORSWIM)

        assert len(trades) == 2
        first, second = trades
        assert first.symbol == "SPX"
        assert first.quantity == 1
        assert first.commission == pytest.approx(1.95)
        assert first.profit == pytest.approx((9.00 - 7.30) * 100 - 1.95)
        assert second.profit == pytest.approx((6.00 - 7.30) * 100 - 1.95)
        assert first.entry_time == "09:35:10 AM"
        assert second.exit_time == "10:20:00 AM"
        assert first.date == datetime(2025, 11, 4, 9, 35, 10)

    def test_missing_section(self):
        assert ThinkorswimImporter().parse("Account Statement\n\nAccount Summary\n") == []


class TestTopOne:
    def test_closed_positions(self):
        trades = TopOneImporter().parse(TOPONE)

        assert len(trades) == 2
        long_trade, short_trade = trades
        assert long_trade.date == datetime(2025, 10, 15)
        assert long_trade.entry_time == "09:30:00"
        assert long_trade.quantity == 2.0
        assert long_trade.profit == pytest.approx(38.5)
        assert long_trade.side is TradeSide.LONG
        assert short_trade.side is TradeSide.SHORT
        assert short_trade.profit == pytest.approx(-25.75)


# ---------------------------------------------------------------------------
# Detection & dispatch
# ---------------------------------------------------------------------------


class TestDetection:
    @pytest.mark.parametrize(
        ("content", "provider"),
        [
            (TOPONE, TradeProvider.TOPONE),
            (THINKORSWIM, TradeProvider.THINKORSWIM),
            (ROBINHOOD, TradeProvider.ROBINHOOD),
            (INTERACTIVE_BROKERS, TradeProvider.INTERACTIVE_BROKERS),
            (TRADOVATE_PERFORMANCE, TradeProvider.TRADOVATE),
            (TRADOVATE_FILLS, TradeProvider.TRADOVATE),
            (TRADINGVIEW, TradeProvider.TRADINGVIEW),
            ("hello\nworld\n", TradeProvider.UNKNOWN),
        ],
    )
    def test_detect(self, content, provider):
        assert detect_trade_provider(content) is provider

    def test_detect_sierra_chart(self, sierra_round_trip):
        assert detect_trade_provider(sierra_round_trip) is TradeProvider.SIERRA_CHART

    def test_build_importer_for_sierra_passes_position_mode(self):
        importer = build_importer("SierraChart", position_mode="queue")
        assert isinstance(importer, SierraChartImporter)
        assert importer.position_mode is PositionMode.QUEUE

    def test_build_importer_rejects_unknown(self):
        with pytest.raises(ValueError):
            build_importer(TradeProvider.UNKNOWN)


class TestParseTradeFile:
    def test_auto_detect(self, sierra_round_trip):
        trades = parse_trade_file(sierra_round_trip)
        assert len(trades) == 1
        assert trades[0].profit == pytest.approx(1000.0)

    def test_explicit_provider_string(self):
        assert len(parse_trade_file(TOPONE, "TopOne")) == 2

    def test_invalid_provider_name(self):
        with pytest.raises(ValueError):
            parse_trade_file(TOPONE, "MetaTrader")

    def test_unknown_format_tries_every_importer(self):
        content = (
            "Time,Symbol,Side,Qty,Price\n"
            "2025-10-15 14:00:00,ESZ5,Buy,1,6000\n"
            "2025-10-15 14:30:00,ESZ5,Sell,1,6004\n"
        )
        assert detect_trade_provider(content) is TradeProvider.UNKNOWN

        trades = parse_trade_file(content)
        assert len(trades) == 1
        assert trades[0].profit == pytest.approx(200.0)

    def test_unrecognisable_content(self):
        assert parse_trade_file("nothing to see here\n") == []
