"""Unit tests for positions.tracker."""

from datetime import datetime, timedelta

import pytest
from trade_journal.analytics.pnl import DerivedPnL
from trade_journal.core.types import PositionStatus, Trade, TradeAction
from trade_journal.positions.tracker import (
    PositionLifecycleTracker,
    percent_closed,
    position_score,
    status_for,
)

T0 = datetime(2024, 6, 3, 10, 0)


def _trade(id_, action, quantity, price, hours=0.0, result=None, fees=0.0, ticker="AAPL"):
    return Trade(
        id=id_,
        ticker=ticker,
        action=action,
        quantity=quantity,
        price=price,
        timestamp=T0 + timedelta(hours=hours),
        fees=fees,
        result=result,
    )


def test_full_round_trip():
    trades = [
        _trade("1", TradeAction.BUY, 100, 10.0),
        _trade("2", TradeAction.SELL, 100, 12.0, hours=24, result=200.0),
    ]
    g = PositionLifecycleTracker().build_group(trades)
    assert g.percent_closed == 100.0
    assert g.status == PositionStatus.CLOSED
    assert g.realized_pnl == 200.0
    assert g.net_shares == 0
    assert g.unrealized_pnl == 0.0
    assert g.close_time == T0 + timedelta(hours=24)
    assert g.summary.win_rate == 100.0
    assert g.summary.avg_entry_price == 10.0
    assert g.summary.avg_exit_price == 12.0
    assert g.summary.holding_period_hours == pytest.approx(24.0)
    # profit 200/1000*10 = 2, holding <= 5d = 25, closed = 25
    assert g.summary.score == 52


def test_partial_close_and_unrealized():
    trades = [
        _trade("1", TradeAction.BUY, 100, 10.0),
        _trade("2", TradeAction.SELL, 40, 12.0, hours=2, result=80.0),
    ]
    tracker = PositionLifecycleTracker()
    g = tracker.build_group(trades)
    assert g.status == PositionStatus.PARTIALLY_CLOSED
    assert g.percent_closed == pytest.approx(40.0)
    assert g.net_shares == 60
    assert g.unrealized_pnl == pytest.approx(60 * (12.0 - 10.0))
    assert g.total_buy_shares - g.net_shares == pytest.approx(g.total_sell_shares)
    assert g.close_time is None

    marked = tracker.build_group(trades, mark_price=15.0)
    assert marked.unrealized_pnl == pytest.approx(300.0)


def test_open_position():
    g = PositionLifecycleTracker().build_group([_trade("1", TradeAction.BUY, 10, 50.0)])
    assert g.status == PositionStatus.OPEN
    assert g.percent_closed == 0.0
    assert g.summary.avg_exit_price == 0.0
    assert g.summary.win_rate == 0.0
    assert g.unrealized_pnl == 0.0


def test_dividends_and_fees():
    trades = [
        _trade("1", TradeAction.BUY, 10, 100.0, fees=1.0),
        _trade("2", TradeAction.DIVIDEND, 10, 0.5, hours=48, result=5.0, fees=0.25),
        _trade("3", TradeAction.SELL, 10, 99.0, hours=72, result=-10.0, fees=1.0),
    ]
    g = PositionLifecycleTracker().build_group(trades)
    assert g.total_dividends == 5.0
    assert g.total_fees == pytest.approx(2.25)
    assert g.realized_pnl == -10.0
    # running P&L (-10 + 5) is negative when the position goes flat
    assert g.summary.win_rate == 0.0
    assert g.status == PositionStatus.CLOSED


def test_dividend_can_turn_cycle_into_win():
    trades = [
        _trade("1", TradeAction.BUY, 10, 100.0),
        _trade("2", TradeAction.DIVIDEND, 10, 1.0, hours=1, result=10.0),
        _trade("3", TradeAction.SELL, 10, 99.5, hours=2, result=-5.0),
    ]
    g = PositionLifecycleTracker().build_group(trades)
    assert g.summary.win_rate == 100.0


def test_status_never_moves_backward():
    trades = [
        _trade("1", TradeAction.BUY, 100, 10.0),
        _trade("2", TradeAction.SELL, 50, 11.0, hours=1, result=50.0),
        _trade("3", TradeAction.BUY, 100, 10.5, hours=2),
    ]
    g = PositionLifecycleTracker().build_group(trades)
    assert g.status == PositionStatus.PARTIALLY_CLOSED
    assert g.percent_closed == pytest.approx(25.0)


def test_buy_after_close_starts_new_cycle():
    trades = [
        _trade("1", TradeAction.BUY, 10, 10.0),
        _trade("2", TradeAction.SELL, 10, 11.0, hours=1, result=10.0),
        _trade("3", TradeAction.BUY, 5, 12.0, hours=2),
    ]
    groups = PositionLifecycleTracker().track(list(reversed(trades)))
    assert [g.cycle for g in groups] == [0, 1]
    first, second = groups
    assert first.status == PositionStatus.CLOSED
    assert first.trade_ids == ("1", "2")
    assert second.status == PositionStatus.OPEN
    assert second.net_shares == 5
    assert second.trade_ids == ("3",)
    assert second.realized_pnl == 0.0


def test_sell_without_position_is_skipped():
    trades = [
        _trade("0", TradeAction.SELL, 5, 9.0, result=3.0),
        _trade("1", TradeAction.BUY, 10, 10.0, hours=1),
    ]
    groups = PositionLifecycleTracker().track(trades)
    assert len(groups) == 1
    assert groups[0].trade_ids == ("1",)
    assert groups[0].realized_pnl == 0.0


def test_sell_after_close_leaves_cycle_untouched():
    trades = [
        _trade("1", TradeAction.BUY, 10, 10.0),
        _trade("2", TradeAction.SELL, 10, 11.0, hours=1, result=10.0),
        _trade("3", TradeAction.SELL, 5, 12.0, hours=2, result=10.0),
    ]
    groups = PositionLifecycleTracker().track(trades)
    assert len(groups) == 1
    g = groups[0]
    assert g.trade_ids == ("1", "2")
    assert g.realized_pnl == 10.0
    assert g.net_shares == 0
    assert g.status == PositionStatus.CLOSED


def test_zero_quantity_buy_does_not_split_cycle():
    trades = [
        _trade("1", TradeAction.BUY, 0, 10.0),
        _trade("2", TradeAction.BUY, 10, 10.0, hours=1),
    ]
    groups = PositionLifecycleTracker().track(trades)
    assert len(groups) == 1
    assert groups[0].trade_ids == ("1", "2")
    assert groups[0].net_shares == 10


def test_derived_pnl_model():
    trades = [
        _trade("1", TradeAction.BUY, 100, 10.0),
        _trade("2", TradeAction.SELL, 100, 12.0, hours=1, result=200.0),
    ]
    g = PositionLifecycleTracker(pnl_model=DerivedPnL()).build_group(trades)
    assert g.realized_pnl == pytest.approx(1200.0)


def test_bounds_hold_for_big_winner():
    trades = [
        _trade("1", TradeAction.BUY, 1000, 10.0),
        _trade("2", TradeAction.SELL, 1200, 30.0, hours=3, result=20000.0),
    ]
    g = PositionLifecycleTracker().build_group(trades)
    assert 0 <= g.percent_closed <= 100
    assert 0 <= g.summary.win_rate <= 100
    assert g.summary.score == 100


def test_percent_closed_guard():
    assert percent_closed(0.0, 0.0) == 0.0
    assert percent_closed(0.0, -5.0) == 0.0
    assert percent_closed(100.0, 25.0) == pytest.approx(75.0)
    assert percent_closed(100.0, -10.0) == 100.0


def test_status_for():
    assert status_for(0.0) == PositionStatus.OPEN
    assert status_for(0.5) == PositionStatus.PARTIALLY_CLOSED
    assert status_for(100.0) == PositionStatus.CLOSED


@pytest.mark.parametrize(
    "realized,unrealized,pct,hours,expected",
    [
        (0.0, 0.0, 0.0, 24 * 30, 5),
        (0.0, 0.0, 60.0, 0.0, 40),
        (-500.0, 0.0, 100.0, 24 * 6, 40),
        (0.0, 0.0, 80.0, 24 * 15, 30),
        (3000.0, 2000.0, 100.0, 1.0, 100),
        (250.0, 0.0, 10.0, 24 * 21, 18),
    ],
)
def test_position_score(realized, unrealized, pct, hours, expected):
    assert position_score(realized, unrealized, pct, hours) == expected
