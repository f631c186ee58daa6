"""Unit tests for analytics.aggregator."""

from datetime import datetime

import pytest
from trade_journal.analytics.aggregator import TradeAnalyticsAggregator
from trade_journal.analytics.pnl import BrokerSuppliedPnL, DerivedPnL
from trade_journal.core.types import Trade, TradeAction

_ids = iter(range(1_000_000))


def _trade(action, quantity, price, ts, **kw):
    return Trade(
        id=str(next(_ids)),
        ticker=kw.pop("ticker", "AAPL"),
        action=action,
        quantity=quantity,
        price=price,
        timestamp=ts,
        **kw,
    )


def test_equity_curve_sorts_chronologically():
    sell = _trade(TradeAction.SELL, 10, 12.0, datetime(2024, 1, 2, 15, 0))
    buy = _trade(TradeAction.BUY, 10, 10.0, datetime(2024, 1, 1, 10, 0))
    curve = TradeAnalyticsAggregator().equity_curve([sell, buy])
    assert curve.labels == ("2024-01-01", "2024-01-02")
    assert curve.values == pytest.approx((-100.0, 20.0))


def test_equity_curve_is_running_sum():
    trades = [
        _trade(TradeAction.BUY, 5, 20.0, datetime(2024, 3, 1, 9)),
        _trade(TradeAction.SELL, 2, 25.0, datetime(2024, 3, 2, 9)),
        _trade(TradeAction.DIVIDEND, 3, 1.5, datetime(2024, 3, 3, 9)),
        _trade(TradeAction.SELL, 3, 18.0, datetime(2024, 3, 4, 9)),
    ]
    model = DerivedPnL()
    curve = TradeAnalyticsAggregator().equity_curve(trades)
    assert curve.values[0] == pytest.approx(model.trade_pnl(trades[0]))
    for i in range(1, len(trades)):
        assert curve.values[i] - curve.values[i - 1] == pytest.approx(model.trade_pnl(trades[i]))


def test_equity_curve_stable_for_equal_timestamps():
    ts = datetime(2024, 5, 1, 12)
    first = _trade(TradeAction.SELL, 1, 50.0, ts)
    second = _trade(TradeAction.BUY, 1, 20.0, ts)
    curve = TradeAnalyticsAggregator().equity_curve([first, second])
    assert curve.values == pytest.approx((50.0, 30.0))


def test_win_loss_ignores_flat_trades():
    trades = [
        _trade(TradeAction.BUY, 10, 10.0, datetime(2024, 1, 1)),
        _trade(TradeAction.SELL, 10, 11.0, datetime(2024, 1, 2)),
        _trade(TradeAction.DIVIDEND, 0, 0.0, datetime(2024, 1, 3)),
    ]
    block = TradeAnalyticsAggregator().win_loss(trades)
    assert block.labels == ("Wins", "Losses")
    assert block.values == (1, 1)


def test_position_size_histogram():
    trades = [
        _trade(TradeAction.BUY, q, 1.0, datetime(2024, 1, 1, 10))
        for q in (50, 150, 250)
    ]
    block = TradeAnalyticsAggregator().position_sizes(trades)
    assert block.labels == ("0-99", "100-199", "200-299")
    assert block.values == (1, 1, 1)


def test_position_size_histogram_sorted_by_bucket():
    trades = [
        _trade(TradeAction.BUY, q, 1.0, datetime(2024, 1, 1, 10))
        for q in (250, 50, 99.5)
    ]
    block = TradeAnalyticsAggregator().position_sizes(trades)
    assert block.labels == ("0-99", "200-299")
    assert block.values == (2, 1)


def test_position_size_custom_bin():
    trades = [_trade(TradeAction.BUY, 75, 1.0, datetime(2024, 1, 1))]
    block = TradeAnalyticsAggregator(position_size_bin=50).position_sizes(trades)
    assert block.labels == ("50-99",)


def test_daily_and_monthly_performance():
    trades = [
        _trade(TradeAction.SELL, 1, 100.0, datetime(2024, 2, 1, 9)),
        _trade(TradeAction.BUY, 1, 40.0, datetime(2024, 1, 31, 16)),
        _trade(TradeAction.SELL, 1, 10.0, datetime(2024, 1, 15, 11)),
        _trade(TradeAction.SELL, 1, 5.0, datetime(2024, 1, 15, 14)),
    ]
    agg = TradeAnalyticsAggregator()
    daily = agg.daily_performance(trades)
    assert daily.labels == ("2024-01-15", "2024-01-31", "2024-02-01")
    assert daily.values == pytest.approx((15.0, -40.0, 100.0))
    monthly = agg.monthly_performance(trades)
    assert monthly.labels == ("2024-01", "2024-02")
    assert monthly.values == pytest.approx((-25.0, 100.0))


def test_risk_reward_histogram():
    ts = datetime(2024, 1, 1)
    trades = [
        _trade(TradeAction.BUY, 1, 10.0, ts, stop_loss=2.0, take_profit=4.0),
        _trade(TradeAction.BUY, 1, 10.0, ts, stop_loss=3.0, take_profit=4.5),
        _trade(TradeAction.BUY, 1, 10.0, ts, stop_loss=-1.0, take_profit=2.0),
        _trade(TradeAction.BUY, 1, 10.0, ts, take_profit=2.0),
    ]
    block = TradeAnalyticsAggregator().risk_reward(trades)
    assert block.labels == ("1.50", "2.00")
    assert block.values == (1, 2)


def test_trade_duration_histogram():
    trades = [
        _trade(TradeAction.BUY, 1, 1.0, datetime(2024, 1, 1, 10, 0), close_time=datetime(2024, 1, 1, 12, 30)),
        _trade(TradeAction.BUY, 1, 1.0, datetime(2024, 1, 1, 10, 0), close_time=datetime(2024, 1, 1, 10, 45)),
        _trade(TradeAction.BUY, 1, 1.0, datetime(2024, 1, 1, 10, 0)),
    ]
    block = TradeAnalyticsAggregator().trade_duration(trades)
    assert block.labels == ("0h", "2h")
    assert block.values == (1, 1)


def test_hourly_stats_always_24_buckets():
    agg = TradeAnalyticsAggregator()
    empty = agg.hourly_stats([])
    assert len(empty) == 24
    assert sum(empty.values) == 0
    single = agg.hourly_stats([_trade(TradeAction.BUY, 1, 1.0, datetime(2024, 1, 1, 9, 41))])
    assert len(single) == 24
    assert single.labels[0] == "0:00" and single.labels[23] == "23:00"
    assert single.values[9] == 1
    assert sum(single.values) == 1


def test_process_empty_bundle():
    bundle = TradeAnalyticsAggregator().process([])
    assert len(bundle.equity_curve) == 0
    assert bundle.win_loss.values == (0, 0)
    assert len(bundle.hourly_stats) == 24


def test_bundle_boundary_message():
    trades = [
        _trade(TradeAction.BUY, 10, 10.0, datetime(2024, 1, 1, 10)),
        _trade(TradeAction.SELL, 10, 12.0, datetime(2024, 1, 2, 11)),
    ]
    payload = TradeAnalyticsAggregator().process(trades).to_dict()
    assert set(payload) == {
        "equityCurve", "winLoss", "positionSize", "dailyPerformance",
        "monthlyPerformance", "riskReward", "tradeDuration", "hourlyStats",
    }
    for block in payload.values():
        assert len(block["labels"]) == len(block["values"])


def test_broker_pnl_model():
    trades = [
        _trade(TradeAction.BUY, 10, 10.0, datetime(2024, 1, 1, 10)),
        _trade(TradeAction.SELL, 10, 12.0, datetime(2024, 1, 2, 11), result=20.0),
    ]
    curve = TradeAnalyticsAggregator(pnl_model=BrokerSuppliedPnL()).equity_curve(trades)
    assert curve.values == pytest.approx((0.0, 20.0))


def test_invalid_bin_width():
    with pytest.raises(ValueError):
        TradeAnalyticsAggregator(position_size_bin=0)
