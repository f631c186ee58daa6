"""
Batch trade analytics: eight chart-ready blocks computed from one trade list.
Trades are stable-sorted by timestamp first; the equity curve depends on that order.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from trade_journal.analytics.pnl import DerivedPnL, PnLModel
from trade_journal.core.types import ChartSeries, Trade

logger = logging.getLogger("trade_journal.analytics")

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class AnalyticsBundle:
    """The eight analytics blocks of one aggregator run."""
    equity_curve: ChartSeries = field(default_factory=ChartSeries)
    win_loss: ChartSeries = field(default_factory=ChartSeries)
    position_size: ChartSeries = field(default_factory=ChartSeries)
    daily_performance: ChartSeries = field(default_factory=ChartSeries)
    monthly_performance: ChartSeries = field(default_factory=ChartSeries)
    risk_reward: ChartSeries = field(default_factory=ChartSeries)
    trade_duration: ChartSeries = field(default_factory=ChartSeries)
    hourly_stats: ChartSeries = field(default_factory=ChartSeries)

    def to_dict(self) -> dict:
        return {
            "equityCurve": self.equity_curve.to_dict(),
            "winLoss": self.win_loss.to_dict(),
            "positionSize": self.position_size.to_dict(),
            "dailyPerformance": self.daily_performance.to_dict(),
            "monthlyPerformance": self.monthly_performance.to_dict(),
            "riskReward": self.risk_reward.to_dict(),
            "tradeDuration": self.trade_duration.to_dict(),
            "hourlyStats": self.hourly_stats.to_dict(),
        }


def _sorted(trades: Sequence[Trade]) -> List[Trade]:
    # sorted() is stable: trades sharing a timestamp keep their input order
    return sorted(trades, key=lambda t: t.timestamp)


def _series(counts: pd.Series, label) -> ChartSeries:
    return ChartSeries(
        labels=tuple(label(k) for k in counts.index.tolist()),
        values=tuple(counts.tolist()),
    )


class TradeAnalyticsAggregator:
    """
    One-shot analytics over a trade list. P&L per trade comes from the
    injected model (cash-flow DerivedPnL unless told otherwise).
    """

    def __init__(self, pnl_model: Optional[PnLModel] = None, position_size_bin: int = 100):
        if position_size_bin <= 0:
            raise ValueError("position_size_bin must be positive")
        self.pnl_model = pnl_model or DerivedPnL()
        self.position_size_bin = int(position_size_bin)

    def process(self, trades: Sequence[Trade]) -> AnalyticsBundle:
        ordered = _sorted(trades)
        bundle = AnalyticsBundle(
            equity_curve=self.equity_curve(ordered),
            win_loss=self.win_loss(ordered),
            position_size=self.position_sizes(ordered),
            daily_performance=self.daily_performance(ordered),
            monthly_performance=self.monthly_performance(ordered),
            risk_reward=self.risk_reward(ordered),
            trade_duration=self.trade_duration(ordered),
            hourly_stats=self.hourly_stats(ordered),
        )
        logger.debug("Aggregated %d trades with %s P&L", len(ordered), self.pnl_model.name)
        return bundle

    def _pnls(self, trades: Sequence[Trade]) -> np.ndarray:
        return np.array([self.pnl_model.trade_pnl(t) for t in trades], dtype=float)

    def equity_curve(self, trades: Sequence[Trade]) -> ChartSeries:
        """Running balance after each trade, labelled by trade date."""
        ordered = _sorted(trades)
        if not ordered:
            return ChartSeries()
        balance = np.cumsum(self._pnls(ordered))
        return ChartSeries(
            labels=tuple(t.timestamp.date().isoformat() for t in ordered),
            values=tuple(balance.tolist()),
        )

    def win_loss(self, trades: Sequence[Trade]) -> ChartSeries:
        """Wins (P&L > 0) and losses (P&L < 0). Flat trades count as neither."""
        pnls = self._pnls(trades)
        return ChartSeries(
            labels=("Wins", "Losses"),
            values=(int((pnls > 0).sum()), int((pnls < 0).sum())),
        )

    def position_sizes(self, trades: Sequence[Trade]) -> ChartSeries:
        """Histogram of |quantity| in fixed-width buckets, smallest bucket first."""
        if not trades:
            return ChartSeries()
        width = self.position_size_bin
        sizes = np.abs(np.array([t.quantity for t in trades], dtype=float))
        buckets = (np.floor(sizes / width) * width).astype(int)
        counts = pd.Series(buckets).value_counts().sort_index()
        return _series(counts, lambda lo: f"{int(lo)}-{int(lo) + width - 1}")

    def _performance(self, trades: Sequence[Trade], fmt: str) -> ChartSeries:
        if not trades:
            return ChartSeries()
        keys = [t.timestamp.strftime(fmt) for t in trades]
        # zero-padded keys sort chronologically
        sums = pd.Series(self._pnls(trades), index=keys).groupby(level=0).sum()
        return _series(sums, str)

    def daily_performance(self, trades: Sequence[Trade]) -> ChartSeries:
        return self._performance(trades, "%Y-%m-%d")

    def monthly_performance(self, trades: Sequence[Trade]) -> ChartSeries:
        return self._performance(trades, "%Y-%m")

    def risk_reward(self, trades: Sequence[Trade]) -> ChartSeries:
        """Histogram of take-profit / stop-loss ratios for trades carrying both."""
        ratios = [
            round(abs(t.take_profit) / abs(t.stop_loss), 2)
            for t in trades
            if t.stop_loss and t.take_profit
        ]
        if not ratios:
            return ChartSeries()
        counts = pd.Series(ratios, dtype=float).value_counts().sort_index()
        return _series(counts, lambda r: f"{r:.2f}")

    def trade_duration(self, trades: Sequence[Trade]) -> ChartSeries:
        """Histogram of holding time in whole hours for trades with a close time."""
        hours = []
        for t in trades:
            if t.close_time is None:
                continue
            minutes = round((t.close_time - t.timestamp).total_seconds() / 60)
            hours.append(minutes // 60)
        if not hours:
            return ChartSeries()
        counts = pd.Series(hours, dtype=int).value_counts().sort_index()
        return _series(counts, lambda h: f"{int(h)}h")

    def hourly_stats(self, trades: Sequence[Trade]) -> ChartSeries:
        """Trade count per hour of day. Always 24 buckets."""
        hours = np.array([t.timestamp.hour for t in trades], dtype=int)
        counts = np.bincount(hours, minlength=HOURS_PER_DAY)
        return ChartSeries(
            labels=tuple(f"{h}:00" for h in range(HOURS_PER_DAY)),
            values=tuple(int(c) for c in counts),
        )
