"""
Account-level trade statistics: win rate, profit factor, drawdown,
and cash-flow totals (interest, dividends, deposits, withdrawals).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from trade_journal.analytics.pnl import BrokerSuppliedPnL, PnLModel
from trade_journal.core.types import Trade, TradeAction


@dataclass
class TradeStats:
    """Aggregate trade statistics. win_rate is a percentage."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_pnl: float
    biggest_win: float
    biggest_loss: float
    average_win: float
    average_loss: float
    profit_factor: float
    total_interest: float
    total_dividends: float
    total_deposits: float
    total_withdrawals: float
    total_fees: float

    def to_dict(self) -> dict:
        return {
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "winRate": self.win_rate,
            "totalPnL": self.total_pnl,
            "biggestWin": self.biggest_win,
            "biggestLoss": self.biggest_loss,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "profitFactor": self.profit_factor,
            "totalInterest": self.total_interest,
            "totalDividends": self.total_dividends,
            "totalDeposits": self.total_deposits,
            "totalWithdrawals": self.total_withdrawals,
            "totalFees": self.total_fees,
        }


@dataclass
class DrawdownStats:
    """Drawdown over a running P&L total that starts at 0. Amounts, not percent."""
    peak: float
    max_drawdown: float
    current_drawdown: float
    max_consecutive_losses: int


def profit_factor(pnls: List[float]) -> float:
    """Gross profit / gross loss. Gross profit when there are no losses."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float(wins)
    return wins / losses


def drawdown_stats(pnls: Sequence[float]) -> DrawdownStats:
    """Peak and drawdown of the running P&L total (starting at 0), plus the longest losing streak."""
    if len(pnls) == 0:
        return DrawdownStats(peak=0.0, max_drawdown=0.0, current_drawdown=0.0, max_consecutive_losses=0)
    running = np.cumsum(np.asarray(pnls, dtype=float))
    peak = np.maximum.accumulate(np.maximum(running, 0.0))
    dd = peak - running

    losses_in_row = 0
    max_losses_in_row = 0
    for p in pnls:
        if p < 0:
            losses_in_row += 1
            max_losses_in_row = max(max_losses_in_row, losses_in_row)
        else:
            losses_in_row = 0
    return DrawdownStats(
        peak=float(peak[-1]),
        max_drawdown=float(dd.max()),
        current_drawdown=float(dd[-1]),
        max_consecutive_losses=max_losses_in_row,
    )


def _sum_price(trades: Sequence[Trade], *actions: TradeAction) -> float:
    return float(sum(t.price for t in trades if t.action in actions))


def compute_trade_stats(trades: Sequence[Trade], pnl_model: Optional[PnLModel] = None) -> TradeStats:
    """
    Statistics over every trade with a non-zero P&L (broker result by default).
    Cash-flow totals sum the price column of the matching actions.
    """
    model = pnl_model or BrokerSuppliedPnL()
    pnls = [p for p in (model.trade_pnl(t) for t in trades) if p != 0]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total = len(pnls)
    return TradeStats(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=round(len(wins) / total * 100.0, 2) if total else 0.0,
        total_pnl=float(sum(pnls)),
        biggest_win=max(wins) if wins else 0.0,
        biggest_loss=min(losses) if losses else 0.0,
        average_win=sum(wins) / len(wins) if wins else 0.0,
        average_loss=sum(losses) / len(losses) if losses else 0.0,
        profit_factor=profit_factor(pnls),
        total_interest=_sum_price(trades, TradeAction.INTEREST, TradeAction.LENDING_INTEREST),
        total_dividends=_sum_price(trades, TradeAction.DIVIDEND),
        total_deposits=_sum_price(trades, TradeAction.DEPOSIT),
        total_withdrawals=_sum_price(trades, TradeAction.WITHDRAWAL),
        total_fees=float(sum(t.fees for t in trades)),
    )
