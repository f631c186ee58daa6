"""
Position lifecycle: replays one ticker's trades in time order and produces
immutable PositionGroup snapshots, one per long position cycle.
Status only moves forward (OPEN -> PARTIALLY_CLOSED -> CLOSED); a BUY after a
cycle closed starts the next cycle instead of reopening the old one.
"""

from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

from trade_journal.analytics.pnl import BrokerSuppliedPnL, PnLModel
from trade_journal.core.types import (
    PositionGroup,
    PositionStatus,
    PositionSummary,
    Trade,
    TradeAction,
)

logger = logging.getLogger("trade_journal.positions")

# Share counts closer to zero than this are flat.
SHARE_EPSILON = 1e-9

POSITION_ACTIONS = (TradeAction.BUY, TradeAction.SELL, TradeAction.DIVIDEND)

_STATUS_RANK = {
    PositionStatus.OPEN: 0,
    PositionStatus.PARTIALLY_CLOSED: 1,
    PositionStatus.CLOSED: 2,
}


def percent_closed(total_buy_shares: float, net_shares: float) -> float:
    """Share of the bought quantity already sold, in [0, 100]. 0 before any buy."""
    if total_buy_shares <= 0:
        return 0.0
    if net_shares <= SHARE_EPSILON:
        return 100.0
    pct = (total_buy_shares - net_shares) / total_buy_shares * 100.0
    return min(100.0, max(0.0, pct))


def status_for(pct_closed: float) -> PositionStatus:
    if pct_closed >= 100.0:
        return PositionStatus.CLOSED
    if pct_closed > 0:
        return PositionStatus.PARTIALLY_CLOSED
    return PositionStatus.OPEN


def position_score(
    realized_pnl: float,
    unrealized_pnl: float,
    pct_closed: float,
    holding_period_hours: float,
) -> int:
    """
    0-100 score: profit (up to 50), short holding period (up to 25),
    closure progress (up to 25). Rounded half up.
    """
    score = 0.0
    total_pnl = realized_pnl + unrealized_pnl
    if total_pnl > 0:
        score += min(50.0, total_pnl / 1000.0 * 10.0)

    holding_days = holding_period_hours / 24.0
    if holding_days <= 5:
        score += 25
    elif holding_days <= 10:
        score += 15
    elif holding_days <= 20:
        score += 10
    else:
        score += 5

    if pct_closed >= 100:
        score += 25
    elif pct_closed >= 75:
        score += 20
    elif pct_closed >= 50:
        score += 15
    elif pct_closed > 0:
        score += 10

    return int(min(100, max(0, math.floor(score + 0.5))))


class PositionLifecycleTracker:
    """
    Builds position groups from chronologically ordered trades of one ticker.
    Realized P&L and dividends come from the injected model (broker result by default).
    """

    def __init__(self, pnl_model: Optional[PnLModel] = None):
        self.pnl_model = pnl_model or BrokerSuppliedPnL()

    def split_cycles(self, trades: Sequence[Trade]) -> List[List[Trade]]:
        """
        Cut one ticker's history into position cycles. A BUY opens a new cycle when
        there is none yet or the current one is flat after having bought.
        SELL and DIVIDEND before the first BUY are dropped, as is a SELL once a
        cycle is flat, so a closed cycle never changes.
        """
        cycles: List[List[Trade]] = []
        current: Optional[List[Trade]] = None
        net = 0.0
        bought = False
        for trade in sorted(trades, key=lambda t: t.timestamp):
            if trade.action not in POSITION_ACTIONS:
                logger.debug("Ignoring %s %s in position tracking", trade.action.value, trade.ticker)
                continue
            if trade.action == TradeAction.BUY and (current is None or (bought and net <= SHARE_EPSILON)):
                current = []
                cycles.append(current)
                net = 0.0
                bought = False
            if trade.action == TradeAction.SELL and (current is None or net <= SHARE_EPSILON):
                logger.warning("Skipping SELL %s (id=%s): no open position", trade.ticker, trade.id)
                continue
            if current is None:
                logger.debug("Skipping %s %s before first BUY", trade.action.value, trade.ticker)
                continue
            if trade.action == TradeAction.BUY:
                net += trade.quantity
                if trade.quantity > 0:
                    bought = True
            elif trade.action == TradeAction.SELL:
                net -= trade.quantity
            current.append(trade)
        return cycles

    def track(self, trades: Sequence[Trade], mark_price: Optional[float] = None) -> List[PositionGroup]:
        """One PositionGroup per cycle, oldest first. mark_price values the open remainder."""
        cycles = self.split_cycles(trades)
        return [
            self.build_group(cycle_trades, cycle=i, mark_price=mark_price)
            for i, cycle_trades in enumerate(cycles)
        ]

    def build_group(
        self,
        trades: Sequence[Trade],
        ticker: Optional[str] = None,
        cycle: int = 0,
        mark_price: Optional[float] = None,
    ) -> PositionGroup:
        """Replay a single cycle's trades. mark_price defaults to the last BUY/SELL price."""
        ordered = [t for t in sorted(trades, key=lambda t: t.timestamp) if t.action in POSITION_ACTIONS]
        if ticker is None:
            ticker = ordered[0].ticker if ordered else ""

        net_shares = 0.0
        total_buy_value = total_buy_shares = 0.0
        total_sell_value = total_sell_shares = 0.0
        realized_pnl = 0.0
        running_pnl = 0.0
        total_fees = 0.0
        total_dividends = 0.0
        winning_trades = 0
        closed_trades = 0
        last_price: Optional[float] = None
        status = PositionStatus.OPEN
        close_time = None

        for trade in ordered:
            if trade.action == TradeAction.BUY:
                net_shares += trade.quantity
                total_buy_value += trade.quantity * trade.price
                total_buy_shares += trade.quantity
                last_price = trade.price
            elif trade.action == TradeAction.SELL:
                net_shares -= trade.quantity
                total_sell_value += trade.quantity * trade.price
                total_sell_shares += trade.quantity
                pnl = self.pnl_model.trade_pnl(trade)
                realized_pnl += pnl
                running_pnl += pnl
                last_price = trade.price
                if abs(net_shares) <= SHARE_EPSILON:
                    closed_trades += 1
                    if running_pnl > 0:
                        winning_trades += 1
            else:
                amount = self.pnl_model.trade_pnl(trade)
                total_dividends += amount
                running_pnl += amount
            total_fees += trade.fees

            new_status = status_for(percent_closed(total_buy_shares, net_shares))
            if _STATUS_RANK[new_status] > _STATUS_RANK[status]:
                status = new_status
                if status == PositionStatus.CLOSED:
                    close_time = trade.timestamp

        pct_closed = percent_closed(total_buy_shares, net_shares)
        avg_entry = total_buy_value / total_buy_shares if total_buy_shares > 0 else 0.0
        avg_exit = total_sell_value / total_sell_shares if total_sell_shares > 0 else 0.0

        mark = mark_price if mark_price is not None else last_price
        unrealized_pnl = 0.0
        if net_shares > SHARE_EPSILON and mark is not None:
            unrealized_pnl = net_shares * (mark - avg_entry)

        holding_hours = 0.0
        if ordered:
            holding_hours = (ordered[-1].timestamp - ordered[0].timestamp).total_seconds() / 3600.0

        summary = PositionSummary(
            score=position_score(realized_pnl, unrealized_pnl, pct_closed, holding_hours),
            win_rate=winning_trades / closed_trades * 100.0 if closed_trades > 0 else 0.0,
            holding_period_hours=holding_hours,
            avg_entry_price=avg_entry,
            avg_exit_price=avg_exit,
            total_pnl=realized_pnl + unrealized_pnl,
            total_volume=total_buy_shares + total_sell_shares,
        )
        return PositionGroup(
            ticker=ticker,
            cycle=cycle,
            status=status,
            net_shares=net_shares,
            total_buy_shares=total_buy_shares,
            total_sell_shares=total_sell_shares,
            realized_pnl=realized_pnl,
            unrealized_pnl=unrealized_pnl,
            total_fees=total_fees,
            total_dividends=total_dividends,
            percent_closed=pct_closed,
            open_time=ordered[0].timestamp if ordered else None,
            close_time=close_time,
            summary=summary,
            trade_ids=tuple(t.id for t in ordered),
        )
