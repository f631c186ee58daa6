"""
Position book: all position cycles of a multi-ticker trade history, stored
by (ticker, cycle) and never rewritten once built.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from trade_journal.core.types import PositionGroup, PositionStatus, Trade
from trade_journal.positions.tracker import POSITION_ACTIONS, PositionLifecycleTracker

logger = logging.getLogger("trade_journal.positions.book")


@dataclass(frozen=True)
class TickerSummary:
    """Roll-up of every cycle of one ticker. win_rate is the share of closed cycles in profit."""
    ticker: str
    cycles: int
    total_realized_pnl: float
    total_unrealized_pnl: float
    total_dividends: float
    total_fees: float
    open_shares: float
    total_volume: float
    last_trade_time: Optional[datetime]
    win_rate: float
    score: int

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "cycles": self.cycles,
            "totalRealizedPnL": self.total_realized_pnl,
            "totalUnrealizedPnL": self.total_unrealized_pnl,
            "totalDividends": self.total_dividends,
            "totalFees": self.total_fees,
            "openPositions": self.open_shares,
            "totalVolume": self.total_volume,
            "lastTradeDate": self.last_trade_time.isoformat() if self.last_trade_time else None,
            "winRate": self.win_rate,
            "score": self.score,
        }


class PositionBook:
    """Arena of PositionGroup snapshots keyed by (ticker, cycle)."""

    def __init__(self, groups: Sequence[PositionGroup] = (), last_trade_times: Optional[Mapping[str, datetime]] = None):
        self._groups: Dict[Tuple[str, int], PositionGroup] = {}
        for group in groups:
            if group.key in self._groups:
                raise ValueError(f"Duplicate position group {group.key}")
            self._groups[group.key] = group
        self._last_trade_times = dict(last_trade_times or {})

    @classmethod
    def from_trades(
        cls,
        trades: Sequence[Trade],
        tracker: Optional[PositionLifecycleTracker] = None,
        mark_prices: Optional[Mapping[str, float]] = None,
    ) -> "PositionBook":
        """
        Group position trades by ticker and replay each ticker independently.
        mark_prices (ticker -> price) come from a quote feed when available.
        """
        tracker = tracker or PositionLifecycleTracker()
        mark_prices = mark_prices or {}
        by_ticker: Dict[str, List[Trade]] = defaultdict(list)
        for trade in trades:
            if trade.action in POSITION_ACTIONS and trade.ticker:
                by_ticker[trade.ticker].append(trade)

        groups: List[PositionGroup] = []
        last_times: Dict[str, datetime] = {}
        for ticker in sorted(by_ticker):
            ticker_trades = by_ticker[ticker]
            groups.extend(tracker.track(ticker_trades, mark_price=mark_prices.get(ticker)))
            last_times[ticker] = max(t.timestamp for t in ticker_trades)
        logger.info("Built %d position group(s) across %d ticker(s)", len(groups), len(by_ticker))
        return cls(groups, last_times)

    def __len__(self) -> int:
        return len(self._groups)

    def tickers(self) -> List[str]:
        return sorted({ticker for ticker, _ in self._groups})

    def get(self, ticker: str, cycle: int) -> Optional[PositionGroup]:
        return self._groups.get((ticker, cycle))

    def current(self, ticker: str) -> Optional[PositionGroup]:
        """Latest cycle of a ticker."""
        cycles = [g for (t, _), g in self._groups.items() if t == ticker]
        return max(cycles, key=lambda g: g.cycle) if cycles else None

    def groups(self, ticker: Optional[str] = None, status: Optional[PositionStatus] = None) -> List[PositionGroup]:
        """Groups ordered by ticker then cycle, optionally filtered."""
        out = [
            g for key, g in sorted(self._groups.items())
            if (ticker is None or key[0] == ticker) and (status is None or g.status == status)
        ]
        return out

    def ticker_summary(self, ticker: str) -> Optional[TickerSummary]:
        cycles = self.groups(ticker=ticker)
        if not cycles:
            return None
        closed = [g for g in cycles if g.is_closed]
        profitable = [g for g in closed if g.realized_pnl + g.total_dividends > 0]
        return TickerSummary(
            ticker=ticker,
            cycles=len(cycles),
            total_realized_pnl=sum(g.realized_pnl for g in cycles),
            total_unrealized_pnl=sum(g.unrealized_pnl for g in cycles),
            total_dividends=sum(g.total_dividends for g in cycles),
            total_fees=sum(g.total_fees for g in cycles),
            open_shares=sum(g.net_shares for g in cycles if not g.is_closed),
            total_volume=sum(g.summary.total_volume for g in cycles),
            last_trade_time=self._last_trade_times.get(ticker),
            win_rate=len(profitable) / len(closed) * 100.0 if closed else 0.0,
            score=int(round(sum(g.summary.score for g in cycles) / len(cycles))),
        )

    def summaries(self) -> List[TickerSummary]:
        return [s for s in (self.ticker_summary(t) for t in self.tickers()) if s is not None]
