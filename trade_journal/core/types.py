"""
Core data types for candles, trades, pattern matches, position groups and chart series.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    LENDING_INTEREST = "LENDING_INTEREST"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    CURRENCY_CONVERSION = "CURRENCY_CONVERSION"


class PatternType(str, Enum):
    CUP_AND_HANDLE = "CUP_AND_HANDLE"
    BULL_FLAG = "BULL_FLAG"
    BEAR_FLAG = "BEAR_FLAG"
    TRIPLE_TOP = "TRIPLE_TOP"


class PatternDirection(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"


class PositionStatus(str, Enum):
    OPEN = "OPEN"
    PARTIALLY_CLOSED = "PARTIALLY_CLOSED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle. timestamp is epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


@dataclass(frozen=True)
class Trade:
    """
    One broker transaction. result is the broker-supplied realized P&L (SELL)
    or cash amount (DIVIDEND). stop_loss, take_profit and close_time are only
    present in exports that carry them.
    """
    id: str
    ticker: str
    action: TradeAction
    quantity: float
    price: float
    timestamp: datetime
    currency: str = "USD"
    fees: float = 0.0
    result: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    close_time: Optional[datetime] = None


@dataclass(frozen=True)
class PatternResult:
    """Chart pattern match. confidence is in [0, 1]."""
    type: PatternType
    direction: PatternDirection
    confidence: float
    timestamp: int
    price: float

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "price": self.price,
        }


@dataclass(frozen=True)
class PositionSummary:
    score: int
    win_rate: float
    holding_period_hours: float
    avg_entry_price: float
    avg_exit_price: float
    total_pnl: float
    total_volume: float


@dataclass(frozen=True)
class PositionGroup:
    """
    Snapshot of one long position cycle for a ticker. Built once from the
    cycle's trades; a BUY after the cycle closed belongs to cycle + 1.
    """
    ticker: str
    cycle: int
    status: PositionStatus
    net_shares: float
    total_buy_shares: float
    total_sell_shares: float
    realized_pnl: float
    unrealized_pnl: float
    total_fees: float
    total_dividends: float
    percent_closed: float
    open_time: Optional[datetime]
    close_time: Optional[datetime]
    summary: PositionSummary
    trade_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def key(self) -> Tuple[str, int]:
        return (self.ticker, self.cycle)

    @property
    def is_closed(self) -> bool:
        return self.status == PositionStatus.CLOSED

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "cycle": self.cycle,
            "status": self.status.value,
            "netShares": self.net_shares,
            "realizedPnL": self.realized_pnl,
            "unrealizedPnL": self.unrealized_pnl,
            "totalFees": self.total_fees,
            "totalDividends": self.total_dividends,
            "percentClosed": self.percent_closed,
            "openDate": self.open_time.isoformat() if self.open_time else None,
            "closeDate": self.close_time.isoformat() if self.close_time else None,
            "summary": {
                "score": self.summary.score,
                "winRate": self.summary.win_rate,
                "holdingPeriodHours": self.summary.holding_period_hours,
                "avgEntryPrice": self.summary.avg_entry_price,
                "avgExitPrice": self.summary.avg_exit_price,
                "totalPnL": self.summary.total_pnl,
                "totalVolume": self.summary.total_volume,
            },
        }


@dataclass(frozen=True)
class ChartSeries:
    """Two parallel sequences ready for charting."""
    labels: Tuple[str, ...] = ()
    values: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.values):
            raise ValueError(
                f"labels and values differ in length: {len(self.labels)} != {len(self.values)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    def to_dict(self) -> dict:
        return {"labels": list(self.labels), "values": list(self.values)}
