"""Analytics: chart blocks, P&L models, trade statistics."""

from trade_journal.analytics.aggregator import AnalyticsBundle, TradeAnalyticsAggregator
from trade_journal.analytics.metrics import (
    DrawdownStats,
    TradeStats,
    compute_trade_stats,
    drawdown_stats,
    profit_factor,
)
from trade_journal.analytics.pnl import BrokerSuppliedPnL, DerivedPnL, PnLModel, pnl_model_from_name

__all__ = [
    "AnalyticsBundle",
    "TradeAnalyticsAggregator",
    "DrawdownStats",
    "TradeStats",
    "compute_trade_stats",
    "drawdown_stats",
    "profit_factor",
    "BrokerSuppliedPnL",
    "DerivedPnL",
    "PnLModel",
    "pnl_model_from_name",
]
