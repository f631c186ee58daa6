"""Core: config, types, logging."""

from trade_journal.core.config import load_config, Config
from trade_journal.core.types import (
    Candle,
    ChartSeries,
    PatternDirection,
    PatternResult,
    PatternType,
    PositionGroup,
    PositionStatus,
    PositionSummary,
    Trade,
    TradeAction,
)
from trade_journal.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Candle",
    "ChartSeries",
    "PatternDirection",
    "PatternResult",
    "PatternType",
    "PositionGroup",
    "PositionStatus",
    "PositionSummary",
    "Trade",
    "TradeAction",
    "setup_logging",
]
