"""Positions: lifecycle tracking and the per-ticker position book."""

from trade_journal.positions.tracker import (
    PositionLifecycleTracker,
    percent_closed,
    position_score,
    status_for,
)
from trade_journal.positions.book import PositionBook, TickerSummary

__all__ = [
    "PositionLifecycleTracker",
    "percent_closed",
    "position_score",
    "status_for",
    "PositionBook",
    "TickerSummary",
]
