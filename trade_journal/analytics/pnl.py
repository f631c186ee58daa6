"""
Per-trade P&L models. Callers pick one model and pass it to every component
that needs trade P&L, so broker and derived figures are never mixed silently.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from trade_journal.core.types import Trade, TradeAction


class PnLModel(ABC):
    """Maps a single trade to its P&L contribution."""

    name: str = ""

    @abstractmethod
    def trade_pnl(self, trade: Trade) -> float:
        pass


class BrokerSuppliedPnL(PnLModel):
    """The broker's own result field; 0 when the export has none."""

    name = "broker"

    def trade_pnl(self, trade: Trade) -> float:
        return float(trade.result) if trade.result is not None else 0.0


class DerivedPnL(PnLModel):
    """Cash-flow view: a BUY costs quantity * price, every other action brings it in."""

    name = "derived"

    def trade_pnl(self, trade: Trade) -> float:
        value = trade.quantity * trade.price
        return -value if trade.action == TradeAction.BUY else value


_MODELS = {
    BrokerSuppliedPnL.name: BrokerSuppliedPnL,
    DerivedPnL.name: DerivedPnL,
}


def pnl_model_from_name(name: str) -> PnLModel:
    """Build a model from its config name ("broker" or "derived")."""
    try:
        return _MODELS[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"Unsupported PnL model: {name}") from None
