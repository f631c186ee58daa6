"""Utils: CSV loaders."""

from trade_journal.utils.loaders import load_candles, load_trades, parse_action

__all__ = ["load_candles", "load_trades", "parse_action"]
