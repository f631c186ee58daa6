"""Indicators: SMA, EMA, WMA, RSI, MACD, Bollinger Bands."""

from trade_journal.indicators.engine import IndicatorEngine, MACDResult, BollingerBands

__all__ = ["IndicatorEngine", "MACDResult", "BollingerBands"]
