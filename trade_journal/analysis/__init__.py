"""Analysis: indicator and pattern requests over candles."""

from trade_journal.analysis.technical import (
    AnalysisOptions,
    AnalysisResult,
    BollingerOptions,
    MACDOptions,
    TechnicalAnalysis,
    available_indicators,
)

__all__ = [
    "AnalysisOptions",
    "AnalysisResult",
    "BollingerOptions",
    "MACDOptions",
    "TechnicalAnalysis",
    "available_indicators",
]
