"""
Indicator + pattern analysis over a candle sequence. Each requested indicator is
computed on its own, so an invalid request for one leaves the others intact.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from trade_journal.core.types import Candle, PatternDirection, PatternResult, PatternType
from trade_journal.indicators.engine import IndicatorEngine
from trade_journal.patterns.detector import PatternDetector

logger = logging.getLogger("trade_journal.analysis")


@dataclass
class MACDOptions:
    fast: int = 12
    slow: int = 26
    signal: int = 9


@dataclass
class BollingerOptions:
    period: int = 20
    std_dev: float = 2.0


@dataclass
class AnalysisOptions:
    """Which indicators to compute. Empty lists / None skip an indicator."""
    sma: List[int] = field(default_factory=list)
    ema: List[int] = field(default_factory=list)
    wma: List[int] = field(default_factory=list)
    rsi: Optional[int] = None
    macd: Optional[MACDOptions] = None
    bbands: Optional[BollingerOptions] = None
    patterns: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AnalysisOptions":
        """Parse a request body such as {"sma": [20], "rsi": 14, "macd": {"fast": 12, ...}}."""
        data = data or {}
        macd = data.get("macd")
        bbands = data.get("bbands")
        return cls(
            sma=[int(p) for p in data.get("sma") or []],
            ema=[int(p) for p in data.get("ema") or []],
            wma=[int(p) for p in data.get("wma") or []],
            rsi=int(data["rsi"]) if data.get("rsi") is not None else None,
            macd=MACDOptions(int(macd["fast"]), int(macd["slow"]), int(macd["signal"])) if macd else None,
            bbands=BollingerOptions(
                int(bbands["period"]), float(bbands.get("stdDev", bbands.get("std_dev", 2.0)))
            ) if bbands else None,
            patterns=bool(data.get("patterns", True)),
        )


@dataclass
class AnalysisResult:
    timestamp: int
    start: int
    end: int
    indicators: Dict[str, Any] = field(default_factory=dict)
    patterns: List[PatternResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "analysisRange": {"start": self.start, "end": self.end},
            "results": {
                "indicators": self.indicators,
                "patterns": [p.to_dict() for p in self.patterns],
            },
        }


def available_indicators() -> dict:
    """Supported indicators with their parameters, and the detectable patterns."""
    directions = {
        PatternType.CUP_AND_HANDLE: [PatternDirection.BULLISH],
        PatternType.BULL_FLAG: [PatternDirection.BULLISH],
        PatternType.BEAR_FLAG: [PatternDirection.BEARISH],
        PatternType.TRIPLE_TOP: [PatternDirection.BEARISH],
    }
    return {
        "availableIndicators": {
            "sma": {"description": "Simple Moving Average", "parameters": ["period"]},
            "ema": {"description": "Exponential Moving Average", "parameters": ["period"]},
            "wma": {"description": "Weighted Moving Average", "parameters": ["period"]},
            "rsi": {"description": "Relative Strength Index", "parameters": ["period"]},
            "macd": {
                "description": "Moving Average Convergence Divergence",
                "parameters": ["fast", "slow", "signal"],
            },
            "bbands": {"description": "Bollinger Bands", "parameters": ["period", "stdDev"]},
        },
        "availablePatterns": [
            {
                "name": p.value,
                "bullish": PatternDirection.BULLISH in d,
                "bearish": PatternDirection.BEARISH in d,
            }
            for p, d in directions.items()
        ],
    }


class TechnicalAnalysis:
    """Runs the requested indicators on closing prices plus the pattern detectors."""

    def __init__(self, engine: Optional[IndicatorEngine] = None, detector: Optional[PatternDetector] = None):
        self.engine = engine or IndicatorEngine()
        self.detector = detector or PatternDetector()

    def analyze(self, candles: Sequence[Candle], options: Optional[AnalysisOptions] = None) -> AnalysisResult:
        if not candles:
            raise ValueError("At least one candle is required")
        options = options or AnalysisOptions()
        closes = [c.close for c in candles]
        indicators: Dict[str, Any] = {}

        for period in options.sma:
            indicators[f"sma_{period}"] = self.engine.sma(closes, period)
        for period in options.ema:
            indicators[f"ema_{period}"] = self.engine.ema(closes, period)
        for period in options.wma:
            indicators[f"wma_{period}"] = self.engine.wma(closes, period)
        if options.rsi is not None:
            indicators[f"rsi_{options.rsi}"] = self.engine.rsi(closes, options.rsi)
        if options.macd is not None:
            m = options.macd
            indicators["macd"] = self.engine.macd(closes, m.fast, m.slow, m.signal).to_dict()
        if options.bbands is not None:
            b = options.bbands
            indicators["bbands"] = self.engine.bollinger_bands(closes, b.period, b.std_dev).to_dict()

        empty = [name for name, v in indicators.items() if not v or (isinstance(v, dict) and not any(v.values()))]
        if empty:
            logger.warning("Indicators with no output (invalid input or too few candles): %s", ", ".join(empty))

        patterns = self.detector.detect_all(candles) if options.patterns else []
        return AnalysisResult(
            timestamp=int(time.time() * 1000),
            start=candles[0].timestamp,
            end=candles[-1].timestamp,
            indicators=indicators,
            patterns=patterns,
        )
