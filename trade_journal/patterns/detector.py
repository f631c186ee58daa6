"""
Heuristic chart-pattern detectors: cup and handle, bull/bear flag, triple top.
Each detector looks at a fixed layout of the candle sequence and returns a
PatternResult or None. Short sequences are a no-match, not an error.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, List, Mapping, Optional, Sequence

import numpy as np

from trade_journal.core.types import Candle, PatternDirection, PatternResult, PatternType

logger = logging.getLogger("trade_journal.patterns")

# Fixed windows of the cup and flag layouts.
CUP_RIM_WINDOW = 10
FLAG_WINDOW = 5


@dataclass(frozen=True)
class PatternThresholds:
    """Tunable detector thresholds. Defaults are the classic textbook bounds."""
    # Cup and handle
    cup_min_candles: int = 30
    cup_depth_min: float = 0.15
    cup_depth_max: float = 0.45
    cup_symmetry_max: float = 0.10
    handle_retrace_min: float = 0.10
    handle_retrace_max: float = 0.25
    cup_base_confidence: float = 0.8
    # Bull / bear flag
    flag_min_candles: int = 10
    flag_pole_move_min: float = 0.10
    flag_slope_max: float = 0.05
    flag_range_max: float = 0.10
    flag_base_confidence: float = 0.7
    # Triple top
    triple_top_min_candles: int = 30
    triple_top_edge: int = 5
    triple_top_peak_tolerance: float = 0.02
    triple_top_min_spacing: int = 10
    triple_top_symmetry_max: float = 0.02
    triple_top_base_confidence: float = 0.8

    def __post_init__(self) -> None:
        if self.cup_min_candles < 2 * CUP_RIM_WINDOW:
            raise ValueError(f"cup_min_candles must be >= {2 * CUP_RIM_WINDOW}")
        if self.flag_min_candles < 2 * FLAG_WINDOW:
            raise ValueError(f"flag_min_candles must be >= {2 * FLAG_WINDOW}")
        if self.triple_top_edge < 1 or self.triple_top_min_candles < 2 * self.triple_top_edge + 3:
            raise ValueError("triple_top_min_candles must leave room for three peaks inside the edges")

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "PatternThresholds":
        """Defaults with overrides applied. Unknown keys raise ValueError."""
        if not overrides:
            return cls()
        known = {f.name: f.type for f in fields(cls)}
        unknown = sorted(set(overrides) - set(known))
        if unknown:
            raise ValueError(f"Unknown pattern thresholds: {', '.join(unknown)}")
        values = {}
        for key, value in overrides.items():
            values[key] = int(value) if known[key] == "int" else float(value)
        return replace(cls(), **values)


def _clamp_confidence(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def _finite(candles: Sequence[Candle]) -> bool:
    arr = np.array([[c.open, c.high, c.low, c.close] for c in candles], dtype=float)
    return bool(np.isfinite(arr).all())


class PatternDetector:
    """Runs heuristic detectors over an ordered candle sequence."""

    def __init__(self, thresholds: Optional[PatternThresholds] = None):
        self.thresholds = thresholds or PatternThresholds()

    def detect_all(self, candles: Sequence[Candle]) -> List[PatternResult]:
        """All matching patterns. Empty when candles are missing or not finite."""
        if not candles or not _finite(candles):
            return []
        results = []
        for detect in (
            self.detect_cup_and_handle,
            self.detect_bull_flag,
            self.detect_bear_flag,
            self.detect_triple_top,
        ):
            match = detect(candles)
            if match is not None:
                results.append(match)
        logger.debug("Detected %d pattern(s) over %d candles", len(results), len(candles))
        return results

    def detect_cup_and_handle(self, candles: Sequence[Candle]) -> Optional[PatternResult]:
        """
        Left rim = max close of the first 10 candles, cup bottom = min close of the next 10,
        right rim = close 10 candles from the end, handle = last close.
        """
        t = self.thresholds
        n = len(candles)
        if n < t.cup_min_candles or not _finite(candles):
            return None
        closes = np.array([c.close for c in candles], dtype=float)
        left_rim = float(closes[:CUP_RIM_WINDOW].max())
        cup_bottom = float(closes[CUP_RIM_WINDOW:2 * CUP_RIM_WINDOW].min())
        right_rim = float(closes[n - CUP_RIM_WINDOW])
        handle = float(closes[-1])
        if left_rim <= 0 or right_rim <= 0:
            return None

        cup_depth = (left_rim - cup_bottom) / left_rim
        cup_symmetry = abs(right_rim - left_rim) / left_rim
        handle_retrace = (right_rim - handle) / right_rim

        if not (
            t.cup_depth_min <= cup_depth <= t.cup_depth_max
            and cup_symmetry <= t.cup_symmetry_max
            and t.handle_retrace_min <= handle_retrace <= t.handle_retrace_max
        ):
            return None
        return PatternResult(
            type=PatternType.CUP_AND_HANDLE,
            direction=PatternDirection.BULLISH,
            confidence=_clamp_confidence(t.cup_base_confidence - cup_symmetry),
            timestamp=candles[-1].timestamp,
            price=handle,
        )

    def detect_bull_flag(self, candles: Sequence[Candle]) -> Optional[PatternResult]:
        return self._detect_flag(candles, bullish=True)

    def detect_bear_flag(self, candles: Sequence[Candle]) -> Optional[PatternResult]:
        return self._detect_flag(candles, bullish=False)

    def _detect_flag(self, candles: Sequence[Candle], bullish: bool) -> Optional[PatternResult]:
        """Strong pole over candles[-10:-5], then a tight, quiet, flat flag over candles[-5:]."""
        t = self.thresholds
        if len(candles) < t.flag_min_candles or not _finite(candles):
            return None
        pole = candles[-2 * FLAG_WINDOW:-FLAG_WINDOW]
        flag = candles[-FLAG_WINDOW:]
        pole_start = pole[0].close
        if pole_start <= 0 or flag[0].close <= 0:
            return None

        change = (pole[-1].close - pole_start) / pole_start
        pole_move = change if bullish else -change
        pole_volume = float(np.mean([c.volume or 0.0 for c in pole]))
        flag_volume = float(np.mean([c.volume or 0.0 for c in flag]))
        flag_high = max(c.high for c in flag)
        flag_low = min(c.low for c in flag)
        if flag_low <= 0:
            return None
        flag_slope = (flag[-1].close - flag[0].close) / flag[0].close
        flag_range = (flag_high - flag_low) / flag_low

        if not (
            pole_move > t.flag_pole_move_min
            and flag_volume < pole_volume
            and abs(flag_slope) < t.flag_slope_max
            and flag_range < t.flag_range_max
        ):
            return None
        return PatternResult(
            type=PatternType.BULL_FLAG if bullish else PatternType.BEAR_FLAG,
            direction=PatternDirection.BULLISH if bullish else PatternDirection.BEARISH,
            confidence=_clamp_confidence(t.flag_base_confidence + (pole_move - t.flag_pole_move_min)),
            timestamp=candles[-1].timestamp,
            price=candles[-1].close,
        )

    def detect_triple_top(self, candles: Sequence[Candle]) -> Optional[PatternResult]:
        """Exactly three local highs near the global max, well spaced and level."""
        t = self.thresholds
        n = len(candles)
        if n < t.triple_top_min_candles or not _finite(candles):
            return None
        highs = np.array([c.high for c in candles], dtype=float)
        max_high = float(highs.max())
        if max_high <= 0:
            return None

        peaks = [
            i for i in range(t.triple_top_edge, n - t.triple_top_edge)
            if highs[i] > highs[i - 1]
            and highs[i] > highs[i + 1]
            and abs(highs[i] - max_high) / max_high <= t.triple_top_peak_tolerance
        ]
        if len(peaks) != 3:
            return None

        spacing = peaks[2] - peaks[0]
        p = highs[peaks]
        symmetry = max(abs(p[1] - p[0]), abs(p[2] - p[1]), abs(p[2] - p[0])) / max_high
        if spacing < t.triple_top_min_spacing or symmetry > t.triple_top_symmetry_max:
            return None
        return PatternResult(
            type=PatternType.TRIPLE_TOP,
            direction=PatternDirection.BEARISH,
            confidence=_clamp_confidence(t.triple_top_base_confidence - symmetry * 10),
            timestamp=candles[-1].timestamp,
            price=candles[-1].close,
        )
