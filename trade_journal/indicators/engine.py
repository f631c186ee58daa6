"""
Technical indicators over a plain price series: SMA, EMA, WMA, RSI, MACD, Bollinger Bands.
Invalid input (NaN/Infinity, non-positive period, too few values) yields an empty
result instead of raising, so one bad indicator does not abort a batch.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

logger = logging.getLogger("trade_journal.indicators")


@dataclass
class MACDResult:
    """MACD line on the slow EMA's range; signal and histogram on the signal EMA's range."""
    macd: List[float] = field(default_factory=list)
    signal: List[float] = field(default_factory=list)
    histogram: List[float] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.macd

    def to_dict(self) -> dict:
        return {"macd": self.macd, "signal": self.signal, "histogram": self.histogram}


@dataclass
class BollingerBands:
    upper: List[float] = field(default_factory=list)
    middle: List[float] = field(default_factory=list)
    lower: List[float] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.middle

    def to_dict(self) -> dict:
        return {"upper": self.upper, "middle": self.middle, "lower": self.lower}


def _prepare(values: Sequence[float], period: int, min_len: int, name: str) -> np.ndarray | None:
    """Return values as a float array, or None if they cannot feed the indicator."""
    if period is None or int(period) != period or period <= 0:
        logger.debug("%s: invalid period %r", name, period)
        return None
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError):
        logger.debug("%s: non-numeric input", name)
        return None
    if arr.ndim != 1 or len(arr) < min_len:
        logger.debug("%s: need %d values, got %d", name, min_len, arr.size)
        return None
    if not np.isfinite(arr).all():
        logger.debug("%s: input contains NaN or Infinity", name)
        return None
    return arr


class IndicatorEngine:
    """Stateless indicator calculator. Every method returns plain lists."""

    def sma(self, values: Sequence[float], period: int) -> List[float]:
        """Simple moving average. Length = len(values) - period + 1."""
        arr = _prepare(values, period, period, "SMA")
        if arr is None:
            return []
        return sliding_window_view(arr, int(period)).mean(axis=1).tolist()

    def wma(self, values: Sequence[float], period: int) -> List[float]:
        """Linearly weighted moving average, newest value weighted by period."""
        arr = _prepare(values, period, period, "WMA")
        if arr is None:
            return []
        weights = np.arange(1, int(period) + 1, dtype=float)
        return (sliding_window_view(arr, int(period)) @ weights / weights.sum()).tolist()

    def ema(self, values: Sequence[float], period: int) -> List[float]:
        """
        Exponential moving average seeded with the SMA of the first `period` values.
        First output corresponds to index period - 1.
        """
        arr = _prepare(values, period, period, "EMA")
        if arr is None:
            return []
        period = int(period)
        multiplier = 2.0 / (period + 1)
        prev = float(arr[:period].mean())
        out = [prev]
        for v in arr[period:]:
            prev = (float(v) - prev) * multiplier + prev
            out.append(prev)
        return out

    def rsi(self, values: Sequence[float], period: int = 14) -> List[float]:
        """
        Wilder RSI. One value for the seed window and one per later delta,
        so length = len(values) - period. Values lie in [0, 100].
        """
        arr = _prepare(values, period, period + 1, "RSI")
        if arr is None:
            return []
        period = int(period)
        deltas = np.diff(arr)
        gains = np.where(deltas > 0, deltas, 0.0)
        losses = np.where(deltas < 0, -deltas, 0.0)

        avg_gain = float(gains[:period].mean())
        avg_loss = float(losses[:period].mean())
        out = [self._rsi_value(avg_gain, avg_loss)]
        for gain, loss in zip(gains[period:], losses[period:]):
            avg_gain = (avg_gain * (period - 1) + float(gain)) / period
            avg_loss = (avg_loss * (period - 1) + float(loss)) / period
            out.append(self._rsi_value(avg_gain, avg_loss))
        return out

    @staticmethod
    def _rsi_value(avg_gain: float, avg_loss: float) -> float:
        rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
        rsi = 100.0 - 100.0 / (1.0 + rs)
        return min(100.0, max(0.0, rsi))

    def macd(
        self,
        values: Sequence[float],
        fast: int = 12,
        slow: int = 26,
        signal: int = 9,
    ) -> MACDResult:
        """MACD line, signal line and histogram. Empty result if fast >= slow or input too short."""
        if fast is None or slow is None or signal is None or fast >= slow:
            logger.debug("MACD: invalid periods fast=%r slow=%r signal=%r", fast, slow, signal)
            return MACDResult()
        if _prepare(values, signal, int(slow) + int(signal) - 1, "MACD") is None:
            return MACDResult()
        fast_ema = self.ema(values, fast)
        slow_ema = self.ema(values, slow)
        if not fast_ema or not slow_ema:
            return MACDResult()
        # Both EMAs end at the last value; drop the fast EMA's extra head.
        offset = int(slow) - int(fast)
        macd_line = (np.asarray(fast_ema[offset:]) - np.asarray(slow_ema)).tolist()
        signal_line = self.ema(macd_line, signal)
        if not signal_line:
            return MACDResult()
        tail = np.asarray(macd_line[int(signal) - 1:])
        histogram = (tail - np.asarray(signal_line)).tolist()
        return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)

    def bollinger_bands(self, values: Sequence[float], period: int = 20, std_dev: float = 2.0) -> BollingerBands:
        """SMA middle band with upper/lower at std_dev population standard deviations."""
        arr = _prepare(values, period, period, "BBANDS")
        if arr is None or not np.isfinite(std_dev) or std_dev < 0:
            return BollingerBands()
        windows = sliding_window_view(arr, int(period))
        middle = windows.mean(axis=1)
        width = windows.std(axis=1) * std_dev
        return BollingerBands(
            upper=(middle + width).tolist(),
            middle=middle.tolist(),
            lower=(middle - width).tolist(),
        )
