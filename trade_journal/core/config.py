"""
Load configuration from config.yaml and .env. Env vars override the file.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _int_list(value: Any, default: list[int]) -> list[int]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",") if p.strip()]
        try:
            return [int(p) for p in parts]
        except ValueError:
            return list(default)
    return [int(v) for v in value]


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    logging_cfg = data.get("logging", {}) or {}
    indicators = data.get("indicators", {}) or {}
    patterns = data.get("patterns", {}) or {}
    analytics = data.get("analytics", {}) or {}
    positions = data.get("positions", {}) or {}

    return Config(
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
        log_dir=logging_cfg.get("log_dir"),
        log_file=logging_cfg.get("log_file", "trade_journal.log"),
        # Indicators
        sma_periods=_int_list(os.getenv("SMA_PERIODS", indicators.get("sma_periods")), [20, 50]),
        ema_periods=_int_list(os.getenv("EMA_PERIODS", indicators.get("ema_periods")), [12, 26]),
        rsi_period=env_int("RSI_PERIOD", indicators.get("rsi_period", 14)),
        macd_fast=env_int("MACD_FAST", indicators.get("macd_fast", 12)),
        macd_slow=env_int("MACD_SLOW", indicators.get("macd_slow", 26)),
        macd_signal=env_int("MACD_SIGNAL", indicators.get("macd_signal", 9)),
        bb_period=env_int("BB_PERIOD", indicators.get("bb_period", 20)),
        bb_std=env_float("BB_STD", indicators.get("bb_std", 2.0)),
        # Patterns (threshold overrides, see PatternThresholds)
        pattern_overrides={str(k): float(v) for k, v in patterns.items()},
        # Analytics
        position_size_bin=env_int("POSITION_SIZE_BIN", analytics.get("position_size_bin", 100)),
        analytics_pnl_model=env("PNL_MODEL", analytics.get("pnl_model", "derived")).lower(),
        # Positions
        positions_pnl_model=env("POSITIONS_PNL_MODEL", positions.get("pnl_model", "broker")).lower(),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "log_level", "log_dir", "log_file",
        "sma_periods", "ema_periods", "rsi_period", "macd_fast", "macd_slow", "macd_signal",
        "bb_period", "bb_std",
        "pattern_overrides",
        "position_size_bin", "analytics_pnl_model",
        "positions_pnl_model",
    )

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        log_file: str = "trade_journal.log",
        sma_periods: Optional[list[int]] = None,
        ema_periods: Optional[list[int]] = None,
        rsi_period: int = 14,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
        bb_period: int = 20,
        bb_std: float = 2.0,
        pattern_overrides: Optional[dict[str, float]] = None,
        position_size_bin: int = 100,
        analytics_pnl_model: str = "derived",
        positions_pnl_model: str = "broker",
    ):
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else None
        self.log_file = log_file
        self.sma_periods = list(sma_periods) if sma_periods is not None else [20, 50]
        self.ema_periods = list(ema_periods) if ema_periods is not None else [12, 26]
        self.rsi_period = rsi_period
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal
        self.bb_period = bb_period
        self.bb_std = bb_std
        self.pattern_overrides = dict(pattern_overrides or {})
        self.position_size_bin = position_size_bin
        self.analytics_pnl_model = analytics_pnl_model
        self.positions_pnl_model = positions_pnl_model

    def pattern_thresholds(self):
        """PatternThresholds with this config's overrides applied."""
        from trade_journal.patterns.detector import PatternThresholds

        return PatternThresholds.from_dict(self.pattern_overrides)

    def analysis_options(self, patterns: bool = True):
        """Default AnalysisOptions built from the indicators section."""
        from trade_journal.analysis.technical import AnalysisOptions, BollingerOptions, MACDOptions

        return AnalysisOptions(
            sma=list(self.sma_periods),
            ema=list(self.ema_periods),
            rsi=self.rsi_period,
            macd=MACDOptions(self.macd_fast, self.macd_slow, self.macd_signal),
            bbands=BollingerOptions(self.bb_period, self.bb_std),
            patterns=patterns,
        )

    def analytics_pnl(self):
        from trade_journal.analytics.pnl import pnl_model_from_name

        return pnl_model_from_name(self.analytics_pnl_model)

    def positions_pnl(self):
        from trade_journal.analytics.pnl import pnl_model_from_name

        return pnl_model_from_name(self.positions_pnl_model)
