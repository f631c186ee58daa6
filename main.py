#!/usr/bin/env python3
"""
Trade Journal CLI: analytics | stats | positions | analyze
Usage:
  python main.py analytics trades.csv [--config config.yaml]
  python main.py stats trades.csv
  python main.py positions trades.csv [--mark AAPL=190.5 ...]
  python main.py analyze candles.csv [--no-patterns]
Results are printed to stdout as JSON.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trade_journal.analysis.technical import TechnicalAnalysis
from trade_journal.analytics.aggregator import TradeAnalyticsAggregator
from trade_journal.analytics.metrics import compute_trade_stats, drawdown_stats
from trade_journal.core.config import Config, load_config
from trade_journal.core.logger import setup_logging
from trade_journal.indicators.engine import IndicatorEngine
from trade_journal.patterns.detector import PatternDetector
from trade_journal.positions.book import PositionBook
from trade_journal.positions.tracker import PositionLifecycleTracker
from trade_journal.utils.loaders import load_candles, load_trades

logger = logging.getLogger("trade_journal")


def _emit(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _load_trades(path: Path):
    try:
        return load_trades(path)
    except (OSError, ValueError) as e:
        logger.error("Could not load trades from %s: %s", path, e)
        return None


def run_analytics(path: Path, config: Config) -> int:
    """Eight chart blocks for the whole trade history."""
    trades = _load_trades(path)
    if trades is None:
        return 1
    aggregator = TradeAnalyticsAggregator(
        pnl_model=config.analytics_pnl(),
        position_size_bin=config.position_size_bin,
    )
    _emit(aggregator.process(trades).to_dict())
    return 0


def run_stats(path: Path, config: Config) -> int:
    """Account statistics and drawdown over broker results."""
    trades = _load_trades(path)
    if trades is None:
        return 1
    model = config.positions_pnl()
    stats = compute_trade_stats(trades, pnl_model=model)
    ordered = sorted(trades, key=lambda t: t.timestamp)
    dd = drawdown_stats([model.trade_pnl(t) for t in ordered])
    payload = stats.to_dict()
    payload["drawdown"] = {
        "peak": dd.peak,
        "maxDrawdown": dd.max_drawdown,
        "currentDrawdown": dd.current_drawdown,
        "maxConsecutiveLosses": dd.max_consecutive_losses,
    }
    _emit(payload)
    return 0


def _parse_marks(marks: Optional[list[str]]) -> dict[str, float]:
    out: dict[str, float] = {}
    for item in marks or []:
        ticker, sep, price = item.partition("=")
        if not sep:
            raise ValueError(f"Expected TICKER=PRICE, got {item!r}")
        out[ticker.strip().upper()] = float(price)
    return out


def run_positions(path: Path, config: Config, marks: Optional[list[str]] = None) -> int:
    """Position cycles per ticker with lifecycle metrics."""
    trades = _load_trades(path)
    if trades is None:
        return 1
    try:
        mark_prices = _parse_marks(marks)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    tracker = PositionLifecycleTracker(pnl_model=config.positions_pnl())
    book = PositionBook.from_trades(trades, tracker=tracker, mark_prices=mark_prices)
    _emit({
        "tickers": [s.to_dict() for s in book.summaries()],
        "groups": [g.to_dict() for g in book.groups()],
    })
    return 0


def run_analyze(path: Path, config: Config, patterns: bool = True) -> int:
    """Configured indicators and pattern detection over a candle file."""
    try:
        candles = load_candles(path)
    except (OSError, ValueError) as e:
        logger.error("Could not load candles from %s: %s", path, e)
        return 1
    if not candles:
        logger.error("No candles in %s", path)
        return 1
    analysis = TechnicalAnalysis(IndicatorEngine(), PatternDetector(config.pattern_thresholds()))
    result = analysis.analyze(candles, config.analysis_options(patterns=patterns))
    _emit(result.to_dict())
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Trade Journal CLI")
    parser.add_argument("mode", choices=["analytics", "stats", "positions", "analyze"], help="Report to produce")
    parser.add_argument("input", type=Path, help="Trades CSV (or candles CSV for analyze)")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--mark", action="append", metavar="TICKER=PRICE", help="Mark price for open positions")
    parser.add_argument("--no-patterns", action="store_true", help="Skip pattern detection (analyze)")
    args = parser.parse_args(argv)

    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    if args.mode == "analytics":
        return run_analytics(args.input, config)
    if args.mode == "stats":
        return run_stats(args.input, config)
    if args.mode == "positions":
        return run_positions(args.input, config, args.mark)
    return run_analyze(args.input, config, patterns=not args.no_patterns)


if __name__ == "__main__":
    sys.exit(main())
