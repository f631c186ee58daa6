"""Unit tests for core.types and core.logger."""

import logging
import sys
from dataclasses import FrozenInstanceError, fields

import pytest
from trade_journal.core.logger import setup_logging
from trade_journal.core.types import Candle, ChartSeries, Trade


def test_records_are_plain_fields():
    assert [f.name for f in fields(Candle)] == ["timestamp", "open", "high", "low", "close", "volume"]
    assert not hasattr(Candle, "typical_price")
    assert not hasattr(Trade, "value")
    candle = Candle(timestamp=0, open=1.0, high=2.0, low=0.5, close=1.5)
    with pytest.raises(FrozenInstanceError):
        candle.close = 3.0


def test_chart_series_lengths_must_match():
    with pytest.raises(ValueError):
        ChartSeries(labels=("a", "b"), values=(1.0,))
    series = ChartSeries(labels=("a",), values=(1.0,))
    assert len(series) == 1
    assert series.to_dict() == {"labels": ["a"], "values": [1.0]}


def test_setup_logging_console_and_file(tmp_path):
    logger = setup_logging("debug", tmp_path / "logs", "journal.log")
    try:
        assert logger.name == "trade_journal"
        assert logger.level == logging.DEBUG
        console = [h for h in logger.handlers if type(h) is logging.StreamHandler]
        assert len(console) == 1 and console[0].stream is sys.stderr
        logging.getLogger("trade_journal.positions").info("cycle closed")
        for h in logger.handlers:
            h.flush()
        text = (tmp_path / "logs" / "journal.log").read_text(encoding="utf-8")
        assert "| INFO     | trade_journal.positions | cycle closed" in text
    finally:
        for h in logger.handlers:
            h.close()
        logger.handlers.clear()


def test_setup_logging_replaces_handlers():
    setup_logging("INFO")
    logger = setup_logging("WARNING")
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    logger.handlers.clear()
