"""
CSV loaders for broker exports (Trading 212 layout) and OHLCV candle files.
This is the only module that reads from disk; the analytics core takes the
returned records by value.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import numpy as np
import pandas as pd

from trade_journal.core.types import Candle, Trade, TradeAction

logger = logging.getLogger("trade_journal.utils.loaders")

# Most specific first: "Lending interest" must not match plain "interest".
ACTION_KEYWORDS = (
    ("lending interest", TradeAction.LENDING_INTEREST),
    ("interest", TradeAction.INTEREST),
    ("dividend", TradeAction.DIVIDEND),
    ("deposit", TradeAction.DEPOSIT),
    ("withdrawal", TradeAction.WITHDRAWAL),
    ("currency conversion", TradeAction.CURRENCY_CONVERSION),
    ("buy", TradeAction.BUY),
    ("sell", TradeAction.SELL),
)

CASH_ACTIONS = (
    TradeAction.INTEREST,
    TradeAction.LENDING_INTEREST,
    TradeAction.DEPOSIT,
    TradeAction.WITHDRAWAL,
)

FEE_COLUMNS = ("Currency conversion fee", "Commission")
CANDLE_COLUMNS = ("timestamp", "open", "high", "low", "close")


def parse_action(text: Any) -> Optional[TradeAction]:
    """Map broker action text ("Market buy", "Dividend (Ordinary)", "BUY") to a TradeAction."""
    if text is None or (isinstance(text, float) and np.isnan(text)):
        return None
    value = str(text).strip()
    try:
        return TradeAction(value.upper().replace(" ", "_"))
    except ValueError:
        pass
    lowered = value.lower()
    for keyword, action in ACTION_KEYWORDS:
        if keyword in lowered:
            return action
    return None


def _num(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def _text(value: Any, default: str = "") -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return default
    return str(value).strip()


def _timestamps(series: pd.Series, column: str) -> pd.Series:
    try:
        return pd.to_datetime(series, errors="raise")
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unparseable timestamp in column '{column}': {e}") from e


def trades_from_frame(df: pd.DataFrame) -> List[Trade]:
    """
    Convert a broker export DataFrame into Trade records.
    Rows with an unknown action are skipped. Cash rows without a price use |Total|.
    """
    missing = [c for c in ("Action", "Time") if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")

    times = _timestamps(df["Time"], "Time")
    close_times = _timestamps(df["Close Time"], "Close Time") if "Close Time" in df.columns else None

    trades: List[Trade] = []
    for idx, row in enumerate(df.to_dict("records")):
        action = parse_action(row.get("Action"))
        if action is None:
            logger.debug("Skipping row %d with unknown action %r", idx, row.get("Action"))
            continue
        quantity = abs(_num(row.get("No. of shares")))
        price = abs(_num(row.get("Price / share")))
        total = _num(row.get("Total"), None)
        result = _num(row.get("Result"), None)
        if action in CASH_ACTIONS and price == 0 and total is not None:
            quantity, price = 1.0, abs(total)
        if action == TradeAction.DIVIDEND and result is None:
            result = total
        close_time = None
        if close_times is not None and not pd.isna(close_times.iloc[idx]):
            close_time = close_times.iloc[idx].to_pydatetime()

        trades.append(Trade(
            id=_text(row.get("ID"), f"row-{idx}"),
            ticker=_text(row.get("Ticker")).upper(),
            action=action,
            quantity=quantity,
            price=price,
            timestamp=times.iloc[idx].to_pydatetime(),
            currency=_text(row.get("Currency (Price / share)"), "USD"),
            fees=sum(abs(_num(row.get(c))) for c in FEE_COLUMNS),
            result=result,
            stop_loss=_num(row.get("Stop loss"), None),
            take_profit=_num(row.get("Take profit"), None),
            close_time=close_time,
        ))
    logger.info("Loaded %d trade(s) from %d row(s)", len(trades), len(df))
    return trades


def load_trades(path: Union[str, Path]) -> List[Trade]:
    """Read a broker CSV export."""
    df = pd.read_csv(path)
    return trades_from_frame(df)


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """
    Convert an OHLCV DataFrame into candles. Column names are case-insensitive;
    timestamp may be epoch milliseconds or a datetime string.
    """
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    if "time" in df.columns and "timestamp" not in df.columns:
        df = df.rename(columns={"time": "timestamp"})
    missing = [c for c in CANDLE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")

    if pd.api.types.is_numeric_dtype(df["timestamp"]):
        stamps = df["timestamp"].astype("int64")
    else:
        parsed = _timestamps(df["timestamp"], "timestamp")
        stamps = (parsed - pd.Timestamp(0, tz=parsed.dt.tz)) // pd.Timedelta(milliseconds=1)

    has_volume = "volume" in df.columns
    candles = [
        Candle(
            timestamp=int(stamps.iloc[i]),
            open=float(row["open"]),
            high=float(row["high"]),
            low=float(row["low"]),
            close=float(row["close"]),
            volume=_num(row["volume"], None) if has_volume else None,
        )
        for i, row in enumerate(df.to_dict("records"))
    ]
    return sorted(candles, key=lambda c: c.timestamp)


def load_candles(path: Union[str, Path]) -> List[Candle]:
    """Read an OHLCV CSV file."""
    return candles_from_frame(pd.read_csv(path))
