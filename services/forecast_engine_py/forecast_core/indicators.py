"""Technical indicators over a closing-price series (oldest first).

Each function returns a single float for the most recent bar and recomputes
from a trailing window on every call.  When the series is too short the
neutral value is returned instead of raising: RSI 50, MACD histogram 0,
trend 0, momentum 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

import numpy as np
import pandas as pd

PriceSeries = Union[pd.Series, Iterable[float]]

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9


def _as_series(prices: PriceSeries) -> pd.Series:
    if isinstance(prices, pd.Series):
        return prices.astype(float).reset_index(drop=True)
    return pd.Series(list(prices), dtype=float)


def compute_sma(close: pd.Series, window: int) -> pd.Series:
    """Rolling mean over ``window`` values; the first ``window - 1`` entries are NaN."""
    return close.rolling(window=window, min_periods=window).mean()


def compute_ema(close: pd.Series, window: int) -> pd.Series:
    """
    EMA seeded with the first element of ``close``.  ``adjust=False``
    gives the recursive form ``ema = a*x + (1-a)*ema_prev`` with
    ``a = 2/(window+1)``.
    """
    return close.ewm(span=window, adjust=False).mean()


def rsi(prices: PriceSeries, period: int = 14) -> float:
    """
    Relative Strength Index using Wilder's smoothing.

    The first average gain/loss is the simple mean of the first ``period``
    changes; every later change is folded in with
    ``avg = (avg*(period-1) + new)/period``.
    """
    close = _as_series(prices)
    if len(close) < period + 1:
        return 50.0
    delta = close.diff().dropna().to_numpy()
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def macd_histogram(prices: PriceSeries) -> float:
    """
    MACD line minus its 9-period signal line at the latest bar.

    Both EMAs are recomputed over the last ``MACD_SLOW`` prices only, so
    the result differs from a full-history MACD.
    """
    close = _as_series(prices)
    if len(close) < MACD_SLOW:
        return 0.0
    window = close.iloc[-MACD_SLOW:].reset_index(drop=True)
    macd_line = compute_ema(window, MACD_FAST) - compute_ema(window, MACD_SLOW)
    signal_line = compute_ema(macd_line, MACD_SIGNAL)
    return float(macd_line.iloc[-1] - signal_line.iloc[-1])


def trend(prices: PriceSeries) -> float:
    """Percentage gap between the 5- and 20-bar simple moving averages."""
    close = _as_series(prices)
    if len(close) < 20:
        return 0.0
    ma5 = compute_sma(close, 5).iloc[-1]
    ma20 = compute_sma(close, 20).iloc[-1]
    return float((ma5 - ma20) / ma20 * 100)


def momentum(prices: PriceSeries, lookback: int = 5) -> float:
    """Percentage change from the price ``lookback`` bars ago to the latest."""
    close = _as_series(prices)
    if len(close) < lookback + 1:
        return 0.0
    past = close.iloc[-lookback - 1]
    return float((close.iloc[-1] - past) / past * 100)


@dataclass(frozen=True)
class IndicatorSnapshot:
    rsi: float
    macd_histogram: float
    trend: float
    momentum: float


def compute_snapshot(prices: PriceSeries) -> IndicatorSnapshot:
    close = _as_series(prices)
    return IndicatorSnapshot(
        rsi=rsi(close),
        macd_histogram=macd_histogram(close),
        trend=trend(close),
        momentum=momentum(close),
    )
