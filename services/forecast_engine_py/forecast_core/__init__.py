"""Core of the candle forecast engine.

This package fetches recent candles, computes technical indicators,
derives a trading signal, synthesizes the next-period forecast candle
and keeps a rolling history of forecasts.  Indicators, scoring and
synthesis are pure functions; the store and the data source are passed
in by the caller.
"""

from .config import Settings, configure_logging, interval_to_seconds
from .errors import DataSourceError, ForecastEngineError, StoreWriteError
from .models import Candle, Forecast, Signal, SignalLabel
from .indicators import (
    IndicatorSnapshot,
    compute_snapshot,
    macd_histogram,
    momentum,
    rsi,
    trend,
)
from .rules import generate_signal, score_indicators, signal_from_score
from .synthesizer import synthesize_forecast
from .history import HistoryStore, InMemoryHistoryStore, JsonFileHistoryStore
from .ohlc_fetcher import BinanceCandleSource, CandleSource, fetch_recent_candles
from .evaluation import calc_accuracy, compare, summarize
from .pipeline import run_cycle, run_cycle_with_output

__all__ = [
    "Settings",
    "configure_logging",
    "interval_to_seconds",
    "DataSourceError",
    "ForecastEngineError",
    "StoreWriteError",
    "Candle",
    "Forecast",
    "Signal",
    "SignalLabel",
    "IndicatorSnapshot",
    "compute_snapshot",
    "macd_histogram",
    "momentum",
    "rsi",
    "trend",
    "generate_signal",
    "score_indicators",
    "signal_from_score",
    "synthesize_forecast",
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonFileHistoryStore",
    "BinanceCandleSource",
    "CandleSource",
    "fetch_recent_candles",
    "calc_accuracy",
    "compare",
    "summarize",
    "run_cycle",
    "run_cycle_with_output",
]
