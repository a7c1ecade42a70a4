"""
One forecast cycle: fetch candles, score them, synthesize the next
candle and persist it.

A data-source failure aborts the cycle before anything is written and
yields ``None``.  A store write failure is logged and re-raised.  Only
one cycle is expected to run at a time; overlapping runs may race on
the store.

Run a single cycle from the command line with
``python -m forecast_core.pipeline``.
"""
from __future__ import annotations

import asyncio
import io
import logging
import sys
from typing import Optional, Tuple

import numpy as np

from .config import LOG_FORMAT, LOGGER_NAME, Settings, configure_logging
from .errors import DataSourceError, StoreWriteError
from .history import HistoryStore, JsonFileHistoryStore
from .models import Forecast
from .ohlc_fetcher import BinanceCandleSource, CandleSource
from .rules import generate_signal
from .synthesizer import synthesize_forecast

logger = logging.getLogger("forecast.pipeline")


async def run_cycle(
    settings: Settings,
    store: HistoryStore,
    source: CandleSource,
    rng: Optional[np.random.Generator] = None,
) -> Optional[Forecast]:
    logger.info("Forecast cycle starting for %s@%s", settings.symbol, settings.interval)

    try:
        candles = await source.fetch_recent_candles(settings.symbol, settings.interval, settings.candle_limit)
    except DataSourceError as e:
        logger.error("No real data available: %s", e)
        return None
    if not candles:
        logger.error("No real data available: empty candle list")
        return None

    try:
        store.replace_real_snapshot(candles)
        logger.info("Saved %d real candles", len(candles))

        last = candles[-1]
        signal = generate_signal(candles)
        logger.info("Last candle: $%s", f"{last.close:,.2f}")
        logger.info("Signal: %s (%.0f%%)", signal.label.value, signal.confidence * 100)

        forecast = synthesize_forecast(last, signal, settings.period_seconds, rng=rng)
        store.append_forecast(forecast)
    except StoreWriteError:
        logger.exception("Forecast cycle failed while persisting history")
        raise

    record = forecast.to_record()
    logger.info("Prediction summary:")
    logger.info("  Signal: %s", record["signal"])
    logger.info("  Predicted: $%s → $%s", record["open"], record["close"])
    logger.info("  Range: $%s - $%s", record["low"], record["high"])
    logger.info("  Change: %s", record["predictedChange"])
    logger.info("Prediction saved")
    return forecast


async def run_cycle_with_output(
    settings: Settings,
    store: HistoryStore,
    source: CandleSource,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[Optional[Forecast], str]:
    """Run a cycle and return its log lines alongside the result.

    Re-raises ``StoreWriteError``; the captured text is attached to the
    exception as ``output``.
    """
    buf = io.StringIO()
    handler = logging.StreamHandler(buf)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger(LOGGER_NAME)
    previous_level = root.level
    if root.getEffectiveLevel() > logging.INFO:
        root.setLevel(logging.INFO)
    root.addHandler(handler)
    try:
        forecast = await run_cycle(settings, store, source, rng=rng)
    except StoreWriteError as e:
        e.output = buf.getvalue()
        raise
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)
    return forecast, buf.getvalue()


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = JsonFileHistoryStore(settings.data_dir, settings.max_forecasts)
    source = BinanceCandleSource.from_settings(settings)
    try:
        forecast = asyncio.run(run_cycle(settings, store, source))
    except StoreWriteError:
        return 1
    return 0 if forecast is not None else 1


if __name__ == "__main__":
    sys.exit(main())
