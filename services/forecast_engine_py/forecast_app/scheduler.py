"""
Periodic forecast runner.

Runs one forecast cycle immediately and then again every
``SCHEDULE_INTERVAL_SECS`` seconds (default: the candle interval)
measured from the end of the previous cycle.  Stops on SIGINT/SIGTERM.

Environment variables are the same as for the API, see
``forecast_core.config.Settings``.
"""
import asyncio
import logging
import signal
import sys
import time
from datetime import datetime, timezone

from forecast_core import (
    BinanceCandleSource,
    ForecastEngineError,
    JsonFileHistoryStore,
    Settings,
    configure_logging,
    run_cycle,
)

logger = logging.getLogger("forecast.scheduler")


def run_once(settings: Settings, store, source) -> bool:
    try:
        forecast = asyncio.run(run_cycle(settings, store, source))
    except ForecastEngineError:
        forecast = None
    except Exception:
        logger.exception("Unexpected error in forecast cycle")
        forecast = None
    ok = forecast is not None
    logger.info("[%s] %s", datetime.now(timezone.utc).isoformat(), "Done" if ok else "Failed")
    return ok


def _stop(signum, frame):
    raise KeyboardInterrupt


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = JsonFileHistoryStore(settings.data_dir, settings.max_forecasts)
    source = BinanceCandleSource.from_settings(settings)
    signal.signal(signal.SIGTERM, _stop)

    logger.info("Scheduler: run prediction every %ss", settings.schedule_seconds)
    try:
        while True:
            run_once(settings, store, source)
            time.sleep(settings.schedule_seconds)
    except KeyboardInterrupt:
        logger.info("Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
