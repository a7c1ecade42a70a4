"""Runtime configuration read from the environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read ``name``, dropping surrounding whitespace and one pair of quotes."""
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip()
    if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
        v = v[1:-1].strip()
    return v or default


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "on"}


def interval_to_seconds(interval: str) -> Optional[int]:
    """Convert a Binance-style interval (``15m``, ``4h``, ``1d``, ``1w``) to seconds."""
    interval = interval.strip()
    if len(interval) < 2:
        return None
    unit = interval[-1]
    try:
        n = int(interval[:-1])
    except ValueError:
        return None
    mult = {"m": 60, "h": 3_600, "d": 86_400, "w": 7 * 86_400}.get(unit.lower())
    return None if mult is None or n <= 0 else n * mult


# ──────────────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────────────

LOGGER_NAME = "forecast"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the console handler to the ``forecast`` logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_h)
    logger.setLevel((level or _env("FORECAST_LOG_LEVEL", "INFO") or "INFO").upper())
    return logger


# ──────────────────────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    symbol: str = "BTCUSDT"
    interval: str = "4h"
    candle_limit: int = 100
    data_dir: str = "./data"
    max_forecasts: int = 50
    binance_base_url: str = "https://api.binance.com"
    fetch_timeout_secs: float = 30.0
    fetch_max_retries: int = 3
    fetch_backoff_base_secs: float = 1.5
    schedule_interval_secs: Optional[int] = None
    run_on_startup: bool = True
    log_level: str = "INFO"
    port: int = 3000

    @property
    def period_seconds(self) -> int:
        seconds = interval_to_seconds(self.interval)
        if seconds is None:
            raise ValueError(f"unsupported interval {self.interval!r}")
        return seconds

    @property
    def schedule_seconds(self) -> int:
        return self.schedule_interval_secs or self.period_seconds

    @classmethod
    def from_env(cls) -> "Settings":
        schedule = _env("SCHEDULE_INTERVAL_SECS")
        settings = cls(
            symbol=(_env("FORECAST_SYMBOL", "BTCUSDT") or "BTCUSDT").upper(),
            interval=_env("FORECAST_INTERVAL", "4h") or "4h",
            candle_limit=int(_env("FORECAST_CANDLE_LIMIT", "100") or "100"),
            data_dir=_env("FORECAST_DATA_DIR", "./data") or "./data",
            max_forecasts=int(_env("FORECAST_MAX_HISTORY", "50") or "50"),
            binance_base_url=(_env("BINANCE_BASE_URL", "https://api.binance.com") or "").rstrip("/"),
            fetch_timeout_secs=float(_env("FETCH_TIMEOUT_SECS", "30") or "30"),
            fetch_max_retries=int(_env("FETCH_MAX_RETRIES", "3") or "3"),
            fetch_backoff_base_secs=float(_env("FETCH_BACKOFF_BASE_SECS", "1.5") or "1.5"),
            schedule_interval_secs=int(schedule) if schedule else None,
            run_on_startup=_env_bool("RUN_ON_STARTUP", True),
            log_level=(_env("FORECAST_LOG_LEVEL", "INFO") or "INFO").upper(),
            port=int(_env("PORT", "3000") or "3000"),
        )
        # fail at startup rather than mid-cycle
        settings.period_seconds
        return settings
