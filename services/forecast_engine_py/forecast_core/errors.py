"""Exceptions raised by the forecast engine."""
from __future__ import annotations


class ForecastEngineError(Exception):
    """Base class for engine failures."""


class DataSourceError(ForecastEngineError):
    """The market-data provider could not return candles.

    Aborts the whole cycle: nothing is persisted.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StoreWriteError(ForecastEngineError):
    """The history store could not persist its state."""
