"""Rolling history of forecasts and the latest real-candle snapshot.

Two backends share the ``HistoryStore`` interface: JSON files on disk
(the default used by the server and the scheduler) and an in-memory
store.  Reads never raise: a missing, corrupt or half-written file reads
as an empty history.  Writes raise ``StoreWriteError``.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Sequence, TypeVar

from .errors import StoreWriteError
from .models import Candle, Forecast

logger = logging.getLogger("forecast.history")

DEFAULT_MAX_FORECASTS = 50
PREDICTIONS_FILE = "predictions.json"
REAL_CANDLES_FILE = "real-candles.json"

T = TypeVar("T")


class HistoryStore(ABC):
    """Ordered, capped forecast log plus a wholesale-replaced candle snapshot."""

    def __init__(self, max_forecasts: int = DEFAULT_MAX_FORECASTS):
        if max_forecasts <= 0:
            raise ValueError("max_forecasts must be positive")
        self.max_forecasts = max_forecasts

    @abstractmethod
    def read_forecasts(self) -> List[Forecast]:
        """Return stored forecasts, oldest first."""

    @abstractmethod
    def read_real_snapshot(self) -> List[Candle]:
        """Return the most recently fetched candles."""

    @abstractmethod
    def _write_forecasts(self, forecasts: Sequence[Forecast]) -> None:
        ...

    @abstractmethod
    def replace_real_snapshot(self, candles: Sequence[Candle]) -> None:
        """Overwrite the candle snapshot."""

    def append_forecast(self, forecast: Forecast) -> List[Forecast]:
        """Append ``forecast`` and keep only the newest ``max_forecasts``."""
        forecasts = self.read_forecasts()
        forecasts.append(forecast)
        forecasts = forecasts[-self.max_forecasts:]
        self._write_forecasts(forecasts)
        return forecasts


class InMemoryHistoryStore(HistoryStore):
    def __init__(self, max_forecasts: int = DEFAULT_MAX_FORECASTS):
        super().__init__(max_forecasts)
        self._forecasts: List[Forecast] = []
        self._candles: List[Candle] = []

    def read_forecasts(self) -> List[Forecast]:
        return list(self._forecasts)

    def read_real_snapshot(self) -> List[Candle]:
        return list(self._candles)

    def _write_forecasts(self, forecasts: Sequence[Forecast]) -> None:
        self._forecasts = list(forecasts)

    def replace_real_snapshot(self, candles: Sequence[Candle]) -> None:
        self._candles = list(candles)


class JsonFileHistoryStore(HistoryStore):
    """
    Stores ``predictions.json`` and ``real-candles.json`` in ``data_dir``.
    The directory is created on the first write.
    """

    def __init__(self, data_dir: str, max_forecasts: int = DEFAULT_MAX_FORECASTS):
        super().__init__(max_forecasts)
        self.data_dir = data_dir
        self.predictions_path = os.path.join(data_dir, PREDICTIONS_FILE)
        self.real_candles_path = os.path.join(data_dir, REAL_CANDLES_FILE)

    def read_forecasts(self) -> List[Forecast]:
        return self._read(self.predictions_path, Forecast.from_record)

    def read_real_snapshot(self) -> List[Candle]:
        return self._read(self.real_candles_path, Candle.from_record)

    def _write_forecasts(self, forecasts: Sequence[Forecast]) -> None:
        self._write(self.predictions_path, [f.to_record() for f in forecasts])

    def replace_real_snapshot(self, candles: Sequence[Candle]) -> None:
        self._write(self.real_candles_path, [c.to_record() for c in candles])

    def _read(self, path: str, parse: Callable[[Any], T]) -> List[T]:
        if not os.path.exists(path):
            return []
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [parse(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError, AttributeError, OverflowError) as e:
            logger.warning("Ignoring unreadable history file %s: %s", path, e)
            return []

    def _write(self, path: str, payload: List[dict]) -> None:
        tmp_path = None
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error("Failed to write %s: %s", path, e)
            raise StoreWriteError(f"could not write {path}: {e}") from e
