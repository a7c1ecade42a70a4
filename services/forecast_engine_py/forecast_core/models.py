"""Data models shared by the pipeline, the history store and the API.

Candles and forecasts are frozen dataclasses.  ``to_record`` /
``from_record`` convert them to and from the JSON shape that is written
to disk and served over HTTP.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class SignalLabel(str, Enum):
    STRONG_BUY = "StrongBuy"
    WEAK_BUY = "WeakBuy"
    HOLD = "Hold"
    WEAK_SELL = "WeakSell"
    STRONG_SELL = "StrongSell"


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar.  ``start_time`` is the open time in epoch seconds (UTC)."""

    start_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def to_record(self) -> Dict[str, Any]:
        return {
            "time": self.start_time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Candle":
        return cls(
            start_time=int(record["time"]),
            open=float(record["open"]),
            high=float(record["high"]),
            low=float(record["low"]),
            close=float(record["close"]),
            volume=float(record.get("volume", 0.0)),
        )


@dataclass(frozen=True)
class Signal:
    label: SignalLabel
    confidence: float


def format_pct(value: float) -> str:
    return f"{value:.2f}%"


def parse_pct(text: str) -> float:
    return float(str(text).strip().rstrip("%"))


def _iso(ts: dt.datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.timezone.utc)
    return ts.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(text: str) -> dt.datetime:
    return dt.datetime.fromisoformat(text.replace("Z", "+00:00"))


@dataclass(frozen=True)
class Forecast:
    """A synthesized candle for the period following ``target_time - period``.

    ``predicted_change_pct`` is expressed in percent (0.24 means +0.24%).
    """

    target_time: int
    signal: Signal
    open: float
    high: float
    low: float
    close: float
    predicted_change_pct: float
    generated_at: dt.datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "time": self.target_time,
            "predicted": True,
            "signal": self.signal.label.value,
            "confidence": self.signal.confidence,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "predictedChange": format_pct(self.predicted_change_pct),
            "generatedAt": _iso(self.generated_at),
            "realCandle": None,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Forecast":
        return cls(
            target_time=int(record["time"]),
            signal=Signal(SignalLabel(record["signal"]), float(record["confidence"])),
            open=float(record["open"]),
            high=float(record["high"]),
            low=float(record["low"]),
            close=float(record["close"]),
            predicted_change_pct=parse_pct(record["predictedChange"]),
            generated_at=_parse_iso(record["generatedAt"]),
        )
