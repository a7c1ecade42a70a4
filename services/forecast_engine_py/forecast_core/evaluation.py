"""
Compare stored forecasts with the real candles that followed them.

A forecast is matched with the first real candle whose open time lies
strictly within one period of the forecast's target time.  Changes are
measured open-to-close in percent for both candles, and ``error`` is the
absolute difference in percentage points.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .models import Candle, Forecast, format_pct


@dataclass(frozen=True)
class Accuracy:
    direction_correct: bool
    error: float
    predicted_change: float
    real_change: float

    def to_record(self) -> Dict[str, Any]:
        return {
            "directionCorrect": self.direction_correct,
            "error": self.error,
            "predictedChange": format_pct(self.predicted_change),
            "realChange": format_pct(self.real_change),
        }


@dataclass(frozen=True)
class Comparison:
    prediction: Forecast
    real: Candle
    accuracy: Accuracy

    def to_record(self) -> Dict[str, Any]:
        return {
            "prediction": self.prediction.to_record(),
            "real": self.real.to_record(),
            "accuracy": self.accuracy.to_record(),
        }


def calc_accuracy(forecast: Forecast, real: Candle) -> Accuracy:
    pred_change = (forecast.close - forecast.open) / forecast.open * 100
    real_change = (real.close - real.open) / real.open * 100
    return Accuracy(
        direction_correct=(pred_change > 0 and real_change > 0) or (pred_change < 0 and real_change < 0),
        error=abs(pred_change - real_change),
        predicted_change=pred_change,
        real_change=real_change,
    )


def match_real_candle(forecast: Forecast, candles: Sequence[Candle], period_seconds: int) -> Optional[Candle]:
    for candle in candles:
        if abs(candle.start_time - forecast.target_time) < period_seconds:
            return candle
    return None


def compare(
    forecasts: Sequence[Forecast],
    candles: Sequence[Candle],
    period_seconds: int,
) -> List[Comparison]:
    comparisons: List[Comparison] = []
    for forecast in forecasts:
        real = match_real_candle(forecast, candles, period_seconds)
        if real is None:
            continue
        comparisons.append(Comparison(forecast, real, calc_accuracy(forecast, real)))
    return comparisons


def summarize(
    forecasts: Sequence[Forecast],
    candles: Sequence[Candle],
    period_seconds: int,
) -> Dict[str, Any]:
    """Aggregate hit rate and mean absolute error; ``"N/A"`` when nothing matched."""
    comparisons = compare(forecasts, candles, period_seconds)
    completed = len(comparisons)
    correct = sum(1 for c in comparisons if c.accuracy.direction_correct)
    if completed:
        accuracy = f"{correct / completed * 100:.1f}%"
        avg_error = format_pct(sum(c.accuracy.error for c in comparisons) / completed)
    else:
        accuracy = "N/A"
        avg_error = "N/A"
    return {
        "totalPredictions": len(forecasts),
        "completedPredictions": completed,
        "correctDirection": correct,
        "accuracy": accuracy,
        "avgError": avg_error,
    }
