"""
Synthesize the forecast candle for the next period.

The close follows the signal direction scaled by confidence.  High and
low are drawn around the source close within a band sized by the source
candle's range, stretched toward the predicted direction.  All draws
come from the injected random generator so a seeded ``numpy`` Generator
gives reproducible forecasts.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

import numpy as np

from .models import Candle, Forecast, Signal, SignalLabel

HOLD_DRIFT = 0.0025

_CHANGE_FACTORS = {
    SignalLabel.STRONG_BUY: 0.03,
    SignalLabel.WEAK_BUY: 0.02,
    SignalLabel.STRONG_SELL: -0.03,
    SignalLabel.WEAK_SELL: -0.02,
}


def predicted_change(signal: Signal, rng: np.random.Generator) -> float:
    """Fractional change of the close (0.024 means +2.4%)."""
    factor = _CHANGE_FACTORS.get(signal.label)
    if factor is None:
        # Hold ignores confidence
        return float(rng.uniform(-HOLD_DRIFT, HOLD_DRIFT))
    return signal.confidence * factor


def synthesize_forecast(
    candle: Candle,
    signal: Signal,
    period_seconds: int,
    rng: Optional[np.random.Generator] = None,
    now: Optional[dt.datetime] = None,
) -> Forecast:
    if rng is None:
        rng = np.random.default_rng()
    close = candle.close
    volatility = (candle.high - candle.low) / close * 100

    change = predicted_change(signal, rng)
    predicted_close = close * (1 + change)
    band = close * (volatility / 100)

    if change > 0:
        predicted_high = close + band * (0.5 + rng.random() * 0.3)
        predicted_low = close - band * (0.2 + rng.random() * 0.2)
    else:
        predicted_high = close + band * (0.2 + rng.random() * 0.2)
        predicted_low = close - band * (0.5 + rng.random() * 0.3)

    return Forecast(
        target_time=candle.start_time + period_seconds,
        signal=signal,
        open=round(close, 2),
        high=round(float(predicted_high), 2),
        low=round(float(predicted_low), 2),
        close=round(float(predicted_close), 2),
        predicted_change_pct=change * 100,
        generated_at=now or dt.datetime.now(dt.timezone.utc),
    )
