"""
Turn indicator readings into a trading signal.

Each indicator contributes independently to a scalar score.  The score
is then mapped to one of five labels in a fixed priority order; when it
is inconclusive the sign of the MA trend breaks the tie so that Hold is
only returned for a flat trend.
"""
from __future__ import annotations

from typing import Sequence

from .indicators import IndicatorSnapshot, compute_snapshot
from .models import Candle, Signal, SignalLabel

STRONG_CONFIDENCE_CAP = 0.85
WEAK_CONFIDENCE_CAP = 0.70
TREND_FALLBACK_CONFIDENCE = 0.55
HOLD_CONFIDENCE = 0.50

NEUTRAL_SIGNAL = Signal(SignalLabel.HOLD, HOLD_CONFIDENCE)


def rsi_score(value: float) -> float:
    """Oversold readings add to the score, overbought readings subtract."""
    if value < 25:
        return 3.0
    if value < 35:
        return 1.5
    if value > 75:
        return -3.0
    if value > 65:
        return -1.5
    return 0.0


def macd_score(hist: float) -> float:
    if hist > 0:
        return 2.0
    if hist < 0:
        return -2.0
    return 0.0


def trend_score(value: float) -> float:
    if value > 5:
        return 1.5
    if value < -5:
        return -1.5
    return 0.0


def momentum_score(value: float) -> float:
    if value > 3:
        return 1.0
    if value < -3:
        return -1.0
    return 0.0


def score_indicators(snapshot: IndicatorSnapshot) -> float:
    return (
        rsi_score(snapshot.rsi)
        + macd_score(snapshot.macd_histogram)
        + trend_score(snapshot.trend)
        + momentum_score(snapshot.momentum)
    )


def _confidence(score: float, cap: float) -> float:
    return min(cap, 0.45 + abs(score) * 0.05)


def signal_from_score(score: float, trend_value: float) -> Signal:
    """
    Map a score to a label.  Thresholds are checked in this order:
    ``>=2`` StrongBuy, ``>=0.5`` WeakBuy, ``<=-2`` StrongSell,
    ``<=-0.5`` WeakSell, then the trend sign, then Hold.
    """
    if score >= 2:
        return Signal(SignalLabel.STRONG_BUY, _confidence(score, STRONG_CONFIDENCE_CAP))
    if score >= 0.5:
        return Signal(SignalLabel.WEAK_BUY, _confidence(score, WEAK_CONFIDENCE_CAP))
    if score <= -2:
        return Signal(SignalLabel.STRONG_SELL, _confidence(score, STRONG_CONFIDENCE_CAP))
    if score <= -0.5:
        return Signal(SignalLabel.WEAK_SELL, _confidence(score, WEAK_CONFIDENCE_CAP))
    if trend_value > 0:
        return Signal(SignalLabel.WEAK_BUY, TREND_FALLBACK_CONFIDENCE)
    if trend_value < 0:
        return Signal(SignalLabel.WEAK_SELL, TREND_FALLBACK_CONFIDENCE)
    return NEUTRAL_SIGNAL


def signal_from_snapshot(snapshot: IndicatorSnapshot) -> Signal:
    return signal_from_score(score_indicators(snapshot), snapshot.trend)


def generate_signal(candles: Sequence[Candle]) -> Signal:
    """Score the closing prices of ``candles``.  Empty input gives Hold at 0.50."""
    if not candles:
        return NEUTRAL_SIGNAL
    closes = [c.close for c in candles]
    return signal_from_snapshot(compute_snapshot(closes))
