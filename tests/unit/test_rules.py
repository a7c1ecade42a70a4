import pytest

from forecast_core.indicators import IndicatorSnapshot
from forecast_core.models import SignalLabel
from forecast_core.rules import (
    generate_signal,
    rsi_score,
    score_indicators,
    signal_from_score,
    signal_from_snapshot,
)


def test_all_bullish_readings_give_strong_buy():
    snap = IndicatorSnapshot(rsi=20.0, macd_histogram=5.0, trend=6.0, momentum=4.0)
    assert score_indicators(snap) == pytest.approx(7.5)
    signal = signal_from_snapshot(snap)
    assert signal.label is SignalLabel.STRONG_BUY
    assert signal.confidence == pytest.approx(0.825)
    assert signal.confidence <= 0.85


def test_all_bearish_readings_give_strong_sell():
    snap = IndicatorSnapshot(rsi=80.0, macd_histogram=-1.0, trend=-6.0, momentum=-4.0)
    assert score_indicators(snap) == pytest.approx(-7.5)
    assert signal_from_snapshot(snap).label is SignalLabel.STRONG_SELL


@pytest.mark.parametrize(
    "value, expected",
    [(10, 3.0), (25, 1.5), (34.9, 1.5), (35, 0.0), (50, 0.0), (65, 0.0), (65.1, -1.5), (75, -1.5), (75.1, -3.0)],
)
def test_rsi_score_thresholds(value, expected):
    assert rsi_score(value) == expected


@pytest.mark.parametrize(
    "score, label, confidence",
    [
        (2.0, SignalLabel.STRONG_BUY, 0.55),
        (0.5, SignalLabel.WEAK_BUY, 0.475),
        (1.5, SignalLabel.WEAK_BUY, 0.525),
        (-2.0, SignalLabel.STRONG_SELL, 0.55),
        (-0.5, SignalLabel.WEAK_SELL, 0.475),
    ],
)
def test_score_mapping_boundaries(score, label, confidence):
    signal = signal_from_score(score, trend_value=0.0)
    assert signal.label is label
    assert signal.confidence == pytest.approx(confidence)


def test_strong_confidence_is_capped():
    assert signal_from_score(20.0, 0.0).confidence == pytest.approx(0.85)
    assert signal_from_score(-20.0, 0.0).confidence == pytest.approx(0.85)


def test_inconclusive_score_falls_back_to_trend_sign():
    up = signal_from_score(0.0, trend_value=1.2)
    down = signal_from_score(0.4, trend_value=-0.1)
    flat = signal_from_score(-0.4, trend_value=0.0)
    assert (up.label, up.confidence) == (SignalLabel.WEAK_BUY, 0.55)
    assert (down.label, down.confidence) == (SignalLabel.WEAK_SELL, 0.55)
    assert (flat.label, flat.confidence) == (SignalLabel.HOLD, 0.50)


def test_score_overrides_trend_sign():
    # strong score wins even when the trend points the other way
    assert signal_from_score(-2.5, trend_value=3.0).label is SignalLabel.STRONG_SELL


def test_empty_candles_give_neutral_signal():
    signal = generate_signal([])
    assert signal.label is SignalLabel.HOLD
    assert signal.confidence == 0.50


def test_short_history_uses_neutral_indicators(candle_factory):
    # fewer than 6 candles: every indicator is neutral, trend 0 -> Hold
    signal = generate_signal(candle_factory([100.0, 101.0, 102.0]))
    assert signal.label is SignalLabel.HOLD


def test_rising_fixture_signal(rising_candles):
    # RSI 100 (-3), MACD > 0 (+2), trend 6.28 (+1.5), momentum 4.03 (+1) -> 1.5
    signal = generate_signal(rising_candles)
    assert signal.label is SignalLabel.WEAK_BUY
    assert signal.confidence == pytest.approx(0.525)
