import os
import sys

import pytest

# add forecast_engine_py to sys.path for tests
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../services/forecast_engine_py')))

from forecast_core.models import Candle  # noqa: E402

FOUR_HOURS = 4 * 60 * 60
BASE_TIME = 1_699_992_000  # aligned to a 4h boundary


class ScriptedRandom:
    """Stand-in for numpy's Generator returning fixed draws."""

    def __init__(self, values=(0.5,), uniform_value=0.0):
        self.values = list(values)
        self.uniform_value = uniform_value
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value

    def uniform(self, low, high):
        return self.uniform_value


def make_candles(closes, start=BASE_TIME, period=FOUR_HOURS):
    """Build candles with open = close - 1, high = close + 1, low = open."""
    return [
        Candle(
            start_time=start + i * period,
            open=close - 1,
            high=close + 1,
            low=close - 1,
            close=close,
            volume=10.0,
        )
        for i, close in enumerate(closes)
    ]


@pytest.fixture
def rising_candles():
    # 30 candles closing 100, 101, ..., 129
    return make_candles([float(c) for c in range(100, 130)])


@pytest.fixture
def scripted_rng():
    return ScriptedRandom(values=(0.5,))


@pytest.fixture
def candle_factory():
    return make_candles


@pytest.fixture
def scripted_random():
    return ScriptedRandom
