import datetime as dt
import json

import pytest

from forecast_core.errors import StoreWriteError
from forecast_core.history import InMemoryHistoryStore, JsonFileHistoryStore
from forecast_core.models import Forecast, Signal, SignalLabel

NOW = dt.datetime(2024, 1, 1, 12, 0, tzinfo=dt.timezone.utc)


def _forecast(i):
    return Forecast(
        target_time=1_700_000_000 + i * 14_400,
        signal=Signal(SignalLabel.WEAK_SELL, 0.55),
        open=100.0 + i,
        high=101.0 + i,
        low=99.0 + i,
        close=99.5 + i,
        predicted_change_pct=-1.1,
        generated_at=NOW,
    )


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryHistoryStore(max_forecasts=3)
    return JsonFileHistoryStore(str(tmp_path / "data"), max_forecasts=3)


def test_empty_store_reads_empty(store):
    assert store.read_forecasts() == []
    assert store.read_real_snapshot() == []


def test_append_caps_and_keeps_order(store):
    for i in range(7):
        store.append_forecast(_forecast(i))
        assert len(store.read_forecasts()) <= 3
    assert [f.target_time for f in store.read_forecasts()] == [_forecast(i).target_time for i in (4, 5, 6)]


def test_snapshot_is_replaced(store, candle_factory):
    store.replace_real_snapshot(candle_factory([1.0, 2.0, 3.0]))
    store.replace_real_snapshot(candle_factory([5.0]))
    snapshot = store.read_real_snapshot()
    assert [c.close for c in snapshot] == [5.0]


def test_default_cap_is_50():
    store = InMemoryHistoryStore()
    for i in range(60):
        store.append_forecast(_forecast(i))
    forecasts = store.read_forecasts()
    assert len(forecasts) == 50
    assert forecasts[0] == _forecast(10)


def test_invalid_cap():
    with pytest.raises(ValueError):
        InMemoryHistoryStore(max_forecasts=0)


def test_persisted_record_shape(tmp_path):
    store = JsonFileHistoryStore(str(tmp_path))
    store.append_forecast(_forecast(0))
    with open(tmp_path / "predictions.json", encoding="utf-8") as fh:
        records = json.load(fh)
    assert records == [
        {
            "time": 1_700_000_000,
            "predicted": True,
            "signal": "WeakSell",
            "confidence": 0.55,
            "open": 100.0,
            "high": 101.0,
            "low": 99.0,
            "close": 99.5,
            "predictedChange": "-1.10%",
            "generatedAt": "2024-01-01T12:00:00.000Z",
            "realCandle": None,
        }
    ]
    assert store.read_forecasts() == [_forecast(0)]


NULL_TIMESTAMP_FORECAST = json.dumps([dict(_forecast(0).to_record(), generatedAt=None)])
OVERFLOWING_CANDLE = '[{"time": 1e999, "open": 1, "high": 1, "low": 1, "close": 1, "volume": 1}]'


@pytest.mark.parametrize(
    "content",
    ["{not json", '{"time": 1}', "[{\"time\": 1}]", "", NULL_TIMESTAMP_FORECAST, OVERFLOWING_CANDLE],
)
def test_corrupt_files_read_as_empty(tmp_path, content):
    (tmp_path / "predictions.json").write_text(content, encoding="utf-8")
    (tmp_path / "real-candles.json").write_text(content, encoding="utf-8")
    store = JsonFileHistoryStore(str(tmp_path))
    assert store.read_forecasts() == []
    assert store.read_real_snapshot() == []


def test_unparsable_records_do_not_block_writes(tmp_path, candle_factory):
    (tmp_path / "predictions.json").write_text(NULL_TIMESTAMP_FORECAST, encoding="utf-8")
    (tmp_path / "real-candles.json").write_text(OVERFLOWING_CANDLE, encoding="utf-8")
    store = JsonFileHistoryStore(str(tmp_path))
    assert store.read_forecasts() == []
    assert store.read_real_snapshot() == []

    assert store.append_forecast(_forecast(1)) == [_forecast(1)]
    store.replace_real_snapshot(candle_factory([1.0]))
    assert store.read_forecasts() == [_forecast(1)]
    assert len(store.read_real_snapshot()) == 1


def test_write_failure_raises(tmp_path, candle_factory):
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonFileHistoryStore(str(blocker))
    with pytest.raises(StoreWriteError):
        store.replace_real_snapshot(candle_factory([1.0]))
    with pytest.raises(StoreWriteError):
        store.append_forecast(_forecast(0))
