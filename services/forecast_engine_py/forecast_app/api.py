"""
FastAPI application exposing the forecast history, the latest real
candles, forecast-vs-real comparisons and accuracy statistics, plus an
endpoint that runs one forecast cycle on demand.

Reporting endpoints always answer with valid JSON: an unreadable
history reads as empty and unexpected errors are logged, not raised.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from forecast_core import (
    BinanceCandleSource,
    CandleSource,
    ForecastEngineError,
    HistoryStore,
    JsonFileHistoryStore,
    Settings,
    StoreWriteError,
    compare,
    configure_logging,
    run_cycle,
    run_cycle_with_output,
    summarize,
)

logger = logging.getLogger("forecast.api")


# ----------------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def get_store(settings: Settings = Depends(get_settings)) -> HistoryStore:
    return JsonFileHistoryStore(settings.data_dir, settings.max_forecasts)


def get_source(settings: Settings = Depends(get_settings)) -> CandleSource:
    return BinanceCandleSource.from_settings(settings)


# ----------------------------------------------------------------------
# Models
# ----------------------------------------------------------------------
class CandleResponse(BaseModel):
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class PredictionResponse(BaseModel):
    time: int
    predicted: bool = True
    signal: str
    confidence: float
    open: float
    high: float
    low: float
    close: float
    predictedChange: str = Field(..., description="Signed percent, e.g. -0.50%")
    generatedAt: str = Field(..., description="ISO-8601 UTC timestamp")
    realCandle: Optional[Dict[str, Any]] = None


class AccuracyResponse(BaseModel):
    directionCorrect: bool
    error: float
    predictedChange: str
    realChange: str


class ComparisonResponse(BaseModel):
    prediction: PredictionResponse
    real: CandleResponse
    accuracy: AccuracyResponse


class StatsResponse(BaseModel):
    totalPredictions: int = 0
    completedPredictions: int = 0
    correctDirection: int = 0
    accuracy: str = "N/A"
    avgError: str = "N/A"


class PredictResponse(BaseModel):
    success: bool
    output: str = ""
    prediction: Optional[PredictionResponse] = None
    error: Optional[str] = None


# ----------------------------------------------------------------------
# App
# ----------------------------------------------------------------------
async def _startup_cycle(settings: Settings) -> None:
    store = JsonFileHistoryStore(settings.data_dir, settings.max_forecasts)
    source = BinanceCandleSource.from_settings(settings)
    try:
        await run_cycle(settings, store, source)
    except ForecastEngineError as e:
        logger.error("Startup forecast cycle failed: %s", e)
    except Exception:
        logger.exception("Unexpected error in startup forecast cycle")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("API: /api/predictions, /api/real, /api/comparison, /api/stats")
    task = None
    if settings.run_on_startup:
        task = asyncio.create_task(_startup_cycle(settings))
    yield
    if task is not None and not task.done():
        task.cancel()


app = FastAPI(title="Candle Forecast API", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/predictions", response_model=List[PredictionResponse])
def get_predictions(store: HistoryStore = Depends(get_store)):
    try:
        return [f.to_record() for f in store.read_forecasts()]
    except Exception:
        logger.exception("Unhandled error in /api/predictions")
        return []


@app.get("/api/real", response_model=List[CandleResponse])
def get_real(store: HistoryStore = Depends(get_store)):
    try:
        return [c.to_record() for c in store.read_real_snapshot()]
    except Exception:
        logger.exception("Unhandled error in /api/real")
        return []


@app.get("/api/comparison", response_model=List[ComparisonResponse])
def get_comparison(
    store: HistoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        comparisons = compare(store.read_forecasts(), store.read_real_snapshot(), settings.period_seconds)
        return [c.to_record() for c in comparisons]
    except Exception:
        logger.exception("Unhandled error in /api/comparison")
        return []


@app.get("/api/stats", response_model=StatsResponse)
def get_stats(
    store: HistoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        return summarize(store.read_forecasts(), store.read_real_snapshot(), settings.period_seconds)
    except Exception:
        logger.exception("Unhandled error in /api/stats")
        return StatsResponse()


@app.post("/api/predict", response_model=PredictResponse)
async def trigger_prediction(
    store: HistoryStore = Depends(get_store),
    source: CandleSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
):
    """Run one forecast cycle and return its log output."""
    try:
        forecast, output = await run_cycle_with_output(settings, store, source)
    except StoreWriteError as e:
        return PredictResponse(success=False, error=str(e), output=getattr(e, "output", ""))
    if forecast is None:
        return PredictResponse(success=False, error="No forecast produced", output=output)
    return PredictResponse(success=True, output=output, prediction=forecast.to_record())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
