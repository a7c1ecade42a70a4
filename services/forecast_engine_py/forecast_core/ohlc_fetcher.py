# forecast_core/ohlc_fetcher.py
"""Fetch recent OHLCV candles from the Binance public REST API.

Unauthenticated ``/api/v3/klines`` requests.  Rate limiting (429), server
errors and transport failures are retried with exponential backoff; any
other failure raises ``DataSourceError`` and aborts the cycle.

Candles are returned oldest first with ``start_time`` in epoch seconds.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from .config import Settings
from .errors import DataSourceError
from .models import Candle

logger = logging.getLogger("forecast.fetcher")

BINANCE_MAX_LIMIT = 1000


class CandleSource(ABC):
    """Anything that can return the most recent candles for a symbol."""

    name: str = ""

    @abstractmethod
    async def fetch_recent_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """Return up to ``limit`` candles, oldest first, or raise ``DataSourceError``."""


def _parse_kline(row: List[Any]) -> Candle:
    # [open_time_ms, open, high, low, close, volume, close_time_ms, ...]
    return Candle(
        start_time=int(row[0]) // 1000,
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
        if isinstance(body, dict) and body.get("msg"):
            return str(body["msg"])
    except ValueError:
        pass
    return resp.text or resp.reason_phrase


class BinanceCandleSource(CandleSource):
    name = "binance"

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base_secs: float = 1.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_base_secs = backoff_base_secs
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "BinanceCandleSource":
        return cls(
            base_url=settings.binance_base_url,
            timeout=settings.fetch_timeout_secs,
            max_retries=settings.fetch_max_retries,
            backoff_base_secs=settings.fetch_backoff_base_secs,
        )

    async def _get_klines(self, client: httpx.AsyncClient, params: dict) -> List[List[Any]]:
        url = f"{self.base_url}/api/v3/klines"
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url, params=params)
            except httpx.TransportError as e:
                if attempt == self.max_retries:
                    raise DataSourceError(f"Binance request failed: {e}") from e
                delay = self.backoff_base_secs * (2 ** (attempt - 1))
                logger.warning("Binance transport error on attempt %s: %s (backoff %.2fs)", attempt, e, delay)
                await self._sleep(delay)
                continue

            status = resp.status_code
            if status == 429 or 500 <= status < 600:
                msg = _error_message(resp)
                if attempt == self.max_retries:
                    raise DataSourceError(f"Binance error {status}: {msg}", status_code=status)
                delay = self.backoff_base_secs * (2 ** (attempt - 1))
                logger.warning("Binance %s on attempt %s: %s (backoff %.2fs)", status, attempt, msg, delay)
                await self._sleep(delay)
                continue

            if status >= 400:
                raise DataSourceError(f"Binance error {status}: {_error_message(resp)}", status_code=status)

            try:
                return resp.json()
            except ValueError as e:
                raise DataSourceError(f"Binance returned invalid JSON: {e}") from e

        raise DataSourceError("Binance request failed after retries.")

    async def fetch_recent_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        params = {
            "symbol": symbol.upper().replace("/", "").replace("-", ""),
            "interval": interval,
            "limit": max(1, min(limit, BINANCE_MAX_LIMIT)),
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            rows = await self._get_klines(client, params)

        if not isinstance(rows, list) or not rows:
            raise DataSourceError(f"No candles returned for {params['symbol']}@{interval}")
        try:
            candles = [_parse_kline(row) for row in rows]
        except (IndexError, TypeError, ValueError) as e:
            raise DataSourceError(f"Malformed kline payload: {e}") from e

        candles.sort(key=lambda c: c.start_time)
        logger.debug("Fetched %d candles for %s@%s", len(candles), params["symbol"], interval)
        return candles


async def fetch_recent_candles(
    symbol: str,
    interval: str,
    limit: int,
    settings: Optional[Settings] = None,
) -> List[Candle]:
    """Fetch candles with a ``BinanceCandleSource`` built from ``settings``."""
    source = BinanceCandleSource.from_settings(settings or Settings.from_env())
    return await source.fetch_recent_candles(symbol, interval, limit)
