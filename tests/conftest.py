"""
Shared pytest fixtures for the scanner test suite.

Provides:
  - ``make_frame``: builds a synthetic daily OHLCV frame from a close path.
  - ``FakeProvider``: an in-memory ``CandleProvider`` serving canned frames,
    quotes and failures, so no test touches the network.
  - Canned price paths for the three archetypes the scanner distinguishes:
    a session breakout, a steady uptrend and a flat tape.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Union

import pandas as pd
import pytest

from datahub.indicators import IndicatorSet
from datahub.providers import CandleProvider, Quote
from engine.config import ScannerConfig

AS_OF = datetime(2024, 6, 14, 10, 0, tzinfo=timezone.utc)


def make_frame(
    closes: Sequence[float],
    volumes: Optional[Sequence[float]] = None,
    opens: Optional[Sequence[float]] = None,
    end: str = "2024-06-13",
) -> pd.DataFrame:
    """Daily bars ending at ``end``; opens default to the previous close."""
    closes = [float(value) for value in closes]
    if opens is None:
        opens = [closes[0]] + closes[:-1]
    if volumes is None:
        volumes = [1_000_000.0] * len(closes)
    index = pd.bdate_range(end=end, periods=len(closes), tz="UTC")
    highs = [max(o, c) * 1.005 for o, c in zip(opens, closes)]
    lows = [min(o, c) * 0.995 for o, c in zip(opens, closes)]
    return pd.DataFrame(
        {
            "Open": list(opens),
            "High": highs,
            "Low": lows,
            "Close": closes,
            "Volume": list(volumes),
        },
        index=index,
    )


def breakout_frame(bars: int = 60) -> pd.DataFrame:
    """Flat at 1000 then a 4% close on triple volume."""
    closes = [1000.0] * (bars - 1) + [1040.0]
    volumes = [1_000_000.0] * (bars - 1) + [3_000_000.0]
    return make_frame(closes, volumes)


def uptrend_frame(bars: int = 60, step: float = 0.004) -> pd.DataFrame:
    """Compounding at ``step`` per bar on constant volume."""
    closes = [1000.0 * (1.0 + step) ** i for i in range(bars)]
    return make_frame(closes)


def flat_frame(bars: int = 60, price: float = 500.0) -> pd.DataFrame:
    return make_frame([price] * bars)


class FakeProvider(CandleProvider):
    """Serves frames and quotes from memory; exceptions are raised on fetch."""

    name = "fake"

    def __init__(
        self,
        frames: Dict[str, Union[pd.DataFrame, Exception]],
        quotes: Optional[Dict[str, Union[Quote, Exception]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.frames = frames
        self.quotes = quotes or {}
        self.delay = delay
        self.calls = []

    def fetch_candles(self, ticker, start, end, interval):
        self.calls.append(ticker)
        if self.delay:
            time.sleep(self.delay)
        item = self.frames.get(ticker, pd.DataFrame())
        if isinstance(item, Exception):
            raise item
        return item.copy()

    def fetch_quote(self, ticker):
        item = self.quotes.get(ticker, Quote())
        if isinstance(item, Exception):
            raise item
        return item


def make_indicators(symbol: str, price: Optional[float] = 100.0, **values: float) -> IndicatorSet:
    return IndicatorSet(symbol=symbol, price=price, bars=60, values=dict(values))


@pytest.fixture
def fixed_clock():
    return lambda: AS_OF


@pytest.fixture
def scanner_config():
    """Factory for configs with rate limiting off and generous timeouts."""

    def _build(universe, **overrides) -> ScannerConfig:
        params = {
            "universe": tuple(universe),
            "requests_per_minute": 0,
            "timeout_seconds": 10.0,
        }
        params.update(overrides)
        return ScannerConfig(**params)

    return _build
