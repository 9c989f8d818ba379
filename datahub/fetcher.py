"""
Universe-wide market data fetching.

Provider calls are blocking, so each one runs in a worker thread while the
event loop bounds how many instruments are in flight at once. Every instrument
resolves to either a ``PriceSeries`` or an ``InstrumentUnavailable`` marker;
only a total upstream outage is raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from infra.rate_limit import RateLimiter

from .errors import DataSourceError, ProviderError
from .providers import CandleProvider, Quote
from .universe import Instrument

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ("Open", "High", "Low", "Close", "Volume")


@dataclass(frozen=True, eq=False)
class PriceSeries:
    """Normalized OHLCV history for one instrument, most recent bar last."""

    symbol: str
    frame: pd.DataFrame
    quote: Optional[float] = None
    implied_volatility: Optional[float] = None
    source: Optional[str] = None

    @property
    def bars(self) -> int:
        return len(self.frame)


@dataclass(frozen=True)
class InstrumentUnavailable:
    """Marker for an instrument with no usable data in this invocation."""

    symbol: str
    reason: str
    error: bool = False


FetchResult = Union[PriceSeries, InstrumentUnavailable]


def _normalize_dataframe(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    if df is None or df.empty:
        return pd.DataFrame(columns=list(OHLCV_COLUMNS))
    normalized = df.copy()
    if isinstance(normalized.columns, pd.MultiIndex):
        normalized.columns = [str(col[0]).title() for col in normalized.columns]
    else:
        normalized.columns = [str(col).title() for col in normalized.columns]
    normalized = normalized.loc[:, ~normalized.columns.duplicated()]
    if "Close" not in normalized.columns:
        return pd.DataFrame(columns=list(OHLCV_COLUMNS))

    for column in OHLCV_COLUMNS:
        if column not in normalized.columns:
            normalized[column] = np.nan
    normalized = normalized[list(OHLCV_COLUMNS)].apply(pd.to_numeric, errors="coerce")

    if not isinstance(normalized.index, pd.DatetimeIndex):
        normalized.index = pd.to_datetime(normalized.index, utc=True)
    elif normalized.index.tz is None:
        normalized.index = normalized.index.tz_localize(
            timezone.utc, nonexistent="shift_forward", ambiguous="NaT"
        )
    else:
        normalized.index = normalized.index.tz_convert(timezone.utc)
    normalized = normalized[normalized.index.notna()]
    normalized.sort_index(inplace=True, kind="mergesort")
    normalized = normalized[~normalized.index.duplicated(keep="last")]

    close = normalized["Close"]
    usable = np.isfinite(close) & (close > 0)
    return normalized.loc[usable]


def _clean_quote(quote: Quote) -> Quote:
    price = quote.last_price
    if price is None or not np.isfinite(price) or price <= 0:
        price = None
    implied = quote.implied_volatility
    if implied is None or not np.isfinite(implied) or implied <= 0:
        implied = None
    return Quote(last_price=price, implied_volatility=implied)


async def fetch_price_series(
    instrument: Instrument,
    provider: CandleProvider,
    limiter: RateLimiter,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    interval: str = "1d",
) -> FetchResult:
    """Fetch candles and the current quote for one instrument."""
    symbol = instrument.symbol
    try:
        async with limiter.limit(provider.name):
            raw = await asyncio.to_thread(provider.fetch_candles, symbol, start, end, interval)
    except DataSourceError:
        raise
    except ProviderError as exc:
        logger.warning("%s unavailable from %s: %s", symbol, provider.name, exc)
        return InstrumentUnavailable(symbol=symbol, reason=str(exc), error=True)
    except Exception as exc:
        logger.exception("%s fetch from %s raised unexpectedly", symbol, provider.name)
        return InstrumentUnavailable(symbol=symbol, reason=str(exc) or type(exc).__name__, error=True)

    try:
        frame = _normalize_dataframe(raw)
    except Exception as exc:
        logger.warning("%s returned an unreadable frame: %s", symbol, exc)
        return InstrumentUnavailable(symbol=symbol, reason=f"unreadable price data: {exc}")
    if frame.empty:
        logger.warning("%s returned no usable price samples", symbol)
        return InstrumentUnavailable(symbol=symbol, reason="no usable price samples")

    try:
        async with limiter.limit(provider.name):
            quote = await asyncio.to_thread(provider.fetch_quote, symbol)
    except DataSourceError:
        raise
    except Exception as exc:
        logger.warning("%s quote unavailable: %s", symbol, exc)
        quote = Quote()
    quote = _clean_quote(quote)

    logger.debug("%s: %d bars from %s, quote=%s", symbol, len(frame), provider.name, quote.last_price)
    return PriceSeries(
        symbol=symbol,
        frame=frame,
        quote=quote.last_price,
        implied_volatility=quote.implied_volatility,
        source=provider.name,
    )


async def fetch_universe(
    instruments: Sequence[Instrument],
    provider: CandleProvider,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    interval: str = "1d",
    concurrency: int = 4,
    limiter: Optional[RateLimiter] = None,
) -> Dict[str, FetchResult]:
    """Fetch every instrument, keyed by symbol in universe order."""
    semaphore = asyncio.Semaphore(max(1, concurrency))
    limiter = limiter or RateLimiter({})
    results: Dict[str, FetchResult] = {}

    async def _worker(instrument: Instrument) -> None:
        async with semaphore:
            results[instrument.symbol] = await fetch_price_series(
                instrument,
                provider,
                limiter,
                start=start,
                end=end,
                interval=interval,
            )

    tasks = [asyncio.create_task(_worker(instrument)) for instrument in instruments]
    if tasks:
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    ordered = {instrument.symbol: results[instrument.symbol] for instrument in instruments}
    failures = [item for item in ordered.values() if isinstance(item, InstrumentUnavailable)]
    if ordered and len(failures) == len(ordered) and all(item.error for item in failures):
        raise DataSourceError(
            f"Market data source {provider.name} is unreachable: "
            f"all {len(ordered)} instruments failed (last error: {failures[-1].reason})"
        )

    logger.info(
        "Fetched %d/%d instruments from %s",
        len(ordered) - len(failures),
        len(ordered),
        provider.name,
    )
    return ordered
