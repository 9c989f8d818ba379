"""
Market data provider adapters.

Providers share one interface so the fetcher can run any of them against the
universe. The yfinance adapter is the default source for NSE equities.
"""

from __future__ import annotations

import abc
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import pandas as pd
import yfinance as yf
from yfinance.exceptions import YFRateLimitError

from .errors import DataSourceError, ProviderError

logger = logging.getLogger(__name__)

NSE_SUFFIX = ".NS"
BSE_SUFFIX = ".BO"


def normalize_nse_symbol(ticker: str) -> str:
    """Map an NSE trading symbol to the Yahoo Finance ticker."""
    if not ticker:
        return ticker
    symbol = ticker.strip().upper()
    if symbol.endswith((NSE_SUFFIX, BSE_SUFFIX)) or symbol.startswith("^"):
        return symbol
    if symbol.endswith(".NSE"):
        return f"{symbol[:-4]}{NSE_SUFFIX}"
    return f"{symbol}{NSE_SUFFIX}"


def _finite(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class Quote:
    """Live quote fields; either value may be missing."""

    last_price: Optional[float] = None
    implied_volatility: Optional[float] = None


class CandleProvider(abc.ABC):
    """Abstract source of OHLCV candles and quotes."""

    name: str

    @abc.abstractmethod
    def fetch_candles(
        self,
        ticker: str,
        start: Optional[datetime],
        end: Optional[datetime],
        interval: str,
    ) -> pd.DataFrame:
        """Return OHLCV candles for the range, or raise ProviderError."""

    def fetch_quote(self, ticker: str) -> Quote:
        """Return the current quote; providers without quotes return an empty one."""
        return Quote()


class YFinanceProvider(CandleProvider):
    """Yahoo Finance daily candles and quotes via yfinance."""

    name = "yfinance"

    def fetch_candles(
        self,
        ticker: str,
        start: Optional[datetime],
        end: Optional[datetime],
        interval: str,
    ) -> pd.DataFrame:
        kwargs: Dict[str, object] = {
            "interval": interval,
            "auto_adjust": False,
            "actions": False,
            "raise_errors": True,
        }
        if start:
            kwargs["start"] = start
        if end:
            kwargs["end"] = end

        symbol = normalize_nse_symbol(ticker)
        logger.debug("Fetching %s/%s from yfinance", symbol, interval)
        try:
            df = yf.Ticker(symbol).history(**kwargs)
        except YFRateLimitError as exc:
            raise DataSourceError(f"yfinance is rate limiting requests: {exc}") from exc
        except Exception as exc:
            raise ProviderError(f"yfinance history for {symbol} failed: {exc}") from exc
        if df is None:
            return pd.DataFrame()
        return df

    def fetch_quote(self, ticker: str) -> Quote:
        symbol = normalize_nse_symbol(ticker)
        handle = yf.Ticker(symbol)

        last_price: Optional[float] = None
        try:
            last_price = _finite(getattr(handle.fast_info, "last_price", None))
        except Exception as exc:  # pragma: no cover - network errors
            logger.debug("yfinance quote for %s unavailable: %s", symbol, exc)

        implied: Optional[float] = None
        if last_price:
            try:
                implied = self._atm_implied_volatility(handle, last_price)
            except Exception as exc:  # pragma: no cover - network errors
                logger.debug("yfinance option chain for %s unavailable: %s", symbol, exc)

        return Quote(
            last_price=last_price if last_price and last_price > 0 else None,
            implied_volatility=implied,
        )

    @staticmethod
    def _atm_implied_volatility(handle: yf.Ticker, spot: float) -> Optional[float]:
        expiries = handle.options or ()
        if not expiries:
            return None
        calls = handle.option_chain(expiries[0]).calls
        if calls is None or calls.empty or "impliedVolatility" not in calls.columns:
            return None
        work = calls[["strike", "impliedVolatility"]].apply(pd.to_numeric, errors="coerce").dropna()
        work = work[work["impliedVolatility"] > 0]
        if work.empty:
            return None
        nearest = (work["strike"] - spot).abs().idxmin()
        return _finite(work.loc[nearest, "impliedVolatility"] * 100.0)


def default_provider() -> CandleProvider:
    """Provider used when the caller does not inject one."""
    return YFinanceProvider()
