"""Indicator computation utilities."""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .fetcher import PriceSeries


@dataclass(frozen=True)
class IndicatorWindows:
    """Lookback lengths, in bars, for every windowed indicator."""

    momentum: int = 5
    trend: int = 20
    ema_fast: int = 20
    ema_slow: int = 50
    rsi: int = 14
    atr: int = 14
    adx: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    volatility: int = 20
    volatility_short: int = 5
    volume: int = 20
    trading_days: int = 252

    @property
    def max_lookback(self) -> int:
        """Bars needed for every indicator to be defined."""
        return max(
            self.momentum + 1,
            self.trend + 1,
            self.ema_slow,
            self.rsi + 1,
            self.atr + 1,
            2 * self.adx,
            self.macd_slow + self.macd_signal,
            self.volatility + 1,
            self.volume + 1,
        )


@dataclass(frozen=True)
class IndicatorSet:
    """Derived values for one instrument; absent keys could not be computed."""

    symbol: str
    price: Optional[float]
    bars: int
    values: Mapping[str, float]

    def get(self, name: str) -> Optional[float]:
        return self.values.get(name)

    def has(self, *names: str) -> bool:
        return all(name in self.values for name in names)


def compute_indicator_set(
    series: PriceSeries,
    windows: Optional[IndicatorWindows] = None,
) -> IndicatorSet:
    """Compute every indicator the series has enough history for."""
    w = windows or IndicatorWindows()
    data = series.frame
    close = data["Close"].astype(float)
    open_ = data["Open"].astype(float)
    high = data["High"].astype(float)
    low = data["Low"].astype(float)
    volume = data["Volume"].astype(float)
    n = len(close)

    values: Dict[str, float] = {}

    def _put(name: str, value: Optional[float]) -> None:
        number = _finite(value)
        if number is not None:
            values[name] = number

    if n == 0:
        return IndicatorSet(series.symbol, series.quote, 0, MappingProxyType(values))

    last_close = close.iloc[-1]
    _put("close", last_close)

    if n >= 2:
        prev_close = close.iloc[-2]
        _put("change_1d_pct", _pct_change(last_close, prev_close))
        _put("gap_pct", _pct_change(open_.iloc[-1], prev_close))

    if n > w.momentum:
        _put("momentum_pct", _pct_change(last_close, close.iloc[-1 - w.momentum]))

    if n > w.trend:
        _put("trend_return_pct", _pct_change(last_close, close.iloc[-1 - w.trend]))

    if n >= w.trend:
        slope_pct, r2 = _log_trend(close.tail(w.trend))
        _put("trend_slope_pct", slope_pct)
        _put("trend_r2", r2)

    if n >= w.ema_fast:
        _put("ema_fast", _ema(close, w.ema_fast).iloc[-1])
    if n >= w.ema_slow:
        _put("ema_slow", _ema(close, w.ema_slow).iloc[-1])

    if n > w.rsi:
        _put("rsi", _rsi(close, w.rsi).iloc[-1])

    if n > w.atr:
        atr = _atr(high, low, close, w.atr).iloc[-1]
        _put("atr_pct", _safe_div(atr, last_close, scale=100.0))

    if n >= 2 * w.adx:
        _put("adx", _adx(high, low, close, w.adx).iloc[-1])

    if n >= w.macd_slow + w.macd_signal:
        macd_line, macd_signal = _macd(close, w.macd_fast, w.macd_slow, w.macd_signal)
        _put("macd_hist", macd_line.iloc[-1] - macd_signal.iloc[-1])
        _put("macd_cross", _macd_cross(macd_line, macd_signal))

    if n > w.volatility:
        _put("realized_vol_pct", _realized_vol(close.tail(w.volatility + 1), w.trading_days))

    if n >= w.volatility_short:
        _put(
            "range_vol_pct",
            _parkinson_vol(high.tail(w.volatility_short), low.tail(w.volatility_short), w.trading_days),
        )

    if series.implied_volatility is not None:
        _put("implied_vol_pct", series.implied_volatility)

    if n > w.volume:
        prior_avg = volume.iloc[-1 - w.volume:-1].mean()
        _put("relative_volume", _safe_div(volume.iloc[-1], prior_avg))

    if n >= w.volume:
        recent_volume = volume.tail(w.volume)
        avg_volume = recent_volume.mean()
        avg_turnover = (close.tail(w.volume) * recent_volume).mean()
        if _finite(avg_volume) and avg_volume > 0:
            _put("avg_volume", avg_volume)
            _put("avg_turnover", avg_turnover)

    return IndicatorSet(
        symbol=series.symbol,
        price=series.quote,
        bars=n,
        values=MappingProxyType(values),
    )


def _finite(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _safe_div(numerator: float, denominator: float, scale: float = 1.0) -> Optional[float]:
    num = _finite(numerator)
    den = _finite(denominator)
    if num is None or den is None or den == 0:
        return None
    return num / den * scale


def _pct_change(current: float, previous: float) -> Optional[float]:
    ratio = _safe_div(current, previous)
    if ratio is None:
        return None
    return (ratio - 1.0) * 100.0


def _ema(series: pd.Series, span: int) -> pd.Series:
    return series.ewm(span=span, adjust=False).mean()


def _true_range(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
    prev_close = close.shift(1)
    tr = pd.concat(
        [
            high - low,
            (high - prev_close).abs(),
            (low - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1)
    return tr


def _atr(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.Series:
    tr = _true_range(high, low, close)
    return tr.rolling(period).mean()


def _adx(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.Series:
    up_move = high.diff()
    down_move = low.shift(1) - low

    plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0.0).fillna(0.0)
    minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0.0).fillna(0.0)

    tr = _true_range(high, low, close)
    tr_sum = tr.rolling(period).sum().replace(0, np.nan)

    plus_di = 100 * (plus_dm.rolling(period).sum() / tr_sum)
    minus_di = 100 * (minus_dm.rolling(period).sum() / tr_sum)

    dx = ((plus_di - minus_di).abs() / (plus_di + minus_di).replace(0, np.nan)) * 100
    return dx.rolling(period).mean()


def _macd(series: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> Tuple[pd.Series, pd.Series]:
    ema_fast = _ema(series, fast)
    ema_slow = _ema(series, slow)
    macd_line = ema_fast - ema_slow
    macd_signal = _ema(macd_line, signal)
    return macd_line, macd_signal


def _macd_cross(macd_line: pd.Series, macd_signal: pd.Series) -> Optional[float]:
    """+1 for a bullish cross on the last bar, -1 for bearish, 0 otherwise."""
    if len(macd_line) < 2:
        return None
    prev_diff = macd_line.iloc[-2] - macd_signal.iloc[-2]
    curr_diff = macd_line.iloc[-1] - macd_signal.iloc[-1]
    if prev_diff <= 0 < curr_diff:
        return 1.0
    if prev_diff >= 0 > curr_diff:
        return -1.0
    return 0.0


def _rsi(series: pd.Series, period: int = 14) -> pd.Series:
    delta = series.diff()
    gain = delta.clip(lower=0)
    loss = -delta.clip(upper=0)
    avg_gain = gain.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()
    avg_loss = loss.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()
    rs = avg_gain / avg_loss.replace(0, np.nan)
    rsi = 100 - (100 / (1 + rs))
    # No losses in the window: RSI saturates unless prices were flat.
    saturated = (avg_loss == 0) & (avg_gain > 0)
    return rsi.mask(saturated, 100.0)


def _log_trend(close: pd.Series) -> Tuple[Optional[float], Optional[float]]:
    """Least-squares slope of log price (as % per bar) and its R²."""
    prices = close.to_numpy(dtype=float)
    if len(prices) < 2 or not np.all(np.isfinite(prices)) or np.any(prices <= 0):
        return None, None
    y = np.log(prices)
    x = np.arange(len(y), dtype=float)
    slope, intercept = np.polyfit(x, y, 1)
    fitted = slope * x + intercept
    ss_res = float(np.sum((y - fitted) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else None
    return (math.exp(slope) - 1.0) * 100.0, r2


def _realized_vol(close: pd.Series, trading_days: int) -> Optional[float]:
    """Annualized close-to-close volatility, in percent."""
    log_returns = np.log(close / close.shift(1)).dropna()
    if len(log_returns) < 2:
        return None
    return float(log_returns.std(ddof=1)) * math.sqrt(trading_days) * 100.0


def _parkinson_vol(high: pd.Series, low: pd.Series, trading_days: int) -> Optional[float]:
    """Annualized Parkinson high/low range volatility, in percent."""
    valid = (high > 0) & (low > 0) & (high >= low)
    if not valid.all():
        return None
    squared = np.log(high / low) ** 2
    variance = float(squared.mean()) / (4.0 * math.log(2.0))
    return math.sqrt(variance * trading_days) * 100.0
