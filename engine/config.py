"""
Scanner configuration.

Every tunable of a scan lives here as a named field: the instrument universe,
the per-strategy pick caps, the indicator lookbacks and each strategy's
eligibility thresholds. ``ScannerConfig.from_env`` applies the overrides that
can be set from the environment (or a ``.env`` file loaded by ``env.py``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Tuple

from datahub.indicators import IndicatorWindows
from datahub.universe import DEFAULT_UNIVERSE, Instrument, dedupe, load_universe
from infra.rate_limit import DEFAULT_YF_RPM

from .models import StrategyId

DEFAULT_PICK_LIMIT = 5
DEFAULT_HISTORY_DAYS = 180
DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT_SECONDS = 90.0


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(int(raw), 0)
    except ValueError:
        return default


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return default


@dataclass(frozen=True)
class IntradayRules:
    """Same-session momentum on heavy volume."""

    # Liquidity floor: 20-day average traded value in rupees (50 crore).
    min_avg_turnover: float = 5e8
    # 1-day move, in percent, that counts as strong momentum.
    momentum_pct: float = 1.5
    # Volume versus its 20-day average that counts as elevated.
    relative_volume: float = 1.5
    # Opening gap, in percent, that earns a bonus.
    gap_pct: float = 1.0
    gap_bonus: float = 0.2
    min_score: float = 0.0


@dataclass(frozen=True)
class SwingRules:
    """Multi-day trend with contained volatility."""

    # Log-trend slope, in percent per bar, that scores 1.0 at perfect fit.
    slope_pct: float = 0.25
    # R² above which the trend is called consistent.
    consistent_r2: float = 0.6
    min_adx: float = 20.0
    adx_bonus: float = 0.3
    ema_bonus: float = 0.3
    # Annualized realized-volatility band, in percent, treated as moderate.
    vol_min_pct: float = 15.0
    vol_max_pct: float = 40.0
    vol_bonus: float = 0.3
    # Trend-window loss, in percent, that marks a strong downtrend.
    downtrend_pct: float = 8.0
    downtrend_penalty: float = 1.0
    min_score: float = 0.0


@dataclass(frozen=True)
class OptionsRules:
    """Rich forward volatility with a directional catalyst."""

    # Forward minus realized volatility, in points, that scores 1.0.
    vol_spread_pct: float = 5.0
    catalyst_gap_pct: float = 1.5
    catalyst_move_pct: float = 2.0
    catalyst_volume_ratio: float = 1.8
    catalyst_bonus: float = 0.5
    min_score: float = 0.0


def _default_limits() -> Mapping[StrategyId, int]:
    return {strategy: DEFAULT_PICK_LIMIT for strategy in StrategyId}


@dataclass(frozen=True)
class ScannerConfig:
    """Everything one scan needs besides market data."""

    universe: Tuple[Instrument, ...] = DEFAULT_UNIVERSE
    pick_limits: Mapping[StrategyId, int] = field(default_factory=_default_limits)
    windows: IndicatorWindows = field(default_factory=IndicatorWindows)
    intraday: IntradayRules = field(default_factory=IntradayRules)
    swing: SwingRules = field(default_factory=SwingRules)
    options: OptionsRules = field(default_factory=OptionsRules)
    # Calendar days of daily history requested per instrument.
    history_days: int = DEFAULT_HISTORY_DAYS
    interval: str = "1d"
    concurrency: int = DEFAULT_CONCURRENCY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    requests_per_minute: int = DEFAULT_YF_RPM

    def __post_init__(self) -> None:
        limits = {strategy: DEFAULT_PICK_LIMIT for strategy in StrategyId}
        for key, value in dict(self.pick_limits).items():
            strategy = StrategyId(key)
            if int(value) < 0:
                raise ValueError(f"pick limit for {strategy.value} must be >= 0")
            limits[strategy] = int(value)
        object.__setattr__(self, "pick_limits", MappingProxyType(limits))
        object.__setattr__(self, "universe", dedupe(self.universe))
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.history_days < self.windows.max_lookback:
            # Calendar days bound the number of daily bars from above.
            raise ValueError(
                f"history_days={self.history_days} cannot cover the "
                f"{self.windows.max_lookback}-bar indicator lookback"
            )

    def limit_for(self, strategy: StrategyId) -> int:
        return self.pick_limits[strategy]

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        universe_path = os.getenv("SCANNER_UNIVERSE_PATH")
        universe = load_universe(Path(universe_path)) if universe_path else DEFAULT_UNIVERSE
        pick_limit = _parse_int("SCANNER_PICK_LIMIT", DEFAULT_PICK_LIMIT)
        return cls(
            universe=universe,
            pick_limits={strategy: pick_limit for strategy in StrategyId},
            history_days=_parse_int("SCANNER_HISTORY_DAYS", DEFAULT_HISTORY_DAYS) or DEFAULT_HISTORY_DAYS,
            concurrency=_parse_int("SCANNER_CONCURRENCY", DEFAULT_CONCURRENCY) or DEFAULT_CONCURRENCY,
            timeout_seconds=_parse_float("SCANNER_TIMEOUT", DEFAULT_TIMEOUT_SECONDS) or DEFAULT_TIMEOUT_SECONDS,
            requests_per_minute=_parse_int("YF_MAX_RPM", DEFAULT_YF_RPM),
        )
