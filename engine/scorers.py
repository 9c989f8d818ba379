"""
Strategy scoring.

Each strategy turns an instrument's indicator set into a score, the metrics
that drove it and the reasons behind it, or ``None`` when the instrument is not
eligible. The set of strategies is closed: ``build_scorers`` returns exactly
one scorer per ``StrategyId``.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from datahub.indicators import IndicatorSet
from datahub.universe import Instrument

from .config import IntradayRules, OptionsRules, ScannerConfig, SwingRules
from .models import MetricPair, StrategyId, StrategyPick
from .opportunity_filter import is_candidate, is_options_tradable, passes_liquidity_floor

logger = logging.getLogger(__name__)

StrategyRules = Union[IntradayRules, SwingRules, OptionsRules]

Candidate = Tuple[Instrument, IndicatorSet]


@dataclass(frozen=True)
class ScoreOutcome:
    score: float
    metrics: Tuple[MetricPair, ...]
    rationale: Tuple[str, ...]


def _fmt_pct(value: float, signed: bool = True) -> str:
    return f"{value:+.2f}%" if signed else f"{value:.1f}%"


def _fmt_ratio(value: float) -> str:
    return f"{value:.2f}x"


def _fmt_crore(value: float) -> str:
    return f"Rs {value / 1e7:,.0f} Cr"


def _fmt_points(value: float) -> str:
    return f"{value:+.1f} pts"


class StrategyScorer(abc.ABC):
    """Common scoring capability; subclasses implement ``score``."""

    strategy: StrategyId

    def __init__(self, rules: StrategyRules, limit: int) -> None:
        self.rules = rules
        self.limit = limit

    @abc.abstractmethod
    def score(self, instrument: Instrument, indicators: IndicatorSet) -> Optional[ScoreOutcome]:
        """Score one instrument, or return None when it is not eligible."""

    def rank(self, candidates: Sequence[Candidate]) -> Tuple[StrategyPick, ...]:
        """Score all candidates and keep the best ``limit``, highest first."""
        scored: List[Tuple[Instrument, IndicatorSet, ScoreOutcome]] = []
        for instrument, indicators in candidates:
            outcome = self.score(instrument, indicators)
            if outcome is None or not is_candidate(outcome.score, self.rules.min_score):
                continue
            scored.append((instrument, indicators, outcome))

        scored.sort(key=lambda item: (-item[2].score, item[0].symbol))
        picks = tuple(
            StrategyPick(
                symbol=instrument.symbol,
                name=instrument.name,
                price=indicators.price,
                metrics=outcome.metrics,
                rationale=outcome.rationale,
                score=outcome.score,
            )
            for instrument, indicators, outcome in scored[: self.limit]
        )
        logger.debug(
            "%s: %d eligible of %d, kept %d",
            self.strategy.value,
            len(scored),
            len(candidates),
            len(picks),
        )
        return picks


class IntradayScorer(StrategyScorer):
    """Rewards a strong session move on elevated relative volume."""

    strategy = StrategyId.INTRADAY

    def score(self, instrument: Instrument, indicators: IndicatorSet) -> Optional[ScoreOutcome]:
        rules = self.rules
        if not passes_liquidity_floor(indicators, rules.min_avg_turnover):
            return None
        if not indicators.has("change_1d_pct", "relative_volume"):
            return None

        change = indicators.values["change_1d_pct"]
        relvol = indicators.values["relative_volume"]
        turnover = indicators.values["avg_turnover"]
        # Long-side momentum only; volume on a falling session is distribution.
        if change <= 0:
            return None

        momentum_score = change / rules.momentum_pct
        volume_score = (relvol - 1.0) / max(rules.relative_volume - 1.0, 1e-9)
        total = 0.6 * momentum_score + 0.4 * volume_score

        metrics = [
            MetricPair("1D change", _fmt_pct(change)),
            MetricPair("Rel. volume", _fmt_ratio(relvol)),
            MetricPair("Avg turnover", _fmt_crore(turnover)),
        ]
        reasons: List[str] = []
        if change >= rules.momentum_pct:
            reasons.append(f"Up {change:.1f}% on the session, clearing the {rules.momentum_pct:g}% momentum bar")
        if relvol >= rules.relative_volume:
            reasons.append(f"Volume running at {relvol:.1f}x its recent average")

        gap = indicators.get("gap_pct")
        if gap is not None and gap >= rules.gap_pct:
            total += rules.gap_bonus
            metrics.append(MetricPair("Opening gap", _fmt_pct(gap)))
            reasons.append(f"Opened with a {gap:.1f}% gap up")

        reasons.append(f"Liquid: {_fmt_crore(turnover)} average daily turnover")

        return ScoreOutcome(round(total, 4), tuple(metrics), tuple(reasons))


class SwingScorer(StrategyScorer):
    """Rewards a steady multi-day trend with moderate volatility."""

    strategy = StrategyId.SWING

    def score(self, instrument: Instrument, indicators: IndicatorSet) -> Optional[ScoreOutcome]:
        rules = self.rules
        if not indicators.has("trend_slope_pct", "trend_r2", "realized_vol_pct"):
            return None

        slope = indicators.values["trend_slope_pct"]
        r2 = indicators.values["trend_r2"]
        vol = indicators.values["realized_vol_pct"]

        total = slope * r2 / rules.slope_pct
        metrics = [
            MetricPair("Trend slope", f"{slope:+.2f}%/day"),
            MetricPair("Trend fit R²", f"{r2:.2f}"),
        ]
        reasons: List[str] = []
        if slope > 0 and r2 >= rules.consistent_r2:
            reasons.append(f"Steady uptrend of {slope:+.2f}% a day with a clean fit (R² {r2:.2f})")

        adx = indicators.get("adx")
        if adx is not None:
            metrics.append(MetricPair("ADX", f"{adx:.1f}"))
            if slope > 0 and adx >= rules.min_adx:
                total += rules.adx_bonus
                reasons.append(f"ADX {adx:.0f} confirms trend strength")

        close = indicators.get("close")
        ema_fast = indicators.get("ema_fast")
        ema_slow = indicators.get("ema_slow")
        if close is not None and ema_fast is not None and ema_slow is not None:
            if close > ema_fast > ema_slow:
                total += rules.ema_bonus
                reasons.append("Price above the fast EMA, fast EMA above the slow EMA")

        metrics.append(MetricPair("Realized vol", _fmt_pct(vol, signed=False)))
        if rules.vol_min_pct <= vol <= rules.vol_max_pct:
            total += rules.vol_bonus
            reasons.append(
                f"Realized volatility of {vol:.0f}% sits in the "
                f"{rules.vol_min_pct:g}-{rules.vol_max_pct:g}% swing band"
            )
        elif vol < rules.vol_min_pct:
            total += rules.vol_bonus / 2
            reasons.append(f"Calm tape: realized volatility only {vol:.0f}%")
        else:
            total -= (vol - rules.vol_max_pct) / rules.vol_max_pct

        trend_return = indicators.get("trend_return_pct")
        if trend_return is not None:
            metrics.append(MetricPair("Trend return", _fmt_pct(trend_return)))
        downtrend = trend_return is not None and trend_return <= -rules.downtrend_pct
        if ema_fast is not None and ema_slow is not None and ema_fast < ema_slow and slope < 0:
            downtrend = True
        if downtrend:
            total -= rules.downtrend_penalty

        return ScoreOutcome(round(total, 4), tuple(metrics), tuple(reasons))


class OptionsScorer(StrategyScorer):
    """Rewards forward volatility priced over realized, plus a catalyst."""

    strategy = StrategyId.OPTIONS

    def score(self, instrument: Instrument, indicators: IndicatorSet) -> Optional[ScoreOutcome]:
        rules = self.rules
        if not is_options_tradable(instrument):
            return None

        realized = indicators.get("realized_vol_pct")
        forward = indicators.get("implied_vol_pct")
        forward_label = "Implied vol"
        if forward is None:
            forward = indicators.get("range_vol_pct")
            forward_label = "Range vol"
        if realized is None or forward is None:
            return None

        spread = forward - realized
        total = spread / rules.vol_spread_pct
        metrics = [
            MetricPair(forward_label, _fmt_pct(forward, signed=False)),
            MetricPair("Realized vol", _fmt_pct(realized, signed=False)),
            MetricPair("Vol spread", _fmt_points(spread)),
        ]
        reasons: List[str] = []
        if spread >= rules.vol_spread_pct:
            reasons.append(
                f"{forward_label} of {forward:.0f}% runs {spread:.1f} pts over realized {realized:.0f}%"
            )

        catalyst = self._catalyst(indicators)
        if catalyst is not None:
            direction, description = catalyst
            total += rules.catalyst_bonus
            metrics.append(MetricPair("Catalyst", direction))
            reasons.append(description)

        return ScoreOutcome(round(total, 4), tuple(metrics), tuple(reasons))

    def _catalyst(self, indicators: IndicatorSet) -> Optional[Tuple[str, str]]:
        rules = self.rules
        gap = indicators.get("gap_pct")
        if gap is not None and abs(gap) >= rules.catalyst_gap_pct:
            if gap > 0:
                return "Bullish", f"Gap up of {gap:.1f}% at the open"
            return "Bearish", f"Gap down of {abs(gap):.1f}% at the open"

        change = indicators.get("change_1d_pct")
        relvol = indicators.get("relative_volume")
        if (
            change is not None
            and relvol is not None
            and abs(change) >= rules.catalyst_move_pct
            and relvol >= rules.catalyst_volume_ratio
        ):
            if change > 0:
                return "Bullish", f"{change:.1f}% rally on {relvol:.1f}x volume"
            return "Bearish", f"{abs(change):.1f}% sell-off on {relvol:.1f}x volume"

        cross = indicators.get("macd_cross")
        if cross == 1.0:
            return "Bullish", "Fresh bullish MACD crossover"
        if cross == -1.0:
            return "Bearish", "Fresh bearish MACD crossover"
        return None


def build_scorers(config: ScannerConfig) -> Mapping[StrategyId, StrategyScorer]:
    """One scorer per strategy, configured from ``config``."""
    scorers = {
        StrategyId.INTRADAY: IntradayScorer(config.intraday, config.limit_for(StrategyId.INTRADAY)),
        StrategyId.SWING: SwingScorer(config.swing, config.limit_for(StrategyId.SWING)),
        StrategyId.OPTIONS: OptionsScorer(config.options, config.limit_for(StrategyId.OPTIONS)),
    }
    return MappingProxyType(scorers)
