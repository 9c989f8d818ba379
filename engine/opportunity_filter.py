"""Eligibility checks shared by the strategy scorers."""

from __future__ import annotations

import math

from datahub.indicators import IndicatorSet
from datahub.universe import Instrument


def is_candidate(score: float, min_score: float = 0.0) -> bool:
    """A scored instrument makes the shortlist only above the strategy floor."""
    return math.isfinite(score) and score > min_score


def passes_liquidity_floor(indicators: IndicatorSet, min_avg_turnover: float) -> bool:
    turnover = indicators.get("avg_turnover")
    return turnover is not None and turnover >= min_avg_turnover


def is_options_tradable(instrument: Instrument) -> bool:
    return instrument.options_tradable
