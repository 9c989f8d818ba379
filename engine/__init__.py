"""Strategy scoring and snapshot assembly for the NSE trade scanner."""

from .config import IntradayRules, OptionsRules, ScannerConfig, SwingRules  # noqa: F401
from .models import STRATEGY_META, MarketSnapshot, MetricPair, StrategyId, StrategyPick  # noqa: F401
from .opportunity_filter import is_candidate  # noqa: F401
from .report import render_snapshot  # noqa: F401
from .scorers import (  # noqa: F401
    IntradayScorer,
    OptionsScorer,
    StrategyScorer,
    SwingScorer,
    build_scorers,
)
from .snapshot import MarketScanner, SnapshotTimeout, analyze_market  # noqa: F401

__all__ = [
    "IntradayRules",
    "IntradayScorer",
    "MarketScanner",
    "MarketSnapshot",
    "MetricPair",
    "OptionsRules",
    "OptionsScorer",
    "STRATEGY_META",
    "ScannerConfig",
    "SnapshotTimeout",
    "StrategyId",
    "StrategyPick",
    "StrategyScorer",
    "SwingRules",
    "SwingScorer",
    "analyze_market",
    "build_scorers",
    "is_candidate",
    "render_snapshot",
]
