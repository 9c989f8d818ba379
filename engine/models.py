"""Strategy identifiers and the immutable result types of a scan."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class StrategyId(str, Enum):
    INTRADAY = "intraday"
    SWING = "swing"
    OPTIONS = "options"


STRATEGY_META: Mapping[StrategyId, Mapping[str, str]] = MappingProxyType(
    {
        StrategyId.INTRADAY: {
            "title": "Intraday Momentum",
            "description": "High-liquidity names with strong price/volume action for same-day trades.",
        },
        StrategyId.SWING: {
            "title": "Swing Trend",
            "description": "Technically strong setups carrying momentum over days to weeks.",
        },
        StrategyId.OPTIONS: {
            "title": "Options Volatility",
            "description": "Underlyings with rich implied volatility and directional catalysts.",
        },
    }
)


@dataclass(frozen=True)
class MetricPair:
    label: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class StrategyPick:
    """One instrument selected by a strategy."""

    symbol: str
    name: str
    price: Optional[float]
    metrics: Tuple[MetricPair, ...]
    rationale: Tuple[str, ...]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "metrics": [metric.to_dict() for metric in self.metrics],
            "rationale": list(self.rationale),
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """Complete, timestamped result of one scan."""

    as_of: datetime
    coverage_count: int
    universe_size: int
    picks: Mapping[StrategyId, Tuple[StrategyPick, ...]]

    def __post_init__(self) -> None:
        ordered = {strategy: tuple(self.picks.get(strategy, ())) for strategy in StrategyId}
        object.__setattr__(self, "picks", MappingProxyType(ordered))

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape consumed by the HTTP layer."""
        as_of = self.as_of
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        return {
            "asOf": as_of.astimezone(timezone.utc).isoformat(),
            "coverageCount": self.coverage_count,
            "picks": {
                strategy.value: [pick.to_dict() for pick in picks]
                for strategy, picks in self.picks.items()
            },
        }
