from .snapshot import (
    ErrorPayload,
    MarketSnapshotPayload,
    MetricPayload,
    PickPayload,
    StrategyPicksPayload,
)

__all__ = [
    "ErrorPayload",
    "MarketSnapshotPayload",
    "MetricPayload",
    "PickPayload",
    "StrategyPicksPayload",
]
