from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MetricPayload(BaseModel):
    label: str
    value: str


class PickPayload(BaseModel):
    symbol: str
    name: str
    price: Optional[float] = Field(None, description="Last traded price; null when no live quote was available")
    metrics: List[MetricPayload] = Field(default_factory=list)
    rationale: List[str] = Field(default_factory=list)


class StrategyPicksPayload(BaseModel):
    intraday: List[PickPayload] = Field(default_factory=list)
    swing: List[PickPayload] = Field(default_factory=list)
    options: List[PickPayload] = Field(default_factory=list)


class MarketSnapshotPayload(BaseModel):
    asOf: datetime
    coverageCount: int = Field(..., ge=0)
    picks: StrategyPicksPayload


class ErrorPayload(BaseModel):
    error: str
