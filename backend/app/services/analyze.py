from __future__ import annotations

import logging
from typing import Optional

from backend.app.schemas.snapshot import MarketSnapshotPayload
from engine.models import MarketSnapshot
from engine.snapshot import MarketScanner, analyze_market

logger = logging.getLogger(__name__)


def to_payload(snapshot: MarketSnapshot) -> MarketSnapshotPayload:
    return MarketSnapshotPayload.model_validate(snapshot.to_dict())


async def build_snapshot_payload(scanner: Optional[MarketScanner] = None) -> MarketSnapshotPayload:
    """Run one scan and shape it for the HTTP layer."""
    if scanner is None:
        snapshot = await analyze_market()
    else:
        snapshot = await scanner.analyze()
    payload = to_payload(snapshot)
    logger.debug(
        "Snapshot payload ready: coverage=%d intraday=%d swing=%d options=%d",
        payload.coverageCount,
        len(payload.picks.intraday),
        len(payload.picks.swing),
        len(payload.picks.options),
    )
    return payload
