from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.app.schemas.snapshot import ErrorPayload, MarketSnapshotPayload
from backend.app.services.analyze import build_snapshot_payload
from datahub.errors import ScannerError
from engine.snapshot import MarketScanner

logger = logging.getLogger(__name__)

router = APIRouter()

NO_STORE_HEADERS = {"Cache-Control": "no-store, max-age=0"}
FALLBACK_ERROR = "Unable to analyze market data right now."


def get_scanner() -> Optional[MarketScanner]:
    """Scanner override hook; ``None`` scans with the environment configuration."""
    return None


@router.get(
    "/analyze",
    response_model=MarketSnapshotPayload,
    responses={500: {"model": ErrorPayload}},
)
async def analyze_entry(scanner: Optional[MarketScanner] = Depends(get_scanner)) -> JSONResponse:
    try:
        payload = await build_snapshot_payload(scanner)
    except ScannerError as exc:
        logger.exception("Market analysis failed")
        message = str(exc) or FALLBACK_ERROR
        return JSONResponse(status_code=500, content={"error": message}, headers=NO_STORE_HEADERS)
    except Exception:
        logger.exception("Market analysis raised unexpectedly")
        return JSONResponse(status_code=500, content={"error": FALLBACK_ERROR}, headers=NO_STORE_HEADERS)
    return JSONResponse(content=payload.model_dump(mode="json"), headers=NO_STORE_HEADERS)
