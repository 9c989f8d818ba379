"""FastAPI entry point for the NSE trade scanner."""

from __future__ import annotations

import logging
from typing import Dict

import env  # noqa: F401

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import router as api_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="NSE Trade Scanner API",
    version="1.0.0",
    description="Intraday, swing and options picks for NSE large and mid caps",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.get("/healthz")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}
