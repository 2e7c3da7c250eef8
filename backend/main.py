"""FastAPI application assembly."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from backend.api.routes_pipeline import router as pipeline_router
from backend.api.routes_settings import router as settings_router
from backend.api.ws_pipeline import router as ws_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Clinical Extraction Pipeline", version="0.1.0")

app.include_router(settings_router)
app.include_router(pipeline_router)
app.include_router(ws_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok"}
