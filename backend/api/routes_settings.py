"""Pipeline settings endpoints (in-memory, no persistence)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from extraction_pipeline.config.schema import PipelineSettings
from extraction_pipeline.core.errors import AlreadyRunning

from backend.pipeline.pipeline_manager import pipeline_manager

router = APIRouter(prefix="/api/pipeline/settings", tags=["settings"])


@router.get("", response_model=PipelineSettings)
async def get_settings() -> PipelineSettings:
    return pipeline_manager.settings


@router.put("", response_model=PipelineSettings)
async def update_settings(settings: PipelineSettings) -> PipelineSettings:
    """Validate and apply new settings.  Rejected while a run is in progress."""
    try:
        pipeline_manager.update_settings(settings)
    except AlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return pipeline_manager.settings
