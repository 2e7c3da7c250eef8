"""Pipeline control endpoints.

POST /api/pipeline/run
    Start a run of the current catalog.  Returns the snapshot taken right
    after scheduling (stage 1 already active).

POST /api/pipeline/reset
    Cancel the current run, if any, and return the idle snapshot.

POST /api/pipeline/stages/{stage_id}/toggle
    Expand or collapse an active/completed stage's detail view.

GET /api/pipeline/status
    Poll the current snapshot.

GET /api/pipeline/stages
    The stage catalog the next run will execute.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from extraction_pipeline.config.schema import StageDefinition
from extraction_pipeline.core.errors import InvalidTransition, UnknownStageId

from backend.pipeline.pipeline_manager import pipeline_manager
from backend.schemas.api_models import SnapshotResponse, ToggleResponse

router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


@router.post("/run", response_model=SnapshotResponse)
async def start_pipeline() -> SnapshotResponse:
    """Start the pipeline.  One run at a time; reset before re-running."""
    try:
        snap = pipeline_manager.runner.start()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return SnapshotResponse.model_validate(snap.to_dict())


@router.post("/reset", response_model=SnapshotResponse)
async def reset_pipeline() -> SnapshotResponse:
    snap = pipeline_manager.runner.reset()
    return SnapshotResponse.model_validate(snap.to_dict())


@router.post("/stages/{stage_id}/toggle", response_model=ToggleResponse)
async def toggle_stage(stage_id: int) -> ToggleResponse:
    try:
        expanded = pipeline_manager.runner.toggle_expanded(stage_id)
    except UnknownStageId as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return ToggleResponse(stage_id=stage_id, expanded=expanded)


@router.get("/status", response_model=SnapshotResponse)
async def pipeline_status() -> SnapshotResponse:
    return SnapshotResponse.model_validate(pipeline_manager.snapshot().to_dict())


@router.get("/stages", response_model=list[StageDefinition])
async def list_stages() -> list[StageDefinition]:
    return list(pipeline_manager.catalog.definitions())
