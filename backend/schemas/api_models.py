"""Request/response models for the API layer.

These are thin API-surface models only.  Stage definitions and settings
live in extraction_pipeline.config.schema and are imported directly, no
duplication.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class FinalScoreModel(BaseModel):
    value: int
    label: str


class StageViewModel(BaseModel):
    stage_id: int
    name: str
    lifecycle: Literal["pending", "active", "complete"]
    expanded: bool
    nominal_duration_ms: int
    started_at_ms: float | None = None
    completed_at_ms: float | None = None
    outcome: Literal["succeeded", "failed"] | None = None


class SnapshotResponse(BaseModel):
    status: Literal["idle", "running", "completed"]
    generation: int
    active_stage_id: int | None = None
    completed_stage_ids: list[int]
    expanded_stage_ids: list[int]
    elapsed_ms: int
    final_score: FinalScoreModel | None = None
    stages: list[StageViewModel]


# ---------------------------------------------------------------------------
# Stage control
# ---------------------------------------------------------------------------

class ToggleResponse(BaseModel):
    stage_id: int
    expanded: bool
