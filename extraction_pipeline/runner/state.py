"""State representations for a pipeline run.

All mutable run state lives in ``RunState`` and is owned by the runner.
Everything handed out to callers is a frozen ``RunSnapshot``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from extraction_pipeline.config.catalog import StageCatalog
from extraction_pipeline.core.types import (
    RunStatus,
    StageID,
    StageLifecycle,
    StageOutcome,
)
from extraction_pipeline.runner.scoring import FinalScore


@dataclass(slots=True)
class RunState:
    """Complete mutable state of the current run."""

    status: RunStatus = RunStatus.IDLE
    generation: int = 0
    active_stage_id: StageID | None = None
    # Insertion order = completion order = catalog order
    completed_stage_ids: list[StageID] = field(default_factory=list)
    expanded_stage_ids: list[StageID] = field(default_factory=list)
    elapsed_ms: int = 0
    final_score: FinalScore | None = None
    # Offsets from t0, keyed by stage id
    started_at_ms: dict[StageID, float] = field(default_factory=dict)
    completed_at_ms: dict[StageID, float] = field(default_factory=dict)
    outcomes: dict[StageID, StageOutcome] = field(default_factory=dict)
    # Stages the caller toggled since they were activated; auto-collapse skips them
    user_toggled: set[StageID] = field(default_factory=set)

    def clear(self) -> None:
        """Return to the idle state.  ``generation`` is left to the caller."""
        self.status = RunStatus.IDLE
        self.active_stage_id = None
        self.completed_stage_ids.clear()
        self.expanded_stage_ids.clear()
        self.elapsed_ms = 0
        self.final_score = None
        self.started_at_ms.clear()
        self.completed_at_ms.clear()
        self.outcomes.clear()
        self.user_toggled.clear()

    def lifecycle_of(self, stage_id: StageID) -> StageLifecycle:
        if stage_id == self.active_stage_id:
            return StageLifecycle.ACTIVE
        if stage_id in self.completed_stage_ids:
            return StageLifecycle.COMPLETE
        return StageLifecycle.PENDING

    def expand(self, stage_id: StageID) -> None:
        if stage_id not in self.expanded_stage_ids:
            self.expanded_stage_ids.append(stage_id)

    def collapse(self, stage_id: StageID) -> None:
        if stage_id in self.expanded_stage_ids:
            self.expanded_stage_ids.remove(stage_id)

    def freeze(self, catalog: StageCatalog) -> RunSnapshot:
        stages = tuple(
            StageView(
                stage_id=s.id,
                name=s.name,
                lifecycle=self.lifecycle_of(s.id),
                expanded=s.id in self.expanded_stage_ids,
                nominal_duration_ms=s.nominal_duration_ms,
                started_at_ms=self.started_at_ms.get(s.id),
                completed_at_ms=self.completed_at_ms.get(s.id),
                outcome=self.outcomes.get(s.id),
            )
            for s in catalog
        )
        return RunSnapshot(
            status=self.status,
            generation=self.generation,
            active_stage_id=self.active_stage_id,
            completed_stage_ids=tuple(self.completed_stage_ids),
            expanded_stage_ids=tuple(self.expanded_stage_ids),
            elapsed_ms=self.elapsed_ms,
            final_score=self.final_score,
            stages=stages,
        )


@dataclass(frozen=True, slots=True)
class StageView:
    """Read-only per-stage view for renderers."""

    stage_id: StageID
    name: str
    lifecycle: StageLifecycle
    expanded: bool
    nominal_duration_ms: int
    started_at_ms: float | None = None
    completed_at_ms: float | None = None
    outcome: StageOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage_id": self.stage_id,
            "name": self.name,
            "lifecycle": self.lifecycle.value,
            "expanded": self.expanded,
            "nominal_duration_ms": self.nominal_duration_ms,
            "started_at_ms": self.started_at_ms,
            "completed_at_ms": self.completed_at_ms,
            "outcome": self.outcome.value if self.outcome else None,
        }


@dataclass(frozen=True, slots=True)
class RunSnapshot:
    """Immutable copy of ``RunState`` taken between transitions.

    Equality ignores ``generation`` so two idle snapshots compare equal no
    matter how many runs came before them.
    """

    status: RunStatus
    generation: int = field(compare=False)
    active_stage_id: StageID | None
    completed_stage_ids: tuple[StageID, ...]
    expanded_stage_ids: tuple[StageID, ...]
    elapsed_ms: int
    final_score: FinalScore | None
    stages: tuple[StageView, ...] = ()

    def stage(self, stage_id: StageID) -> StageView:
        for view in self.stages:
            if view.stage_id == stage_id:
                return view
        raise KeyError(stage_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "generation": self.generation,
            "active_stage_id": self.active_stage_id,
            "completed_stage_ids": list(self.completed_stage_ids),
            "expanded_stage_ids": list(self.expanded_stage_ids),
            "elapsed_ms": self.elapsed_ms,
            "final_score": self.final_score.to_dict() if self.final_score else None,
            "stages": [v.to_dict() for v in self.stages],
        }
