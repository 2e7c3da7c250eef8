"""Exception hierarchy for catalog validation and runner commands.

Every error is raised before any state is touched, so a caller that catches
one can keep using the runner as if the call never happened.
"""

from __future__ import annotations

from extraction_pipeline.core.types import StageID


class PipelineError(Exception):
    """Base class for all pipeline simulator errors."""


class InvalidCatalog(PipelineError, ValueError):
    """The stage catalog is empty, has duplicate ids or negative durations."""


class EmptyCatalog(PipelineError):
    """``start()`` was called on a runner with no stages to run."""


class InvalidTransition(PipelineError):
    """The requested command is not legal in the current run status."""


class AlreadyRunning(InvalidTransition):
    """``start()`` was called while a run is in progress."""


class UnknownStageId(PipelineError, KeyError):
    """A stage id was given that does not exist in the catalog."""

    def __init__(self, stage_id: StageID) -> None:
        super().__init__(stage_id)
        self.stage_id = stage_id

    def __str__(self) -> str:
        return f"Unknown stage id: {self.stage_id}"
