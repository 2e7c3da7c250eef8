"""Framework-level types shared by the catalog, the runner and the backend.

These are the shared vocabulary of the pipeline simulator.  Anything that
carries behaviour lives in the runner package, not here.
"""

from __future__ import annotations

from enum import Enum


# ---------------------------------------------------------------------------
# Stage identity
# ---------------------------------------------------------------------------

StageID = int  # unique within a catalog; ascending = execution order


# ---------------------------------------------------------------------------
# Run / stage lifecycle
# ---------------------------------------------------------------------------

class RunStatus(Enum):
    """Where a run is in its lifecycle.  ``IDLE`` is also the post-reset state."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class StageLifecycle(Enum):
    """Per-stage view of a run."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"


class StageOutcome(Enum):
    """Result recorded when a stage completes."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Scheduled events
# ---------------------------------------------------------------------------

class EventKind(Enum):
    """The three transitions a scheduled event can apply."""

    ACTIVATE = "activate"
    COMPLETE = "complete"
    AUTO_COLLAPSE = "auto_collapse"
