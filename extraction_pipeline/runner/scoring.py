"""Final score computation.

The runner asks a score function for the final result once every stage has
completed.  The shipped default returns a fixed modified Rankin Scale value;
a real deployment would derive it from the extracted clinical fields and
plug its own function in.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from extraction_pipeline.config.catalog import StageCatalog
from extraction_pipeline.config.schema import StageDefinition
from extraction_pipeline.core.types import StageID, StageOutcome

# Modified Rankin Scale wording, 0 (no symptoms) to 6 (dead).
MRS_LABELS: dict[int, str] = {
    0: "No symptoms",
    1: "No significant disability",
    2: "Slight disability",
    3: "Moderate disability",
    4: "Moderately severe disability",
    5: "Severe disability",
    6: "Dead",
}

DEFAULT_MRS = 3


@dataclass(frozen=True, slots=True)
class FinalScore:
    value: int
    label: str

    def __post_init__(self) -> None:
        if self.value not in MRS_LABELS:
            raise ValueError(f"mRS score must be in 0..6, got {self.value}")

    @classmethod
    def from_value(cls, value: int) -> FinalScore:
        return cls(value=value, label=MRS_LABELS.get(value, ""))

    def to_dict(self) -> dict:
        return {"value": self.value, "label": self.label}


ScoreFunction = Callable[[Sequence[StageID], StageCatalog], FinalScore]
OutcomeFunction = Callable[[StageDefinition], StageOutcome]


def constant_score(
    completed_stage_ids: Sequence[StageID],
    catalog: StageCatalog,
) -> FinalScore:
    """Placeholder scorer: mRS 3 regardless of what the stages produced."""
    return FinalScore.from_value(DEFAULT_MRS)


def always_succeeds(stage: StageDefinition) -> StageOutcome:
    return StageOutcome.SUCCEEDED
