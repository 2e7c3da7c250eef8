"""Configuration schema for the extraction pipeline, the single source of truth.

This module defines the Pydantic models that describe one pipeline:
the stage definitions the runner executes and the user-facing settings
that decide which stages exist and what they report.  The backend imports
these directly; no duplication.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Section 1: Stage definitions
# ---------------------------------------------------------------------------

class StageDetail(BaseModel):
    """Descriptive text shown while a stage is expanded."""

    model_config = ConfigDict(frozen=True)

    input: str = Field(default="", description="What the stage consumes.")
    output: str = Field(default="", description="What the stage produces.")
    metrics: str = Field(default="", description="Headline metrics for the stage.")


class StageDefinition(BaseModel):
    """One ordered unit of work in the pipeline."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0, description="Unique id; ascending id = execution order.")
    name: str = Field(min_length=1, description="Display name.")
    short_description: str = Field(default="", description="One-line summary.")
    nominal_duration_ms: int = Field(
        ge=0,
        description="How long the stage stays active before it completes.",
    )
    detail: StageDetail = Field(default_factory=StageDetail)


# ---------------------------------------------------------------------------
# Section 2: De-identification
# ---------------------------------------------------------------------------

class DeidSettings(BaseModel):
    """PHI removal before any text leaves the host."""

    enabled: bool = Field(
        default=True,
        description="Required for external inference. Optional for local models.",
    )
    method: Literal["placeholder", "asterisk", "philter"] = Field(
        default="placeholder",
        description="placeholder → [NAME]; asterisk → *****; philter → surrogate values.",
    )


# ---------------------------------------------------------------------------
# Section 3: Preprocessing
# ---------------------------------------------------------------------------

class PreprocessingSettings(BaseModel):
    """Text clean-up operations applied before snippet extraction."""

    strip_whitespace: bool = Field(default=True, description="Collapse runs of spaces.")
    normalize_spacing: bool = Field(default=True, description="Collapse runs of blank lines.")
    remove_special_chars: bool = Field(default=False, description="Drop punctuation such as ':' and '/'.")

    def enabled_operations(self) -> list[str]:
        """Names of the operations switched on, in application order."""
        ops = [
            ("strip_whitespace", self.strip_whitespace),
            ("normalize_spacing", self.normalize_spacing),
            ("remove_special_chars", self.remove_special_chars),
        ]
        return [name for name, on in ops if on]


# ---------------------------------------------------------------------------
# Section 4: Inference routing
# ---------------------------------------------------------------------------

class InferenceSettings(BaseModel):
    """Which model answers the extraction prompts."""

    routing: Literal["auto", "local", "external"] = Field(
        default="auto",
        description="auto picks external when de-identification is on, else local.",
    )
    local_model: str = Field(default="Gemma 7B", min_length=1)
    external_model: str = Field(default="gemini-2.5-pro", min_length=1)


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class PipelineSettings(BaseModel):
    """Complete user-facing configuration of one pipeline."""

    deid: DeidSettings = Field(default_factory=DeidSettings)
    preprocessing: PreprocessingSettings = Field(default_factory=PreprocessingSettings)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    collapse_delay_ms: int = Field(
        default=2000,
        ge=0,
        description="How long a completed stage stays expanded before auto-collapse.",
    )

    @model_validator(mode="after")
    def external_requires_deid(self) -> PipelineSettings:
        if self.inference.routing == "external" and not self.deid.enabled:
            raise ValueError(
                "External inference requires de-identification to be enabled."
            )
        return self

    def resolved_route(self) -> Literal["local", "external"]:
        """Collapse ``auto`` into a concrete route."""
        if self.inference.routing == "auto":
            return "external" if self.deid.enabled else "local"
        return self.inference.routing

    def resolved_model(self) -> str:
        if self.resolved_route() == "external":
            return self.inference.external_model
        return self.inference.local_model
