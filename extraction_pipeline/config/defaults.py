"""Default pipeline configuration and the stage catalog it produces.

Provides the seven-stage clinical extraction pipeline used by the playground.
All values are explicit, no hidden magic.
"""

from __future__ import annotations

from extraction_pipeline.config.catalog import StageCatalog
from extraction_pipeline.config.schema import (
    PipelineSettings,
    StageDefinition,
    StageDetail,
)

DEID_STAGE_ID = 1
PREPROCESSING_STAGE_ID = 2
INFERENCE_STAGE_ID = 4

_DEID_METHOD_LABELS = {
    "placeholder": "placeholder tokens",
    "asterisk": "asterisk masking",
    "philter": "Philter surrogates",
}

_DEFAULT_STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(
        id=DEID_STAGE_ID,
        name="De-Identification",
        short_description="Remove PHI",
        nominal_duration_ms=300,
        detail=StageDetail(
            input="Raw clinical note with PHI",
            output="De-identified note with masked entities",
            metrics="142 tokens processed, 8 entities masked",
        ),
    ),
    StageDefinition(
        id=PREPROCESSING_STAGE_ID,
        name="Preprocessing",
        short_description="Clean & normalize",
        nominal_duration_ms=100,
        detail=StageDetail(
            input="De-identified clinical note",
            output="Cleaned and normalized text",
            metrics="Whitespace normalized, special chars removed",
        ),
    ),
    StageDefinition(
        id=3,
        name="Snippet Extraction",
        short_description="Extract sections",
        nominal_duration_ms=200,
        detail=StageDetail(
            input="Preprocessed clinical note",
            output="Relevant snippets for each field",
            metrics="12 snippets extracted across 8 fields",
        ),
    ),
    StageDefinition(
        id=INFERENCE_STAGE_ID,
        name="LLM Inference",
        short_description="AI extraction",
        nominal_duration_ms=2500,
        detail=StageDetail(
            input="Field-specific snippets + prompts",
            output="Structured JSON with extracted fields",
            metrics="Model: gemini-2.5-pro, 1,247 tokens, 2.3s",
        ),
    ),
    StageDefinition(
        id=5,
        name="Validation",
        short_description="Verify output",
        nominal_duration_ms=150,
        detail=StageDetail(
            input="Raw LLM output JSON",
            output="Validated and sanitized data",
            metrics="All fields passed validation checks",
        ),
    ),
    StageDefinition(
        id=6,
        name="Cache Storage",
        short_description="Store results",
        nominal_duration_ms=50,
        detail=StageDetail(
            input="Validated extraction results",
            output="Cached for future use",
            metrics="Stored in Redis, 45ms write time",
        ),
    ),
    StageDefinition(
        id=7,
        name="mRS Calculation",
        short_description="Final score",
        nominal_duration_ms=100,
        detail=StageDetail(
            input="All extracted clinical fields",
            output="Modified Rankin Scale score",
            metrics="mRS: 3 (Moderate disability)",
        ),
    ),
)


def default_settings() -> PipelineSettings:
    """Return a complete, valid default configuration."""
    return PipelineSettings()


def default_stages() -> tuple[StageDefinition, ...]:
    """The seven stages exactly as the playground ships them."""
    return _DEFAULT_STAGES


def build_catalog(settings: PipelineSettings | None = None) -> StageCatalog:
    """Derive the stage catalog a runner should execute for *settings*.

    The de-identification stage is dropped when it is switched off, and the
    preprocessing and inference details describe the chosen operations and
    the model the routing resolves to.
    """
    settings = settings or default_settings()
    stages: list[StageDefinition] = []

    for stage in _DEFAULT_STAGES:
        if stage.id == DEID_STAGE_ID:
            if not settings.deid.enabled:
                continue
            method = _DEID_METHOD_LABELS[settings.deid.method]
            stage = stage.model_copy(update={
                "detail": stage.detail.model_copy(update={
                    "output": f"De-identified note ({method})",
                }),
            })
        elif stage.id == PREPROCESSING_STAGE_ID:
            ops = settings.preprocessing.enabled_operations()
            metrics = ", ".join(op.replace("_", " ") for op in ops) if ops else "No operations enabled"
            stage = stage.model_copy(update={
                "detail": stage.detail.model_copy(update={"metrics": metrics}),
            })
        elif stage.id == INFERENCE_STAGE_ID:
            route = settings.resolved_route()
            model = settings.resolved_model()
            stage = stage.model_copy(update={
                "detail": stage.detail.model_copy(update={
                    "metrics": f"Model: {model} ({route}), 1,247 tokens, 2.3s",
                }),
            })
        stages.append(stage)

    return StageCatalog(stages)


def default_catalog() -> StageCatalog:
    return build_catalog(default_settings())
