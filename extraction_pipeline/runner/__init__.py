"""Pipeline execution state machine and the types it hands out."""

from extraction_pipeline.runner.pipeline_runner import PipelineRunner
from extraction_pipeline.runner.scoring import FinalScore, constant_score
from extraction_pipeline.runner.state import RunSnapshot, StageView

__all__ = ["FinalScore", "PipelineRunner", "RunSnapshot", "StageView", "constant_score"]
