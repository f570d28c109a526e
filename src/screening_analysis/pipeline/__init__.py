from screening_analysis.pipeline.config import (
    PipelineConfig,
    load_pipeline_config,
)
from screening_analysis.pipeline.runner import AnalysisPipeline, PipelineResult

__all__ = [
    "AnalysisPipeline",
    "PipelineConfig",
    "PipelineResult",
    "load_pipeline_config",
]
