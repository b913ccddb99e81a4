"""
Pipeline module for the vehicle detection batch.

The pipeline orchestrates the full processing flow:
- Frame acquisition from observation sources
- Background-subtraction detection
- Artifact export (via ExportStage)
- Evaluation against ground truth (via EvaluateStage)
"""

from .engine import PipelineEngine, PipelineConfig, PipelineStats, create_engine_from_config
from .stages.evaluate import EvaluateStage, EvaluateStageConfig, create_evaluate_stage, evaluate_results_dir
from .stages.export import ExportStage, ExportStageConfig, create_export_stage

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
    "EvaluateStage",
    "EvaluateStageConfig",
    "create_evaluate_stage",
    "evaluate_results_dir",
    "ExportStage",
    "ExportStageConfig",
    "create_export_stage",
]
