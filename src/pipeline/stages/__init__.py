"""
Pipeline stages for the vehicle detection batch.

Each stage handles one concern for every processed image:
- export: annotated images, detection records and debug masks
- evaluate: scoring against ground truth and the evaluation report
"""

from .evaluate import EvaluateStage, EvaluateStageConfig, create_evaluate_stage, evaluate_results_dir
from .export import ExportStage, ExportStageConfig, create_export_stage, save_image

__all__ = [
    "EvaluateStage",
    "EvaluateStageConfig",
    "create_evaluate_stage",
    "evaluate_results_dir",
    "ExportStage",
    "ExportStageConfig",
    "create_export_stage",
    "save_image",
]
