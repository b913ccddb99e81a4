"""
Typed models for the vehicle detection and evaluation application.

Use the adapter functions to convert between dicts/tuples and models.
"""

from .frame import FrameData
from .detection import Annotation, BoundingBox, Detection, DEFAULT_LABEL
from .metrics import EvaluationMetrics, METRIC_FIELDS
from .config import (
    Config,
    BackgroundConfig,
    MaskConfig,
    MorphologyConfig,
    FilterConfig,
    DetectionConfig,
    EvaluationConfig,
    PathsConfig,
    RenderConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Annotation",
    "BoundingBox",
    "Detection",
    "DEFAULT_LABEL",
    # Evaluation
    "EvaluationMetrics",
    "METRIC_FIELDS",
    # Config
    "Config",
    "BackgroundConfig",
    "MaskConfig",
    "MorphologyConfig",
    "FilterConfig",
    "DetectionConfig",
    "EvaluationConfig",
    "PathsConfig",
    "RenderConfig",
]
