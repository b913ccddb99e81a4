"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class BackgroundConfig:
    """Background model configuration."""
    backend: str = "gmm"
    scope: str = "sequence"
    history: int = 500
    var_threshold: float = 16.0
    detect_shadows: bool = True
    shadow_ratio: float = 0.5
    n_mixtures: int = 5
    background_ratio: float = 0.9
    var_init: float = 15.0
    var_min: float = 4.0
    var_max: float = 75.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BackgroundConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "gmm"),
            scope=d.get("scope", "sequence"),
            history=d.get("history", 500),
            var_threshold=d.get("var_threshold", 16.0),
            detect_shadows=d.get("detect_shadows", True),
            shadow_ratio=d.get("shadow_ratio", 0.5),
            n_mixtures=d.get("n_mixtures", 5),
            background_ratio=d.get("background_ratio", 0.9),
            var_init=d.get("var_init", 15.0),
            var_min=d.get("var_min", 4.0),
            var_max=d.get("var_max", 75.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "scope": self.scope,
            "history": self.history,
            "var_threshold": self.var_threshold,
            "detect_shadows": self.detect_shadows,
            "shadow_ratio": self.shadow_ratio,
            "n_mixtures": self.n_mixtures,
            "background_ratio": self.background_ratio,
            "var_init": self.var_init,
            "var_min": self.var_min,
            "var_max": self.var_max,
        }


@dataclass
class MaskConfig:
    """Foreground mask binarization."""
    threshold: int = 200
    max_value: int = 255

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MaskConfig":
        return cls(
            threshold=d.get("threshold", 200),
            max_value=d.get("max_value", 255),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"threshold": self.threshold, "max_value": self.max_value}


@dataclass
class MorphologyConfig:
    """Morphological closing."""
    kernel_shape: str = "rect"
    kernel_size: int = 5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MorphologyConfig":
        return cls(
            kernel_shape=d.get("kernel_shape", "rect"),
            kernel_size=d.get("kernel_size", 5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"kernel_shape": self.kernel_shape, "kernel_size": self.kernel_size}


@dataclass
class FilterConfig:
    """Geometric acceptance thresholds for vehicle candidates."""
    min_area: int = 1200
    max_area: int = 100000
    min_aspect_ratio: float = 0.4
    max_aspect_ratio: float = 4.0
    min_extent: float = 0.35
    min_solidity: float = 0.6

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilterConfig":
        return cls(
            min_area=d.get("min_area", 1200),
            max_area=d.get("max_area", 100000),
            min_aspect_ratio=d.get("min_aspect_ratio", 0.4),
            max_aspect_ratio=d.get("max_aspect_ratio", 4.0),
            min_extent=d.get("min_extent", 0.35),
            min_solidity=d.get("min_solidity", 0.6),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_area": self.min_area,
            "max_area": self.max_area,
            "min_aspect_ratio": self.min_aspect_ratio,
            "max_aspect_ratio": self.max_aspect_ratio,
            "min_extent": self.min_extent,
            "min_solidity": self.min_solidity,
        }


@dataclass
class DetectionConfig:
    """Detection pipeline configuration."""
    label: str = "vehicle"
    background: BackgroundConfig = field(default_factory=BackgroundConfig)
    mask: MaskConfig = field(default_factory=MaskConfig)
    morphology: MorphologyConfig = field(default_factory=MorphologyConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            label=d.get("label", "vehicle"),
            background=BackgroundConfig.from_dict(d.get("background") or {}),
            mask=MaskConfig.from_dict(d.get("mask") or {}),
            morphology=MorphologyConfig.from_dict(d.get("morphology") or {}),
            filter=FilterConfig.from_dict(d.get("filter") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "background": self.background.to_dict(),
            "mask": self.mask.to_dict(),
            "morphology": self.morphology.to_dict(),
            "filter": self.filter.to_dict(),
        }


@dataclass
class EvaluationConfig:
    """Evaluation configuration."""
    enabled: bool = True
    iou_threshold: float = 0.5
    label_map: Dict[str, str] = field(default_factory=dict)
    visualize: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EvaluationConfig":
        return cls(
            enabled=d.get("enabled", True),
            iou_threshold=d.get("iou_threshold", 0.5),
            label_map=dict(d.get("label_map") or {}),
            visualize=d.get("visualize", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "iou_threshold": self.iou_threshold,
            "label_map": dict(self.label_map),
            "visualize": self.visualize,
        }


@dataclass
class PathsConfig:
    """Input and output locations."""
    images_dir: str = "data/images"
    annotations_dir: str = "data/annotations"
    output_dir: str = "output"
    debug_dir: str = "debug_output"
    save_debug: bool = True

    @property
    def images_out_dir(self) -> str:
        return f"{self.output_dir}/images"

    @property
    def results_dir(self) -> str:
        return f"{self.output_dir}/results"

    @property
    def report_dir(self) -> str:
        return f"{self.output_dir}/evaluation"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PathsConfig":
        return cls(
            images_dir=d.get("images_dir", "data/images"),
            annotations_dir=d.get("annotations_dir", "data/annotations"),
            output_dir=d.get("output_dir", "output"),
            debug_dir=d.get("debug_dir", "debug_output"),
            save_debug=d.get("save_debug", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "images_dir": self.images_dir,
            "annotations_dir": self.annotations_dir,
            "output_dir": self.output_dir,
            "debug_dir": self.debug_dir,
            "save_debug": self.save_debug,
        }


@dataclass
class RenderConfig:
    """Drawing parameters for annotated outputs. Colors are BGR."""
    bbox_thickness: int = 2
    font_scale: float = 0.5
    font_thickness: int = 1
    detection_color: List[int] = field(default_factory=lambda: [0, 255, 0])
    ground_truth_color: List[int] = field(default_factory=lambda: [255, 0, 0])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RenderConfig":
        return cls(
            bbox_thickness=d.get("bbox_thickness", 2),
            font_scale=d.get("font_scale", 0.5),
            font_thickness=d.get("font_thickness", 1),
            detection_color=d.get("detection_color", [0, 255, 0]),
            ground_truth_color=d.get("ground_truth_color", [255, 0, 0]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox_thickness": self.bbox_thickness,
            "font_scale": self.font_scale,
            "font_thickness": self.font_thickness,
            "detection_color": self.detection_color,
            "ground_truth_color": self.ground_truth_color,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    log_path: str = "logs/vehicle_eval.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            evaluation=EvaluationConfig.from_dict(d.get("evaluation") or {}),
            paths=PathsConfig.from_dict(d.get("paths") or {}),
            render=RenderConfig.from_dict(d.get("render") or {}),
            log_path=d.get("log_path", "logs/vehicle_eval.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging the effective config)."""
        return {
            "detection": self.detection.to_dict(),
            "evaluation": self.evaluation.to_dict(),
            "paths": self.paths.to_dict(),
            "render": self.render.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
