"""
Evaluate stage for scoring detections against ground truth.

For each image the stage loads <annotations_dir>/<stem>.xml, matches the
detections against it and records the per-image metrics. Images without an
annotation file are reported but not scored. finalize() aggregates the
recorded metrics and writes the evaluation report.
"""

from __future__ import annotations

import logging
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import cv2
import numpy as np

from models.config import Config, RenderConfig
from models.detection import Detection
from models.frame import FrameData
from models.metrics import EvaluationMetrics
from evaluation.annotations import normalize_labels, parse_detection_results, parse_voc_xml
from evaluation.metrics import aggregate_metrics, evaluate_detections
from evaluation.report import generate_evaluation_report
from evaluation.visualize import visualize_evaluation
from observation.image_source import IMAGE_EXTENSIONS
from .export import save_image


VISUALIZATION_SUBDIR = "visualizations"


@dataclass
class EvaluateStageConfig:
    """
    Configuration for the evaluate stage.

    Attributes:
        annotations_dir: Directory of Pascal VOC files named after the images.
        report_dir: Directory for the CSV, summary and visualizations.
        iou_threshold: Minimum IoU for a true positive.
        label_map: Ground-truth label renames applied before matching.
        visualize: Write GT/detection overlays per evaluated image.
        render: Drawing settings for overlays.
    """
    annotations_dir: str = "data/annotations"
    report_dir: str = "output/evaluation"
    iou_threshold: float = 0.5
    label_map: Dict[str, str] = field(default_factory=dict)
    visualize: bool = True
    render: RenderConfig = field(default_factory=RenderConfig)


class EvaluateStage:
    """
    Pipeline stage that evaluates each image as it is processed.

    Example:
        stage = create_evaluate_stage(config)
        for frame_data, detections in batch:
            stage.process(frame_data, detections)
        overall = stage.finalize()
    """

    def __init__(self, config: EvaluateStageConfig, logger: Optional[logging.Logger] = None):
        self._config = config
        self.logger = logger or logging.getLogger(__name__)
        self.per_image: "OrderedDict[str, EvaluationMetrics]" = OrderedDict()
        self.missing_ground_truth: List[str] = []

    @property
    def config(self) -> EvaluateStageConfig:
        return self._config

    @property
    def images_evaluated(self) -> int:
        return len(self.per_image)

    def annotation_path(self, name: str) -> str:
        return os.path.join(self._config.annotations_dir, f"{name}.xml")

    def evaluate(
        self,
        name: str,
        detections: List[Detection],
        frame: Optional[np.ndarray] = None,
    ) -> Optional[EvaluationMetrics]:
        """
        Score one image's detections.

        Args:
            name: Image stem, used to find the annotation file.
            detections: Detections for the image.
            frame: The image, used for the visualization if enabled.

        Returns:
            The image's metrics, or None if it has no annotation file.
        """
        xml_path = self.annotation_path(name)
        if not os.path.isfile(xml_path):
            self.logger.warning(f"No ground truth for {name} ({xml_path}), skipping evaluation")
            self.missing_ground_truth.append(name)
            return None

        ground_truth = normalize_labels(parse_voc_xml(xml_path, self.logger), self._config.label_map)
        metrics = evaluate_detections(detections, ground_truth, self._config.iou_threshold)
        self.per_image[name] = metrics

        self.logger.debug(
            f"Evaluated {name}: TP={metrics.true_positives} FP={metrics.false_positives} "
            f"FN={metrics.false_negatives} F1={metrics.f1:.3f}"
        )

        if self._config.visualize and frame is not None:
            overlay = visualize_evaluation(frame, detections, ground_truth, self._config.render)
            path = os.path.join(self._config.report_dir, VISUALIZATION_SUBDIR, f"{name}.jpg")
            save_image(path, overlay, self.logger)

        return metrics

    def process(
        self,
        frame_data: FrameData,
        detections: List[Detection],
        result=None,
    ) -> Optional[EvaluationMetrics]:
        """Evaluate a processed frame (stage interface)."""
        return self.evaluate(frame_data.name, detections, frame_data.frame)

    def finalize(self) -> Optional[EvaluationMetrics]:
        """
        Aggregate the recorded metrics and write the report.

        Returns:
            Overall metrics, or None if no image had ground truth.
        """
        if self.missing_ground_truth:
            self.logger.info(f"{len(self.missing_ground_truth)} images had no ground truth")

        if not self.per_image:
            self.logger.warning("No images were evaluated; report not written")
            return None

        overall = aggregate_metrics(self.per_image.values())
        try:
            generate_evaluation_report(self._config.report_dir, self.per_image, overall, self.logger)
        except OSError as e:
            self.logger.error(f"Failed to write evaluation report to {self._config.report_dir}: {e}")

        self.logger.info(
            f"Overall: images={self.images_evaluated}, precision={overall.precision:.4f}, "
            f"recall={overall.recall:.4f}, f1={overall.f1:.4f}, "
            f"count_error={overall.count_error}"
        )
        return overall


def find_image(images_dir: str, name: str) -> Optional[str]:
    """Path of the image called <name> with a known extension, if present."""
    for ext in IMAGE_EXTENSIONS:
        for candidate in (name + ext, name + ext.upper()):
            path = os.path.join(images_dir, candidate)
            if os.path.isfile(path):
                return path
    return None


def evaluate_results_dir(
    results_dir: str,
    stage: EvaluateStage,
    images_dir: Optional[str] = None,
) -> Optional[EvaluationMetrics]:
    """
    Evaluate previously written detection records.

    Every <results_dir>/<stem>.txt is scored against <annotations_dir>/<stem>.xml.
    When images_dir is given and visualization is enabled, the matching input
    image is loaded for the overlay.

    Raises:
        RuntimeError: If results_dir does not exist.
    """
    if not os.path.isdir(results_dir):
        raise RuntimeError(f"Results directory not found: {results_dir}")

    names = sorted(
        os.path.splitext(f)[0] for f in os.listdir(results_dir) if f.endswith(".txt")
    )
    stage.logger.info(f"Evaluating {len(names)} result files from {results_dir}")

    for name in names:
        detections = parse_detection_results(os.path.join(results_dir, f"{name}.txt"), stage.logger)

        frame = None
        if images_dir and stage.config.visualize:
            image_path = find_image(images_dir, name)
            if image_path is not None:
                frame = cv2.imread(image_path, cv2.IMREAD_COLOR)
            if frame is None:
                stage.logger.warning(f"No readable image for {name} in {images_dir}; skipping visualization")

        stage.evaluate(name, detections, frame)

    return stage.finalize()


def create_evaluate_stage(config: Config, logger: Optional[logging.Logger] = None) -> EvaluateStage:
    """
    Factory function to create an EvaluateStage from the application config.

    Args:
        config: Typed application config.
        logger: Logger to report through.
    """
    stage_config = EvaluateStageConfig(
        annotations_dir=config.paths.annotations_dir,
        report_dir=config.paths.report_dir,
        iou_threshold=config.evaluation.iou_threshold,
        label_map=dict(config.evaluation.label_map),
        visualize=config.evaluation.visualize,
        render=config.render,
    )
    return EvaluateStage(stage_config, logger=logger)
