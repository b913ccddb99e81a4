"""
Export stage for writing per-image detection artifacts.

For every processed image this stage writes:
- the annotated image (detections boxed and labeled)
- the detection records ("<label> <x> <y> <width> <height>" per line)
- optionally, debug images of the grayscale frame and intermediate masks

I/O failures are logged and never stop the batch.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from models.config import Config, RenderConfig
from models.detection import Detection
from models.frame import FrameData
from detection.vehicle import DetectionResult
from evaluation.annotations import write_detection_results
from evaluation.visualize import draw_detections


def save_image(path: str, image: np.ndarray, logger: Optional[logging.Logger] = None) -> bool:
    """
    Write an image, creating its directory first.

    Returns:
        True if the file was written, False otherwise (a warning is logged).
    """
    log = logger or logging.getLogger(__name__)
    try:
        out_dir = os.path.dirname(path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        if cv2.imwrite(path, image):
            return True
        log.warning(f"Failed to write image: {path}")
    except (OSError, cv2.error) as e:
        log.warning(f"Failed to write image {path}: {e}")
    return False


@dataclass
class ExportStageConfig:
    """
    Configuration for the export stage.

    Attributes:
        images_out_dir: Directory for annotated images.
        results_dir: Directory for per-image detection records.
        debug_dir: Directory for gray/mask/morph debug images (None disables them).
        render: Drawing settings for annotated images.
    """
    images_out_dir: str = "output/images"
    results_dir: str = "output/results"
    debug_dir: Optional[str] = "debug_output"
    render: RenderConfig = field(default_factory=RenderConfig)


class ExportStage:
    """
    Pipeline stage that persists detector output for each image.

    Example:
        stage = create_export_stage(config)
        stage.process(frame_data, detections, result)
    """

    def __init__(self, config: ExportStageConfig, logger: Optional[logging.Logger] = None):
        self._config = config
        self.logger = logger or logging.getLogger(__name__)
        self.images_written = 0
        self.failures: List[str] = []

    @property
    def config(self) -> ExportStageConfig:
        return self._config

    def result_path(self, name: str) -> str:
        return os.path.join(self._config.results_dir, f"{name}.txt")

    def process(
        self,
        frame_data: FrameData,
        detections: List[Detection],
        result: Optional[DetectionResult] = None,
    ) -> None:
        """
        Write the artifacts for one image.

        Args:
            frame_data: The decoded image.
            detections: Detections found in it.
            result: Intermediate detector output, used for debug images.
        """
        name = frame_data.name

        txt_path = self.result_path(name)
        try:
            write_detection_results(txt_path, detections)
        except OSError as e:
            self.logger.warning(f"Failed to write detection results {txt_path}: {e}")
            self.failures.append(txt_path)

        annotated = draw_detections(frame_data.frame, detections, self._config.render)
        image_path = os.path.join(self._config.images_out_dir, f"{name}.jpg")
        if save_image(image_path, annotated, self.logger):
            self.images_written += 1
        else:
            self.failures.append(image_path)

        if self._config.debug_dir and result is not None:
            self._save_debug(name, result)

        self.logger.debug(f"Exported {name}: {len(detections)} detections")

    def _save_debug(self, name: str, result: DetectionResult) -> None:
        debug_images = (
            ("gray", result.gray),
            ("mask", result.raw_mask),
            ("morph", result.cleaned_mask),
        )
        for subdir, image in debug_images:
            path = os.path.join(self._config.debug_dir, subdir, f"{name}.jpg")
            if not save_image(path, image, self.logger):
                self.failures.append(path)

    def finalize(self) -> None:
        """Log what the stage wrote."""
        self.logger.info(
            f"Export finished: {self.images_written} annotated images in "
            f"{self._config.images_out_dir}, results in {self._config.results_dir}"
        )
        if self.failures:
            self.logger.warning(f"{len(self.failures)} artifacts could not be written")


def create_export_stage(config: Config, logger: Optional[logging.Logger] = None) -> ExportStage:
    """
    Factory function to create an ExportStage from the application config.

    Args:
        config: Typed application config.
        logger: Logger to report through.
    """
    paths = config.paths
    stage_config = ExportStageConfig(
        images_out_dir=paths.images_out_dir,
        results_dir=paths.results_dir,
        debug_dir=paths.debug_dir if paths.save_debug else None,
        render=config.render,
    )
    return ExportStage(stage_config, logger=logger)
