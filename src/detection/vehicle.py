"""
Vehicle detection module for identifying vehicles in traffic-camera frames.

Classical pipeline: background subtraction, shadow removal, morphological
closing, external contour extraction and geometric filtering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from models.config import DetectionConfig
from models.detection import BoundingBox
from .background import BackgroundModel, create_background_model
from .contours import Contour, extract_external_contours
from .geometry import GeometricFilter
from .mask import binarize, close


@dataclass
class DetectionResult:
    """
    Output of one detector call, with every intermediate stage kept for debugging.

    Attributes:
        gray: Grayscale frame fed to the background model.
        raw_mask: Tri-state mask from the background model (0/127/255).
        binary_mask: Mask after shadow removal.
        cleaned_mask: Mask after morphological closing.
        contours: External contours of the cleaned mask.
        boxes: Bounding boxes accepted by the geometric filter.
    """
    gray: np.ndarray
    raw_mask: np.ndarray
    binary_mask: np.ndarray
    cleaned_mask: np.ndarray
    contours: List[Contour] = field(default_factory=list)
    boxes: List[BoundingBox] = field(default_factory=list)


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR/BGRA frame to grayscale; 2D frames pass through."""
    if frame.ndim == 2:
        return frame
    if frame.ndim == 3 and frame.shape[2] == 1:
        return frame[:, :, 0]
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    raise ValueError(f"Unsupported frame shape {frame.shape}")


class VehicleDetector:
    """Detect vehicles using background subtraction and contour analysis."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        background_model: Optional[BackgroundModel] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the vehicle detector.

        Args:
            config: Detection configuration (defaults used when omitted).
            background_model: Model for this detector's stream; created from
                              config.background when omitted.
            logger: Logger to report through.
        """
        self.config = config or DetectionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.bg_model = background_model or create_background_model(self.config.background)
        self.geometric_filter = GeometricFilter(self.config.filter)
        self.frame_count = 0

        self.logger.info("Vehicle detector initialized")

    def detect(self, frame: np.ndarray) -> DetectionResult:
        """
        Detect vehicles in the frame.

        Args:
            frame: Input frame (BGR or grayscale).

        Returns:
            DetectionResult with accepted boxes and intermediate masks.
        """
        self.frame_count += 1
        cfg = self.config

        gray = to_gray(frame)
        raw_mask = self.bg_model.apply(gray)

        # Shadows (127) fall below the threshold and are dropped
        binary_mask = binarize(raw_mask, cfg.mask.threshold, cfg.mask.max_value)
        cleaned_mask = close(binary_mask, cfg.morphology.kernel_shape, cfg.morphology.kernel_size)

        contours = extract_external_contours(cleaned_mask)
        boxes = self.geometric_filter.filter_all(contours)

        self.logger.debug(
            f"Frame {self.frame_count}: {len(contours)} contours, {len(boxes)} vehicles"
        )
        return DetectionResult(
            gray=gray,
            raw_mask=raw_mask,
            binary_mask=binary_mask,
            cleaned_mask=cleaned_mask,
            contours=contours,
            boxes=boxes,
        )

    def reset_background_model(self) -> None:
        """Reset the background model; the next frame starts a new stream."""
        self.bg_model.reset()
        self.frame_count = 0
        self.logger.debug("Background model reset")
