"""
Background-subtraction detector adapter.

Wraps VehicleDetector and presents it via the Detector interface.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from models.detection import Detection, detections_from_boxes
from .base import Detector
from .vehicle import DetectionResult, VehicleDetector


class BgSubDetector(Detector):
    def __init__(self, vehicle_detector: VehicleDetector):
        self._vehicle_detector = vehicle_detector
        self.last_result: Optional[DetectionResult] = None

    @property
    def label(self) -> str:
        return self._vehicle_detector.config.label

    def detect(self, frame: np.ndarray) -> List[Detection]:
        self.last_result = self._vehicle_detector.detect(frame)
        return detections_from_boxes(self.last_result.boxes, label=self.label)

    def reset(self) -> None:
        self._vehicle_detector.reset_background_model()
        self.last_result = None
