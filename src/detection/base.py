"""
Detection interfaces.

Kept lightweight so callers (pipeline stages, tests) only depend on
"frame in, detections out".
"""

from __future__ import annotations

from typing import List

import numpy as np

from models.detection import Detection


class Detector:
    """Detector interface returning detections in pixel-space."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        raise NotImplementedError

    def reset(self) -> None:
        """Start a new stream. Stateless detectors need not override this."""
