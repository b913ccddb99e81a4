"""
Shape descriptors and geometric acceptance of vehicle candidates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import cv2
import numpy as np

from models.config import FilterConfig
from models.detection import BoundingBox


@dataclass(frozen=True)
class ShapeDescriptors:
    """
    Geometry of one contour.

    Attributes:
        bbox: Axis-aligned bounding rectangle of the contour points.
        area: Bounding rectangle area (width * height).
        contour_area: Enclosed polygon area.
        aspect_ratio: width / height.
        extent: contour_area / area.
        hull_area: Area of the convex hull of the contour points.
        solidity: contour_area / hull_area (0 when the hull is degenerate).
    """
    bbox: BoundingBox
    area: int
    contour_area: float
    aspect_ratio: float
    extent: float
    hull_area: float
    solidity: float


def describe(contour: np.ndarray) -> ShapeDescriptors:
    """Compute shape descriptors for a contour."""
    x, y, w, h = cv2.boundingRect(contour)
    bbox = BoundingBox(x=int(x), y=int(y), width=int(w), height=int(h))
    area = bbox.area
    contour_area = float(cv2.contourArea(contour))
    hull_area = float(cv2.contourArea(cv2.convexHull(contour)))

    aspect_ratio = w / h if h > 0 else 0.0
    extent = contour_area / area if area > 0 else 0.0
    solidity = contour_area / hull_area if hull_area > 0 else 0.0

    return ShapeDescriptors(
        bbox=bbox,
        area=area,
        contour_area=contour_area,
        aspect_ratio=aspect_ratio,
        extent=extent,
        hull_area=hull_area,
        solidity=solidity,
    )


class GeometricFilter:
    """
    Accepts or rejects contours as vehicle candidates.

    Every predicate must pass:
    - min_area <= bbox area <= max_area
    - min_aspect_ratio <= width / height <= max_aspect_ratio
    - extent >= min_extent
    - solidity >= min_solidity

    Degenerate geometry (empty box, zero hull area) is rejected.
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()

    def accepts(self, shape: ShapeDescriptors) -> bool:
        """Check the descriptors against all thresholds."""
        cfg = self.config
        if not shape.bbox.is_valid or shape.hull_area <= 0:
            return False
        if shape.area < cfg.min_area or shape.area > cfg.max_area:
            return False
        if shape.aspect_ratio < cfg.min_aspect_ratio or shape.aspect_ratio > cfg.max_aspect_ratio:
            return False
        if shape.extent < cfg.min_extent:
            return False
        if shape.solidity < cfg.min_solidity:
            return False
        return True

    def filter(self, contour: np.ndarray) -> Optional[BoundingBox]:
        """
        Return the contour's bounding box if it is a vehicle candidate.

        Returns:
            BoundingBox when accepted, None when rejected.
        """
        if contour is None or len(contour) == 0:
            return None
        shape = describe(contour)
        if not self.accepts(shape):
            return None
        return shape.bbox

    def filter_all(self, contours: List[np.ndarray]) -> List[BoundingBox]:
        """Apply filter() to every contour, keeping accepted boxes in input order."""
        boxes: List[BoundingBox] = []
        for contour in contours:
            box = self.filter(contour)
            if box is not None:
                boxes.append(box)
        logging.debug(f"Geometric filter accepted {len(boxes)}/{len(contours)} contours")
        return boxes
