"""
Contour extraction from binary foreground masks.
"""

from __future__ import annotations

from typing import List

import cv2
import numpy as np


# (N, 1, 2) int32 array of boundary points, OpenCV layout
Contour = np.ndarray


def extract_external_contours(mask: np.ndarray) -> List[Contour]:
    """
    Trace the outer boundary of every connected foreground region.

    Holes and nested contours are not returned. Boundary points are
    compressed to segment end points, which keeps bounding rectangle,
    polygon area and convex hull unchanged.

    Args:
        mask: 2D uint8 mask, non-zero pixels are foreground.

    Returns:
        List of contours, empty if the mask has no foreground.
    """
    if mask.ndim != 2:
        raise ValueError("Contour extraction expects a 2D mask")
    if mask.dtype != np.uint8:
        mask = mask.astype(np.uint8)
    if not mask.any():
        return []

    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)
