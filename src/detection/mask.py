"""
Foreground mask post-processing: binarization and morphological closing.
"""

from __future__ import annotations

import cv2
import numpy as np


KERNEL_SHAPES = {
    "rect": cv2.MORPH_RECT,
    "ellipse": cv2.MORPH_ELLIPSE,
    "cross": cv2.MORPH_CROSS,
}


def binarize(mask: np.ndarray, threshold: int = 200, max_value: int = 255) -> np.ndarray:
    """
    Collapse a tri-state mask to binary.

    Pixels strictly above threshold (foreground) become max_value; background
    and shadow pixels become 0.
    """
    _, binary = cv2.threshold(mask, threshold, max_value, cv2.THRESH_BINARY)
    return binary


def structuring_element(kernel_shape: str = "rect", kernel_size: int = 5) -> np.ndarray:
    """Build a kernel_size x kernel_size structuring element."""
    if kernel_shape not in KERNEL_SHAPES:
        raise ValueError(
            f"Unknown kernel shape '{kernel_shape}' (expected one of: {', '.join(KERNEL_SHAPES)})"
        )
    if not isinstance(kernel_size, int) or kernel_size <= 0:
        raise ValueError("kernel_size must be a positive integer")
    return cv2.getStructuringElement(KERNEL_SHAPES[kernel_shape], (kernel_size, kernel_size))


def close(mask: np.ndarray, kernel_shape: str = "rect", kernel_size: int = 5) -> np.ndarray:
    """
    Morphological closing (dilation then erosion).

    Merges near-adjacent fragments and fills small holes; output has the
    same size as the input.
    """
    kernel = structuring_element(kernel_shape, kernel_size)
    return cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel)
