"""
Box overlays for annotated output images and evaluation visualizations.

Colors are BGR tuples, as cv2 expects.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import RenderConfig
from models.detection import Annotation, Detection


Color = Tuple[int, int, int]


def _color(value: Sequence[int]) -> Color:
    return (int(value[0]), int(value[1]), int(value[2]))


def draw_labeled_box(
    image: np.ndarray,
    bbox,
    text: str,
    color: Color,
    render: RenderConfig,
) -> None:
    """Draw one rectangle with its caption above the top-left corner (in place)."""
    x1, y1, x2, y2 = bbox.as_xyxy()
    cv2.rectangle(image, (x1, y1), (x2, y2), color, render.bbox_thickness)

    font = cv2.FONT_HERSHEY_SIMPLEX
    (_, th), _ = cv2.getTextSize(text, font, render.font_scale, render.font_thickness)
    text_y = y1 - 5 if y1 - 5 >= th else y1 + th + 5
    cv2.putText(image, text, (x1, text_y), font, render.font_scale, color, render.font_thickness)


def draw_detections(
    frame: np.ndarray,
    detections: Iterable[Detection],
    render: Optional[RenderConfig] = None,
) -> np.ndarray:
    """Return a copy of frame with each detection boxed and labeled."""
    render = render or RenderConfig()
    canvas = frame.copy()
    color = _color(render.detection_color)
    for det in detections:
        draw_labeled_box(canvas, det.bbox, det.label, color, render)
    return canvas


def visualize_evaluation(
    frame: np.ndarray,
    detections: Iterable[Detection],
    ground_truth: Iterable[Annotation],
    render: Optional[RenderConfig] = None,
) -> np.ndarray:
    """
    Overlay ground truth and detections on a copy of the frame.

    Ground truth is captioned "GT: <label>", detections "DET: <label>",
    each in its configured color.
    """
    render = render or RenderConfig()
    canvas = frame.copy()

    gt_color = _color(render.ground_truth_color)
    for gt in ground_truth:
        draw_labeled_box(canvas, gt.bbox, f"GT: {gt.label}", gt_color, render)

    det_color = _color(render.detection_color)
    for det in detections:
        draw_labeled_box(canvas, det.bbox, f"DET: {det.label}", det_color, render)

    return canvas
