"""
IoU computation and detection-to-ground-truth matching.

Matching policy: ground-truth boxes are visited in input order; each takes
the unmatched detection with the same label and the highest IoU, provided
that IoU reaches the threshold. Ties go to the earliest detection. Whatever
is left over is a false positive (detections) or false negative (ground
truth).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from models.detection import Annotation, BoundingBox, Detection


def calculate_iou(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Calculate Intersection over Union (IoU) between two bounding boxes.

    Returns:
        IoU value between 0 and 1; 0 when the boxes do not overlap.
    """
    x1_i = max(box1.x, box2.x)
    y1_i = max(box1.y, box2.y)
    x2_i = min(box1.x2, box2.x2)
    y2_i = min(box1.y2, box2.y2)

    if x2_i <= x1_i or y2_i <= y1_i:
        return 0.0

    intersection = (x2_i - x1_i) * (y2_i - y1_i)
    union = box1.area + box2.area - intersection

    if union <= 0:
        return 0.0

    return intersection / union


@dataclass
class MatchResult:
    """
    Outcome of matching one image's detections against its ground truth.

    Attributes:
        matches: (ground_truth_index, detection_index, iou) for each true positive.
        unmatched_detections: Indices of detections counted as false positives.
        unmatched_ground_truth: Indices of ground-truth boxes counted as false negatives.
    """
    matches: List[Tuple[int, int, float]] = field(default_factory=list)
    unmatched_detections: List[int] = field(default_factory=list)
    unmatched_ground_truth: List[int] = field(default_factory=list)

    @property
    def true_positives(self) -> int:
        return len(self.matches)

    @property
    def false_positives(self) -> int:
        return len(self.unmatched_detections)

    @property
    def false_negatives(self) -> int:
        return len(self.unmatched_ground_truth)


def match_boxes(
    detections: Sequence[Detection],
    ground_truth: Sequence[Annotation],
    iou_threshold: float = 0.5,
) -> MatchResult:
    """
    Pair detections with ground-truth boxes (best IoU per ground-truth box).

    Args:
        detections: Predicted boxes.
        ground_truth: Annotated boxes, visited in this order.
        iou_threshold: Minimum IoU for a pair to count as a match.
    """
    result = MatchResult()
    det_matched = [False] * len(detections)

    for gt_idx, gt in enumerate(ground_truth):
        best_iou = 0.0
        best_det_idx = None

        for det_idx, det in enumerate(detections):
            if det_matched[det_idx] or det.label != gt.label:
                continue

            iou = calculate_iou(det.bbox, gt.bbox)
            # Disjoint boxes never match, even with a zero threshold
            if iou <= 0.0 or iou < iou_threshold:
                continue
            if best_det_idx is None or iou > best_iou:
                best_iou = iou
                best_det_idx = det_idx

        if best_det_idx is not None:
            det_matched[best_det_idx] = True
            result.matches.append((gt_idx, best_det_idx, best_iou))
        else:
            result.unmatched_ground_truth.append(gt_idx)

    result.unmatched_detections = [i for i, matched in enumerate(det_matched) if not matched]
    return result
