"""
Detection quality metrics: precision, recall, F1 and count error.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from models.detection import Annotation, Detection
from models.metrics import EvaluationMetrics
from .matching import match_boxes


def metrics_from_counts(
    true_positives: int,
    false_positives: int,
    false_negatives: int,
    count_error: Optional[int] = None,
) -> EvaluationMetrics:
    """
    Derive ratios from match counts.

    Zero denominators are defined explicitly:
    - no ground truth and no detections: precision = recall = f1 = 1
    - no ground truth: precision = 0, recall = 1, f1 = 0
    - no detections: precision = 1, recall = 0, f1 = 0

    Args:
        true_positives: Matched pairs.
        false_positives: Unmatched detections.
        false_negatives: Unmatched ground-truth boxes.
        count_error: Absolute count error; defaults to |#gt - #det|.
    """
    gt_count = true_positives + false_negatives
    det_count = true_positives + false_positives

    if gt_count == 0 and det_count == 0:
        precision, recall, f1 = 1.0, 1.0, 1.0
    elif gt_count == 0:
        precision, recall, f1 = 0.0, 1.0, 0.0
    elif det_count == 0:
        precision, recall, f1 = 1.0, 0.0, 0.0
    else:
        precision = true_positives / det_count
        recall = true_positives / gt_count
        if precision + recall > 0:
            f1 = 2.0 * precision * recall / (precision + recall)
        else:
            f1 = 0.0

    if count_error is None:
        count_error = abs(gt_count - det_count)
    relative_count_error = count_error / gt_count if gt_count > 0 else 0.0

    return EvaluationMetrics(
        true_positives=true_positives,
        false_positives=false_positives,
        false_negatives=false_negatives,
        precision=precision,
        recall=recall,
        f1=f1,
        count_error=count_error,
        relative_count_error=relative_count_error,
    )


def evaluate_detections(
    detections: Sequence[Detection],
    ground_truth: Sequence[Annotation],
    iou_threshold: float = 0.5,
) -> EvaluationMetrics:
    """
    Evaluate one image's detections against its ground truth.

    Args:
        detections: Predicted boxes.
        ground_truth: Annotated boxes.
        iou_threshold: Minimum IoU for a true positive.
    """
    result = match_boxes(detections, ground_truth, iou_threshold)
    return metrics_from_counts(
        result.true_positives,
        result.false_positives,
        result.false_negatives,
    )


def aggregate_metrics(per_image: Iterable[EvaluationMetrics]) -> EvaluationMetrics:
    """
    Combine per-image metrics into a batch summary.

    TP/FP/FN and count errors are summed; precision, recall and f1 are
    recomputed from the summed counts; the relative count error is the summed
    count error over the total ground-truth count.
    """
    tp = fp = fn = count_error = 0
    for m in per_image:
        tp += m.true_positives
        fp += m.false_positives
        fn += m.false_negatives
        count_error += m.count_error
    return metrics_from_counts(tp, fp, fn, count_error=count_error)
