"""
Evaluation metrics model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


# Column order of the per-image report
METRIC_FIELDS = [
    "precision",
    "recall",
    "f1",
    "true_positives",
    "false_positives",
    "false_negatives",
    "count_error",
    "relative_count_error",
]


@dataclass(frozen=True)
class EvaluationMetrics:
    """
    Detection quality for one image (or aggregated over a batch).

    Attributes:
        true_positives: Ground-truth boxes matched by a detection.
        false_positives: Detections left unmatched.
        false_negatives: Ground-truth boxes left unmatched.
        precision: TP / detections, in [0, 1].
        recall: TP / ground truth, in [0, 1].
        f1: Harmonic mean of precision and recall, in [0, 1].
        count_error: |#ground truth - #detections|.
        relative_count_error: count_error / #ground truth (0 when no ground truth).
    """
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    count_error: int = 0
    relative_count_error: float = 0.0

    @property
    def ground_truth_count(self) -> int:
        return self.true_positives + self.false_negatives

    @property
    def detection_count(self) -> int:
        return self.true_positives + self.false_positives

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in METRIC_FIELDS}
