"""
Evaluation report writers.

- per_image_metrics.csv: one row per evaluated image
- overall_summary.txt: batch-level metrics
"""

from __future__ import annotations

import csv
import logging
import os
from typing import Dict, Mapping, Optional

from models.metrics import EvaluationMetrics, METRIC_FIELDS


PER_IMAGE_CSV = "per_image_metrics.csv"
SUMMARY_TXT = "overall_summary.txt"

SUMMARY_LABELS = {
    "precision": "Precision",
    "recall": "Recall",
    "f1": "F1-Score",
    "true_positives": "True Positives",
    "false_positives": "False Positives",
    "false_negatives": "False Negatives",
    "count_error": "Absolute Count Error",
    "relative_count_error": "Relative Count Error",
}


def write_per_image_csv(csv_path: str, per_image: Mapping[str, EvaluationMetrics]) -> None:
    """Write one row per image with columns: image, <metric fields>."""
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["image"] + METRIC_FIELDS)
        writer.writeheader()
        for image, metrics in per_image.items():
            row: Dict[str, object] = {"image": image}
            row.update(metrics.to_dict())
            writer.writerow(row)


def write_summary(summary_path: str, overall: EvaluationMetrics, images_evaluated: int) -> None:
    """Write the batch summary as "Name: value" lines."""
    values = overall.to_dict()
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write("=== OVERALL EVALUATION SUMMARY ===\n\n")
        f.write(f"Images Evaluated: {images_evaluated}\n")
        for name in METRIC_FIELDS:
            value = values[name]
            if isinstance(value, float):
                f.write(f"{SUMMARY_LABELS[name]}: {value:.4f}\n")
            else:
                f.write(f"{SUMMARY_LABELS[name]}: {value}\n")


def generate_evaluation_report(
    output_dir: str,
    per_image: Mapping[str, EvaluationMetrics],
    overall: EvaluationMetrics,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Write the per-image CSV and the overall summary into output_dir.

    Args:
        output_dir: Report directory (created if missing).
        per_image: Metrics keyed by image name, in report order.
        overall: Aggregated metrics for the batch.
        logger: Logger to report through.
    """
    os.makedirs(output_dir, exist_ok=True)
    csv_path = os.path.join(output_dir, PER_IMAGE_CSV)
    summary_path = os.path.join(output_dir, SUMMARY_TXT)

    write_per_image_csv(csv_path, per_image)
    write_summary(summary_path, overall, images_evaluated=len(per_image))

    log = logger or logging.getLogger(__name__)
    log.info(f"Evaluation report written to {output_dir} ({len(per_image)} images)")
