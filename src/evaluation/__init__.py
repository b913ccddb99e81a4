"""
Evaluation of detections against hand-labeled ground truth.

Main Components:
- annotations: Pascal VOC parsing and detection-record I/O
- matching: IoU computation and best-IoU box matching
- metrics: precision / recall / F1 and count error, per image and aggregated
- report: CSV and summary writers

Usage:
    from evaluation import parse_voc_xml, evaluate_detections

    gts = parse_voc_xml("data/annotations/0001.xml")
    metrics = evaluate_detections(detections, gts, iou_threshold=0.5)
"""

from .annotations import normalize_labels, parse_detection_results, parse_voc_xml, write_detection_results
from .matching import MatchResult, calculate_iou, match_boxes
from .metrics import aggregate_metrics, evaluate_detections, metrics_from_counts
from .report import generate_evaluation_report

__all__ = [
    "normalize_labels",
    "parse_detection_results",
    "parse_voc_xml",
    "write_detection_results",
    "MatchResult",
    "calculate_iou",
    "match_boxes",
    "aggregate_metrics",
    "evaluate_detections",
    "metrics_from_counts",
    "generate_evaluation_report",
]
