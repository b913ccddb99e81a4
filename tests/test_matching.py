"""
Tests for IoU, box matching and evaluation metrics.
"""

import pytest

from evaluation.matching import calculate_iou, match_boxes
from evaluation.metrics import aggregate_metrics, evaluate_detections, metrics_from_counts
from models.detection import Annotation, BoundingBox, Detection


def det(x, y, w, h, label="vehicle"):
    return Detection(label=label, bbox=BoundingBox(x, y, w, h))


def gt(x, y, w, h, label="vehicle"):
    return Annotation(label=label, bbox=BoundingBox(x, y, w, h))


class TestCalculateIoU:
    """Tests for calculate_iou."""

    def test_identical_boxes(self):
        box = BoundingBox(10, 10, 50, 40)

        assert calculate_iou(box, box) == 1.0

    def test_disjoint_boxes(self):
        assert calculate_iou(BoundingBox(0, 0, 10, 10), BoundingBox(20, 20, 10, 10)) == 0.0

    def test_touching_edges_do_not_overlap(self):
        assert calculate_iou(BoundingBox(0, 0, 10, 10), BoundingBox(10, 0, 10, 10)) == 0.0

    def test_partial_overlap(self):
        # intersection 5x10 = 50, union 100 + 100 - 50 = 150
        iou = calculate_iou(BoundingBox(0, 0, 10, 10), BoundingBox(5, 0, 10, 10))

        assert iou == pytest.approx(1 / 3)

    def test_symmetric(self):
        a = BoundingBox(3, 7, 40, 25)
        b = BoundingBox(20, 15, 30, 30)

        assert calculate_iou(a, b) == calculate_iou(b, a)

    def test_contained_box(self):
        iou = calculate_iou(BoundingBox(0, 0, 100, 100), BoundingBox(25, 25, 50, 50))

        assert iou == pytest.approx(0.25)


class TestMatchBoxes:
    """Tests for match_boxes."""

    def test_two_separate_pairs(self):
        """Each ground-truth box is matched by its overlapping detection."""
        detections = [det(105, 98, 50, 50), det(12, 10, 40, 40)]
        ground_truth = [gt(10, 10, 40, 40), gt(100, 100, 50, 50)]

        result = match_boxes(detections, ground_truth, 0.5)

        assert result.true_positives == 2
        assert result.false_positives == 0
        assert result.false_negatives == 0
        assert [(g, d) for g, d, _ in result.matches] == [(0, 1), (1, 0)]

    def test_shared_detection_goes_to_first_ground_truth(self):
        """Detection 0 overlaps both boxes; ground-truth order decides who gets it."""
        detections = [det(0, 0, 100, 90), det(55, 0, 100, 90)]
        ground_truth = [gt(0, 0, 100, 100), gt(25, 0, 100, 90)]

        result = match_boxes(detections, ground_truth, 0.5)

        assert (result.true_positives, result.false_positives, result.false_negatives) == (2, 0, 0)
        assert [(g, d) for g, d, _ in result.matches] == [(0, 0), (1, 1)]
        assert result.matches[0][2] == pytest.approx(0.9)
        assert result.matches[1][2] == pytest.approx(6300 / 11700)

    def test_matching_depends_on_ground_truth_order(self):
        detections = [det(0, 0, 100, 90), det(55, 0, 100, 90)]
        ground_truth = [gt(25, 0, 100, 90), gt(0, 0, 100, 100)]

        result = match_boxes(detections, ground_truth, 0.5)

        assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 1, 1)
        assert [(g, d) for g, d, _ in result.matches] == [(0, 0)]
        assert result.matches[0][2] == pytest.approx(0.6)
        assert result.unmatched_detections == [1]
        assert result.unmatched_ground_truth == [1]

    def test_label_mismatch_never_matches(self):
        result = match_boxes([det(0, 0, 10, 10, label="vehicle")], [gt(0, 0, 10, 10, label="car")])

        assert result.true_positives == 0
        assert result.unmatched_detections == [0]
        assert result.unmatched_ground_truth == [0]

    def test_below_threshold_is_not_a_match(self):
        result = match_boxes([det(5, 0, 10, 10)], [gt(0, 0, 10, 10)], iou_threshold=0.5)

        assert result.true_positives == 0
        assert result.false_positives == 1
        assert result.false_negatives == 1

    def test_best_iou_wins(self):
        """A ground-truth box takes the detection it overlaps most."""
        detections = [det(2, 0, 10, 10), det(0, 0, 10, 10)]

        result = match_boxes(detections, [gt(0, 0, 10, 10)])

        assert result.matches[0][1] == 1
        assert result.unmatched_detections == [0]

    def test_ties_go_to_earliest_detection(self):
        detections = [det(1, 0, 10, 10), det(-1, 0, 10, 10)]

        result = match_boxes(detections, [gt(0, 0, 10, 10)])

        assert result.matches[0][1] == 0

    def test_detection_matched_at_most_once(self):
        """Two ground-truth boxes cannot share one detection."""
        result = match_boxes([det(0, 0, 10, 10)], [gt(0, 0, 10, 10), gt(0, 0, 10, 10)])

        assert result.true_positives == 1
        assert result.unmatched_ground_truth == [1]

    def test_zero_threshold_still_needs_overlap(self):
        result = match_boxes([det(50, 50, 10, 10)], [gt(0, 0, 10, 10)], iou_threshold=0.0)

        assert result.true_positives == 0

    def test_counts_are_consistent(self):
        detections = [det(0, 0, 10, 10), det(30, 30, 10, 10), det(60, 60, 10, 10)]
        ground_truth = [gt(0, 0, 10, 10), gt(100, 100, 10, 10)]

        result = match_boxes(detections, ground_truth)

        assert result.true_positives + result.false_negatives == len(ground_truth)
        assert result.true_positives + result.false_positives == len(detections)


class TestEvaluateDetections:
    """Tests for per-image metrics."""

    def test_perfect_match(self):
        metrics = evaluate_detections([det(0, 0, 10, 10)], [gt(0, 0, 10, 10)])

        assert metrics.precision == 1.0
        assert metrics.recall == 1.0
        assert metrics.f1 == 1.0
        assert metrics.count_error == 0

    def test_both_empty(self):
        metrics = evaluate_detections([], [])

        assert (metrics.precision, metrics.recall, metrics.f1) == (1.0, 1.0, 1.0)
        assert metrics.count_error == 0
        assert metrics.relative_count_error == 0.0

    def test_no_ground_truth(self):
        metrics = evaluate_detections([det(0, 0, 10, 10)], [])

        assert metrics.false_positives == 1
        assert metrics.precision == 0.0
        assert metrics.recall == 1.0
        assert metrics.f1 == 0.0
        assert metrics.relative_count_error == 0.0

    def test_no_detections(self):
        metrics = evaluate_detections([], [gt(0, 0, 10, 10)])

        assert metrics.false_negatives == 1
        assert metrics.precision == 1.0
        assert metrics.recall == 0.0
        assert metrics.f1 == 0.0

    def test_count_error(self):
        """Five ground-truth boxes and three detections."""
        ground_truth = [gt(i * 20, 0, 10, 10) for i in range(5)]
        detections = [det(i * 20, 0, 10, 10) for i in range(3)]

        metrics = evaluate_detections(detections, ground_truth)

        assert metrics.count_error == 2
        assert metrics.relative_count_error == pytest.approx(0.4)
        assert metrics.recall == pytest.approx(0.6)
        assert metrics.precision == 1.0

    def test_metrics_in_unit_range(self):
        detections = [det(0, 0, 10, 10), det(50, 50, 10, 10)]
        ground_truth = [gt(0, 0, 10, 10), gt(80, 80, 10, 10), gt(3, 3, 10, 10)]

        metrics = evaluate_detections(detections, ground_truth)

        for value in (metrics.precision, metrics.recall, metrics.f1):
            assert 0.0 <= value <= 1.0
        assert metrics.ground_truth_count == 3
        assert metrics.detection_count == 2


class TestAggregateMetrics:
    """Tests for batch aggregation."""

    def test_sums_counts_and_recomputes_ratios(self):
        per_image = [
            metrics_from_counts(2, 0, 1),
            metrics_from_counts(1, 1, 0),
        ]

        overall = aggregate_metrics(per_image)

        assert overall.true_positives == 3
        assert overall.false_positives == 1
        assert overall.false_negatives == 1
        assert overall.precision == pytest.approx(0.75)
        assert overall.recall == pytest.approx(0.75)
        assert overall.f1 == pytest.approx(0.75)

    def test_count_error_is_summed_per_image(self):
        """Over- and under-counting in different images do not cancel out."""
        per_image = [
            metrics_from_counts(1, 1, 0),  # 1 gt, 2 det
            metrics_from_counts(1, 0, 1),  # 2 gt, 1 det
        ]

        overall = aggregate_metrics(per_image)

        assert overall.count_error == 2
        assert overall.relative_count_error == pytest.approx(2 / 3)

    def test_empty(self):
        overall = aggregate_metrics([])

        assert overall.true_positives == 0
        assert overall.count_error == 0
