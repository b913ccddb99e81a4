"""
Detection models: bounding boxes, detector output and ground-truth annotations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


DEFAULT_LABEL = "vehicle"


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in integer pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels (> 0 for a valid box).
        height: Box height in pixels (> 0 for a valid box).
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_valid(self) -> bool:
        """True when both sides are strictly positive."""
        return self.width > 0 and self.height > 0

    def as_xywh(self) -> Tuple[int, int, int, int]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.x2, self.y2)

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x=int(x), y=int(y), width=int(w), height=int(h))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates (x1, y1, x2, y2)."""
        return cls(x=int(x1), y=int(y1), width=int(x2) - int(x1), height=int(y2) - int(y1))


@dataclass(frozen=True)
class Detection:
    """
    A single detection produced by the vehicle detector.

    Classical detection is accept/reject only, so confidence is always 1.0.

    Attributes:
        label: Class label (fixed for this detector, e.g. "vehicle").
        bbox: Bounding box in pixel coordinates.
        confidence: Detection confidence score.
    """
    label: str
    bbox: BoundingBox
    confidence: float = 1.0

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        w: float,
        h: float,
        label: str = DEFAULT_LABEL,
    ) -> "Detection":
        """Create Detection from x, y, width, height."""
        return cls(label=label, bbox=BoundingBox.from_xywh(x, y, w, h))

    def to_record(self) -> str:
        """Format as a result-file line: "<label> <x> <y> <width> <height>"."""
        x, y, w, h = self.bbox.as_xywh()
        return f"{self.label} {x} {y} {w} {h}"


@dataclass(frozen=True)
class Annotation:
    """
    A hand-labeled ground-truth box.

    Attributes:
        label: Object class name from the annotation record.
        bbox: Bounding box in pixel coordinates.
        source: Identifier of the annotated image (VOC <filename>).
    """
    label: str
    bbox: BoundingBox
    source: Optional[str] = None


def detections_from_boxes(boxes: List[BoundingBox], label: str = DEFAULT_LABEL) -> List[Detection]:
    """Adapter: wrap accepted boxes as Detection objects with a fixed label."""
    return [Detection(label=label, bbox=box) for box in boxes]
