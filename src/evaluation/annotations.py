"""
Ground-truth and detection-record I/O.

- Pascal VOC XML annotations (one <object> per labeled box)
- Per-image detection results, one "<label> <x> <y> <width> <height>" line per box
"""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

from models.detection import Annotation, BoundingBox, Detection


def _coordinate(bndbox: ET.Element, tag: str) -> int:
    text = bndbox.findtext(tag)
    if text is None:
        raise ValueError(f"missing <{tag}>")
    # Some tools write integral floats ("123.0")
    return int(round(float(text.strip())))


def parse_voc_xml(xml_path: str, logger: Optional[logging.Logger] = None) -> List[Annotation]:
    """
    Parse a Pascal VOC annotation file.

    Malformed documents yield an empty list; objects without a name, with
    non-numeric coordinates or with a non-positive area are skipped.

    Args:
        xml_path: Path to the .xml file.
        logger: Logger for warnings.

    Returns:
        Annotations in document order.
    """
    log = logger or logging.getLogger(__name__)
    try:
        root = ET.parse(xml_path).getroot()
    except (ET.ParseError, OSError) as e:
        log.warning(f"Failed to parse annotation file {xml_path}: {e}")
        return []

    filename = (root.findtext("filename") or "").strip()
    if not filename:
        filename = os.path.splitext(os.path.basename(xml_path))[0]

    annotations: List[Annotation] = []
    for obj in root.iter("object"):
        name = (obj.findtext("name") or "").strip()
        bndbox = obj.find("bndbox")
        if not name or bndbox is None:
            log.debug(f"Skipping incomplete object in {xml_path}")
            continue

        try:
            xmin = _coordinate(bndbox, "xmin")
            ymin = _coordinate(bndbox, "ymin")
            xmax = _coordinate(bndbox, "xmax")
            ymax = _coordinate(bndbox, "ymax")
        except (ValueError, OverflowError) as e:
            log.debug(f"Skipping object '{name}' in {xml_path}: {e}")
            continue

        bbox = BoundingBox.from_xyxy(xmin, ymin, xmax, ymax)
        if not bbox.is_valid:
            log.debug(f"Skipping object '{name}' with empty box in {xml_path}")
            continue

        annotations.append(Annotation(label=name, bbox=bbox, source=filename))

    return annotations


def normalize_labels(annotations: Sequence[Annotation], label_map: Dict[str, str]) -> List[Annotation]:
    """Rename ground-truth labels through label_map; unmapped labels are kept."""
    if not label_map:
        return list(annotations)
    return [
        Annotation(label=label_map.get(a.label, a.label), bbox=a.bbox, source=a.source)
        for a in annotations
    ]


def write_detection_results(txt_path: str, detections: Sequence[Detection]) -> None:
    """Write one "<label> <x> <y> <width> <height>" line per detection."""
    out_dir = os.path.dirname(txt_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(txt_path, "w", encoding="utf-8") as f:
        for det in detections:
            f.write(det.to_record() + "\n")


def parse_detection_results(txt_path: str, logger: Optional[logging.Logger] = None) -> List[Detection]:
    """
    Read a detection results file written by write_detection_results().

    Lines that do not hold a label and four integers are skipped. A missing
    or unreadable file yields an empty list.
    """
    log = logger or logging.getLogger(__name__)
    detections: List[Detection] = []
    try:
        with open(txt_path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        log.warning(f"Failed to open detection file {txt_path}: {e}")
        return detections

    for line_no, line in enumerate(lines, start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) < 5:
            log.debug(f"{txt_path}:{line_no}: expected 5 fields, got {len(parts)}")
            continue
        try:
            x, y, w, h = (int(v) for v in parts[1:5])
        except ValueError:
            log.debug(f"{txt_path}:{line_no}: non-integer coordinates")
            continue
        detections.append(Detection(label=parts[0], bbox=BoundingBox(x, y, w, h), confidence=1.0))

    return detections
