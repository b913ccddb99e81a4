"""
Pytest configuration and shared fixtures.
"""

import logging
import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detection:
  label: "vehicle"
  background:
    backend: "gmm"
    scope: "sequence"
    history: 500
    var_threshold: 16.0
  mask:
    threshold: 200
  morphology:
    kernel_shape: "rect"
    kernel_size: 5
  filter:
    min_area: 1200
    max_area: 100000

evaluation:
  iou_threshold: 0.5
  label_map:
    car: "vehicle"

paths:
  images_dir: "data/images"
  annotations_dir: "data/annotations"
  output_dir: "output"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detection": {
            "label": "vehicle",
            "background": {
                "backend": "gmm",
                "scope": "sequence",
                "history": 500,
                "var_threshold": 16.0,
                "detect_shadows": True,
                "shadow_ratio": 0.5,
            },
            "mask": {"threshold": 200, "max_value": 255},
            "morphology": {"kernel_shape": "rect", "kernel_size": 5},
            "filter": {
                "min_area": 1200,
                "max_area": 100000,
                "min_aspect_ratio": 0.4,
                "max_aspect_ratio": 4.0,
                "min_extent": 0.35,
                "min_solidity": 0.6,
            },
        },
        "evaluation": {
            "enabled": True,
            "iou_threshold": 0.5,
            "label_map": {"car": "vehicle"},
            "visualize": True,
        },
        "paths": {
            "images_dir": "data/images",
            "annotations_dir": "data/annotations",
            "output_dir": "output",
            "debug_dir": "debug_output",
            "save_debug": True,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def write_voc():
    """Return a helper that writes a Pascal VOC file for (label, xmin, ymin, xmax, ymax) objects."""

    def _write(path, objects, filename="image.jpg"):
        parts = ["<annotation>", f"  <filename>{filename}</filename>"]
        for label, xmin, ymin, xmax, ymax in objects:
            parts.extend([
                "  <object>",
                f"    <name>{label}</name>",
                "    <bndbox>",
                f"      <xmin>{xmin}</xmin>",
                f"      <ymin>{ymin}</ymin>",
                f"      <xmax>{xmax}</xmax>",
                f"      <ymax>{ymax}</ymax>",
                "    </bndbox>",
                "  </object>",
            ])
        parts.append("</annotation>")
        path = str(path)
        with open(path, "w") as f:
            f.write("\n".join(parts))
        return path

    return _write


@pytest.fixture
def make_scene():
    """Return a helper building a uniform gray BGR scene with bright filled rectangles (x, y, w, h)."""

    def _make(height=120, width=160, value=60, boxes=(), box_value=230):
        frame = np.full((height, width, 3), value, dtype=np.uint8)
        for x, y, w, h in boxes:
            frame[y:y + h, x:x + w] = box_value
        return frame

    return _make


@pytest.fixture
def restore_root_logger():
    """Undo root logger changes made by setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
