"""
Tests for Pascal VOC parsing and detection-record I/O.
"""

from evaluation.annotations import (
    normalize_labels,
    parse_detection_results,
    parse_voc_xml,
    write_detection_results,
)
from models.detection import Annotation, BoundingBox, Detection


class TestParseVocXml:
    """Tests for parse_voc_xml."""

    def test_pretty_printed(self, tmp_path, write_voc):
        path = write_voc(tmp_path / "0001.xml", [
            ("car", 10, 20, 60, 60),
            ("truck", 100, 50, 180, 120),
        ], filename="0001.jpg")

        annotations = parse_voc_xml(path)

        assert annotations == [
            Annotation(label="car", bbox=BoundingBox(10, 20, 50, 40), source="0001.jpg"),
            Annotation(label="truck", bbox=BoundingBox(100, 50, 80, 70), source="0001.jpg"),
        ]

    def test_single_line(self, tmp_path):
        path = tmp_path / "a.xml"
        path.write_text(
            "<annotation><filename>a.jpg</filename><object><name>car</name>"
            "<bndbox><xmin>1</xmin><ymin>2</ymin><xmax>11</xmax><ymax>22</ymax></bndbox>"
            "</object></annotation>"
        )

        annotations = parse_voc_xml(str(path))

        assert len(annotations) == 1
        assert annotations[0].bbox == BoundingBox(1, 2, 10, 20)

    def test_nested_elements_and_extra_fields(self, tmp_path):
        """Extra VOC fields (pose, truncated, part) do not confuse the parser."""
        path = tmp_path / "b.xml"
        path.write_text("""<annotation>
  <folder>images</folder>
  <filename>b.jpg</filename>
  <size><width>640</width><height>480</height><depth>3</depth></size>
  <object>
    <name>car</name>
    <pose>Unspecified</pose>
    <truncated>0</truncated>
    <difficult>0</difficult>
    <bndbox>
      <xmin>5</xmin>
      <ymin>6</ymin>
      <xmax>45</xmax>
      <ymax>36</ymax>
    </bndbox>
  </object>
</annotation>
""")

        annotations = parse_voc_xml(str(path))

        assert [a.bbox for a in annotations] == [BoundingBox(5, 6, 40, 30)]

    def test_float_coordinates(self, tmp_path, write_voc):
        path = write_voc(tmp_path / "c.xml", [("car", "10.0", "20.0", "50.0", "60.0")])

        annotations = parse_voc_xml(path)

        assert annotations[0].bbox == BoundingBox(10, 20, 40, 40)

    def test_broken_xml_returns_empty(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<annotation><object><name>car</name>")

        assert parse_voc_xml(str(path)) == []

    def test_missing_file_returns_empty(self, tmp_path):
        assert parse_voc_xml(str(tmp_path / "missing.xml")) == []

    def test_invalid_objects_skipped(self, tmp_path, write_voc):
        path = write_voc(tmp_path / "d.xml", [
            ("car", "abc", 0, 10, 10),
            ("car", 10, 10, 10, 20),
            ("", 0, 0, 10, 10),
            ("bus", 0, 0, 10, 10),
        ])

        annotations = parse_voc_xml(path)

        assert [a.label for a in annotations] == ["bus"]

    def test_source_defaults_to_file_stem(self, tmp_path):
        path = tmp_path / "frame_7.xml"
        path.write_text(
            "<annotation><object><name>car</name><bndbox><xmin>0</xmin><ymin>0</ymin>"
            "<xmax>5</xmax><ymax>5</ymax></bndbox></object></annotation>"
        )

        assert parse_voc_xml(str(path))[0].source == "frame_7"


class TestNormalizeLabels:
    def test_maps_known_labels(self):
        annotations = [
            Annotation("car", BoundingBox(0, 0, 5, 5)),
            Annotation("person", BoundingBox(0, 0, 5, 5)),
        ]

        mapped = normalize_labels(annotations, {"car": "vehicle"})

        assert [a.label for a in mapped] == ["vehicle", "person"]

    def test_empty_map(self):
        annotations = [Annotation("car", BoundingBox(0, 0, 5, 5))]

        assert normalize_labels(annotations, {}) == annotations


class TestDetectionResults:
    """Tests for detection-record files."""

    def test_write_format(self, tmp_path):
        path = tmp_path / "out" / "0001.txt"

        write_detection_results(str(path), [Detection.from_xywh(10, 20, 30, 40)])

        assert path.read_text() == "vehicle 10 20 30 40\n"

    def test_round_trip(self, tmp_path):
        detections = [Detection.from_xywh(1, 2, 3, 4), Detection.from_xywh(50, 60, 70, 80, label="car")]
        path = str(tmp_path / "r.txt")

        write_detection_results(path, detections)

        assert parse_detection_results(path) == detections

    def test_empty_file(self, tmp_path):
        path = str(tmp_path / "empty.txt")

        write_detection_results(path, [])

        assert parse_detection_results(path) == []

    def test_malformed_lines_skipped(self, tmp_path):
        path = tmp_path / "m.txt"
        path.write_text("vehicle 1 2 3 4\nvehicle 1 2\n\nvehicle a b c d\nvehicle 5 6 7 8\n")

        detections = parse_detection_results(str(path))

        assert [d.bbox for d in detections] == [BoundingBox(1, 2, 3, 4), BoundingBox(5, 6, 7, 8)]

    def test_missing_file(self, tmp_path):
        assert parse_detection_results(str(tmp_path / "none.txt")) == []
