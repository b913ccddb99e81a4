"""
Tests for the observation layer.
"""

import cv2
import numpy as np
import pytest

from observation import ImageDirectorySource, ImageSourceConfig, create_source_from_config, list_images


@pytest.fixture
def image_dir(tmp_path, make_scene):
    """Directory with three decodable images, one corrupt file and a non-image file."""
    directory = tmp_path / "images"
    directory.mkdir()
    cv2.imwrite(str(directory / "0002.png"), make_scene())
    cv2.imwrite(str(directory / "0001.png"), make_scene(value=80))
    cv2.imwrite(str(directory / "0004.jpg"), make_scene(height=60, width=80))
    (directory / "0003.jpg").write_bytes(b"not an image")
    (directory / "notes.txt").write_text("ignore me")
    return directory


class TestListImages:
    def test_sorted_and_filtered(self, image_dir):
        names = [p.split("/")[-1] for p in list_images(str(image_dir))]

        assert names == ["0001.png", "0002.png", "0003.jpg", "0004.jpg"]


class TestImageDirectorySource:
    """Tests for ImageDirectorySource."""

    def test_reads_in_filename_order(self, image_dir):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(image_dir)))

        with source:
            frames = list(source)

        assert [f.name for f in frames] == ["0001", "0002", "0004"]
        assert [f.frame_index for f in frames] == [1, 2, 3]
        assert frames[0].frame.shape == (120, 160, 3)
        assert frames[2].size == (80, 60)
        assert frames[0].path.endswith("0001.png")

    def test_unreadable_images_skipped(self, image_dir):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(image_dir)))

        with source:
            list(source)

        assert len(source.skipped) == 1
        assert source.skipped[0].endswith("0003.jpg")

    def test_missing_directory(self, tmp_path):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(tmp_path / "missing")))

        with pytest.raises(RuntimeError):
            source.open()

    def test_iterate_requires_open(self, image_dir):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(image_dir)))

        with pytest.raises(RuntimeError):
            list(source)

    def test_read_after_close_returns_none(self, image_dir):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(image_dir)))
        source.open()
        source.close()

        assert source.read() is None
        assert not source.is_open

    def test_empty_directory(self, tmp_path):
        source = create_source_from_config(str(tmp_path))

        with source:
            assert source.read() is None

        assert source.source_id == "images"

    def test_reopen_restarts(self, image_dir):
        source = ImageDirectorySource(ImageSourceConfig(directory=str(image_dir)))
        with source:
            first = [f.name for f in source]
        with source:
            second = [f.name for f in source]

        assert first == second
