"""
Image-directory observation source.

Reads every image file of a directory, in sorted filename order, as one
frame sequence. Files that cannot be decoded are skipped with a warning.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2

from models.frame import FrameData
from .base import ObservationConfig, ObservationSource


IMAGE_EXTENSIONS: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff")


@dataclass
class ImageSourceConfig(ObservationConfig):
    """
    Configuration for image-directory sources.

    Attributes:
        directory: Directory holding the images.
        extensions: File extensions (lowercase, with dot) treated as images.
    """
    directory: str = "data/images"
    extensions: Tuple[str, ...] = field(default_factory=lambda: IMAGE_EXTENSIONS)


def list_images(directory: str, extensions: Tuple[str, ...] = IMAGE_EXTENSIONS) -> List[str]:
    """Image file paths in directory, sorted by filename."""
    names = sorted(
        name for name in os.listdir(directory)
        if os.path.splitext(name)[1].lower() in extensions
        and os.path.isfile(os.path.join(directory, name))
    )
    return [os.path.join(directory, name) for name in names]


class ImageDirectorySource(ObservationSource):
    """
    Observation source over the images of one directory.

    Example:
        config = ImageSourceConfig(directory="data/images")
        with ImageDirectorySource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: ImageSourceConfig, logger: Optional[logging.Logger] = None):
        super().__init__(config, logger)
        self._image_config = config
        self._paths: List[str] = []
        self._pos = 0

    @property
    def directory(self) -> str:
        return self._image_config.directory

    @property
    def paths(self) -> List[str]:
        """Image files found when the source was opened."""
        return list(self._paths)

    def open(self) -> None:
        """List the directory's images."""
        if self._is_open:
            return
        if not os.path.isdir(self.directory):
            raise RuntimeError(f"Image directory not found: {self.directory}")

        self._paths = list_images(self.directory, self._image_config.extensions)
        self._pos = 0
        self._frame_index = 0
        self.skipped = []
        self._is_open = True

        self.logger.info(
            f"ImageDirectorySource opened: source_id={self.source_id}, "
            f"directory={self.directory}, images={len(self._paths)}"
        )

    def read(self) -> Optional[FrameData]:
        """Decode the next readable image, or return None when exhausted."""
        if not self._is_open:
            return None

        while self._pos < len(self._paths):
            path = self._paths[self._pos]
            self._pos += 1

            frame = cv2.imread(path, cv2.IMREAD_COLOR)
            if frame is None or frame.size == 0:
                self._skip(path, "Failed to load image")
                continue

            self._frame_index += 1
            return FrameData.from_numpy(
                frame,
                timestamp=time.time(),
                frame_index=self._frame_index,
                path=path,
            )

        return None

    def close(self) -> None:
        self._is_open = False
        self.logger.info(f"ImageDirectorySource closed: source_id={self.source_id}")


def create_source_from_config(
    images_dir: str,
    source_id: str = "images",
    logger: Optional[logging.Logger] = None,
) -> ImageDirectorySource:
    """Factory function to create an image source for a directory."""
    return ImageDirectorySource(ImageSourceConfig(source_id=source_id, directory=images_dir), logger=logger)
