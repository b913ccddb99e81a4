"""
ObservationSource interface for ordered image sequences.

A source yields the frames of one sequence (typically the images of one
directory) in a fixed order. The background model treats consecutive frames
of a source as one stream, so the order a source yields is part of its
contract. Entries that cannot be decoded are recorded in `skipped` and do
not consume a frame index.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for image sequence sources.

    Attributes:
        source_id: Name of the sequence, used in log lines (e.g. "images").
    """
    source_id: str = "default"


class ObservationSource(ABC):
    """
    Abstract base class for image sequence sources.

    Lifecycle:
        1. open() lists the sequence and rewinds it; frame_index restarts at 0
        2. read() decodes the next usable image, or returns None at the end
        3. close() ends the pass; open() may be called again to replay it

    Frame indices are 1-based and count only frames actually returned.

    Can also be used as a context manager:
        with ImageDirectorySource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: ObservationConfig, logger: Optional[logging.Logger] = None):
        self._config = config
        self._is_open = False
        self._frame_index = 0
        self.skipped: List[str] = []
        self.logger = logger or logging.getLogger(__name__)

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Index of the last frame returned in the current pass."""
        return self._frame_index

    def _skip(self, entry: str, reason: str) -> None:
        """Record an unusable entry of the sequence and warn about it."""
        self.logger.warning(f"{reason}: {entry}")
        self.skipped.append(entry)

    @abstractmethod
    def open(self) -> None:
        """
        Start a pass over the sequence.

        Raises:
            RuntimeError: If the sequence does not exist.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next decodable frame of the sequence, or None when it is exhausted."""

    @abstractmethod
    def close(self) -> None:
        """End the current pass. Safe to call multiple times."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
