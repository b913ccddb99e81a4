"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (image directory, video file)
from the processing pipeline. Each source implements the ObservationSource
interface and returns FrameData objects.
"""

from .base import ObservationSource, ObservationConfig
from .image_source import ImageDirectorySource, ImageSourceConfig, create_source_from_config, list_images

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "ImageDirectorySource",
    "ImageSourceConfig",
    "create_source_from_config",
    "list_images",
]
