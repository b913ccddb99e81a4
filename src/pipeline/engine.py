"""
Pipeline engine for the vehicle detection batch.

This module provides the main processing loop: frames come from an
ObservationSource, pass through the detector, and the detections are
handed to the export and evaluate stages.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from models.config import Config
from models.detection import Detection
from models.frame import FrameData
from models.metrics import EvaluationMetrics
from detection.base import Detector
from detection.bgsub_detector import BgSubDetector
from detection.vehicle import VehicleDetector
from observation import ObservationSource, create_source_from_config
from pipeline.stages.evaluate import EvaluateStage, create_evaluate_stage
from pipeline.stages.export import ExportStage, create_export_stage


SCOPES = ("sequence", "image")


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        scope: Background model stream boundary. "sequence" feeds every image
               of the source to one model; "image" starts a fresh model per image.
        stats_log_interval: Images between progress log messages.
    """
    scope: str = "sequence"
    stats_log_interval: int = 50


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    processed: int = 0
    skipped: int = 0
    detections: int = 0
    evaluated: int = 0
    streams: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time


class PipelineEngine:
    """
    Main processing engine using ObservationSource for frame input.

    This engine:
    - Reads frames from any ObservationSource
    - Runs the detector, deciding when its background model starts a new stream
    - Writes artifacts via ExportStage
    - Scores detections via EvaluateStage and writes the report at the end

    Example:
        source = ImageDirectorySource(ImageSourceConfig(directory="data/images"))
        detector = BgSubDetector(VehicleDetector(config.detection))
        engine = PipelineEngine(source, detector, export_stage, evaluate_stage)
        stats = engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        detector: Detector,
        export_stage: Optional[ExportStage] = None,
        evaluate_stage: Optional[EvaluateStage] = None,
        config: Optional[PipelineConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.source = source
        self.detector = detector
        self._export_stage = export_stage
        self._evaluate_stage = evaluate_stage
        self.config = config or PipelineConfig()
        if self.config.scope not in SCOPES:
            raise ValueError(f"Unknown background scope '{self.config.scope}', expected one of {SCOPES}")
        self.logger = logger or logging.getLogger(__name__)
        self.stats = PipelineStats()
        self.overall: Optional[EvaluationMetrics] = None
        self._running = False
        self._frame_size: Optional[Tuple[int, int]] = None
        self._callbacks: List[Callable[[FrameData, List[Detection]], None]] = []

    def add_callback(self, callback: Callable[[FrameData, List[Detection]], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, detections) as arguments.
        """
        self._callbacks.append(callback)

    def run(self) -> PipelineStats:
        """
        Run the main processing loop.

        Opens the observation source, processes frames until stopped or
        exhausted, closes the source and finalizes the stages.

        Returns:
            Statistics for the run.
        """
        self._running = True
        self.stats = PipelineStats()
        self.overall = None
        self._frame_size = None

        try:
            self.source.open()
            self.logger.info(f"Pipeline started: source={self.source.source_id}, scope={self.config.scope}")

            while self._running:
                frame_data = self.source.read()
                if frame_data is None:
                    break

                detections = self._process_frame(frame_data)

                for callback in self._callbacks:
                    try:
                        callback(frame_data, detections)
                    except Exception as e:
                        self.logger.warning(f"Callback error: {e}")

                if self.stats.processed % self.config.stats_log_interval == 0:
                    self._log_stats()

        except KeyboardInterrupt:
            self.logger.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

        self._finalize_stages()
        self._log_stats()
        return self.stats

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def _start_stream_if_needed(self, frame_data: FrameData) -> None:
        size = frame_data.size
        if self._frame_size is None:
            self.stats.streams = 1
        elif self.config.scope == "image":
            self.detector.reset()
            self.stats.streams += 1
        elif size != self._frame_size:
            self.logger.warning(
                f"Frame size changed from {self._frame_size} to {size} at {frame_data.name}; "
                f"starting a new background stream"
            )
            self.detector.reset()
            self.stats.streams += 1
        self._frame_size = size

    def _process_frame(self, frame_data: FrameData) -> List[Detection]:
        """
        Process a single frame through detection, export and evaluation.

        Returns the detections for this frame.
        """
        self._start_stream_if_needed(frame_data)

        detections = self.detector.detect(frame_data.frame)
        result = getattr(self.detector, "last_result", None)

        self.stats.processed += 1
        self.stats.detections += len(detections)
        self.logger.info(f"{frame_data.name}: {len(detections)} vehicles detected")

        if self._export_stage is not None:
            self._export_stage.process(frame_data, detections, result)

        if self._evaluate_stage is not None:
            if self._evaluate_stage.process(frame_data, detections) is not None:
                self.stats.evaluated += 1

        return detections

    def _finalize_stages(self) -> None:
        if self._export_stage is not None:
            self._export_stage.finalize()
        if self._evaluate_stage is not None:
            self.overall = self._evaluate_stage.finalize()

    def _log_stats(self) -> None:
        self.logger.info(
            f"Pipeline stats: processed={self.stats.processed}, skipped={self.stats.skipped}, "
            f"detections={self.stats.detections}, evaluated={self.stats.evaluated}, "
            f"elapsed={self.stats.elapsed:.1f}s"
        )

    def _cleanup(self) -> None:
        """Clean up resources."""
        self._running = False

        self.stats.skipped = len(self.source.skipped)

        try:
            self.source.close()
        except Exception as e:
            self.logger.warning(f"Error closing source: {e}")

        self.logger.info("Pipeline stopped")


def create_engine_from_config(
    config: Config,
    evaluate: bool = True,
    logger: Optional[logging.Logger] = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the typed config.

    Args:
        config: Typed application config.
        evaluate: Attach the evaluate stage (also requires evaluation.enabled).
        logger: Logger passed to every component.
    """
    source = create_source_from_config(config.paths.images_dir, logger=logger)
    detector = BgSubDetector(VehicleDetector(config.detection, logger=logger))
    export_stage = create_export_stage(config, logger=logger)

    evaluate_stage = None
    if evaluate and config.evaluation.enabled:
        evaluate_stage = create_evaluate_stage(config, logger=logger)

    pipeline_config = PipelineConfig(scope=config.detection.background.scope)
    return PipelineEngine(source, detector, export_stage, evaluate_stage, pipeline_config, logger=logger)
