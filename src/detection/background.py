"""
Per-pixel adaptive background models.

Each pixel keeps an ordered mixture of up to K Gaussian components
(mean, variance, weight). Components that are heavy and narrow describe the
usual appearance of the scene; a pixel that matches one of them is background,
anything else is foreground. Foreground pixels that look like a darker copy of
the background are reported as shadow.

Masks use the MOG2 label convention: 0 = background, 127 = shadow,
255 = foreground.

One model instance belongs to one stream of frames. It is not thread safe and
must not be shared between unrelated image sequences.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from models.config import BackgroundConfig


BACKGROUND = 0
SHADOW = 127
FOREGROUND = 255


class BackgroundModel:
    """Background model interface returning a tri-state mask per frame."""

    def apply(self, frame: np.ndarray, learning_rate: Optional[float] = None) -> np.ndarray:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError

    def background_image(self) -> Optional[np.ndarray]:
        raise NotImplementedError


def _check_frame(frame: np.ndarray, shape: Optional[Tuple[int, int]]) -> None:
    if frame is None or frame.ndim != 2:
        raise ValueError("Background model expects a single-channel (grayscale) frame")
    if shape is not None and frame.shape != shape:
        raise ValueError(
            f"Frame size {frame.shape} does not match the stream's frame size {shape}"
        )


class GaussianMixtureModel(BackgroundModel):
    """
    Gaussian mixture background model implemented with numpy.

    All pixels are processed at once; the per-pixel arrays have shape
    (K, H, W) and stay sorted by weight / sqrt(variance), most
    background-like component first.

    Example:
        model = GaussianMixtureModel(history=500, var_threshold=16)
        for gray in frames:
            mask = model.apply(gray)
    """

    def __init__(
        self,
        history: int = 500,
        var_threshold: float = 16.0,
        detect_shadows: bool = True,
        shadow_ratio: float = 0.5,
        n_mixtures: int = 5,
        background_ratio: float = 0.9,
        var_init: float = 15.0,
        var_min: float = 4.0,
        var_max: float = 75.0,
    ) -> None:
        """
        Initialize the model.

        Args:
            history: Number of frames contributing to the statistics; the
                     default learning rate is 1 / history.
            var_threshold: Squared distance (in variances) under which a pixel
                           matches a component.
            detect_shadows: Whether to label shadow pixels (127).
            shadow_ratio: Lowest intensity ratio pixel / background mean still
                          considered a shadow.
            n_mixtures: Maximum number of components per pixel.
            background_ratio: Cumulative weight covered by background components.
            var_init: Variance of a newly created component.
            var_min: Lower bound on component variance.
            var_max: Upper bound on component variance.
        """
        if history <= 0:
            raise ValueError("history must be positive")
        if n_mixtures < 1:
            raise ValueError("n_mixtures must be at least 1")
        if var_threshold <= 0:
            raise ValueError("var_threshold must be positive")
        if not (0.0 < shadow_ratio <= 1.0):
            raise ValueError("shadow_ratio must be in (0, 1]")
        if not (0.0 < background_ratio <= 1.0):
            raise ValueError("background_ratio must be in (0, 1]")
        if not (0.0 < var_min <= var_max):
            raise ValueError("variance bounds must satisfy 0 < var_min <= var_max")

        self.history = history
        self.var_threshold = float(var_threshold)
        self.detect_shadows = detect_shadows
        self.shadow_ratio = float(shadow_ratio)
        self.n_mixtures = n_mixtures
        self.background_ratio = float(background_ratio)
        self.var_init = float(min(max(var_init, var_min), var_max))
        self.var_min = float(var_min)
        self.var_max = float(var_max)

        self._means: Optional[np.ndarray] = None
        self._variances: Optional[np.ndarray] = None
        self._weights: Optional[np.ndarray] = None
        self._shape: Optional[Tuple[int, int]] = None
        self.frame_count = 0

    @property
    def shape(self) -> Optional[Tuple[int, int]]:
        """Frame size (height, width) of the current stream, None before the first frame."""
        return self._shape

    def reset(self) -> None:
        """Forget all statistics; the next frame starts a new stream."""
        self._means = None
        self._variances = None
        self._weights = None
        self._shape = None
        self.frame_count = 0

    def _allocate(self, shape: Tuple[int, int]) -> None:
        k = self.n_mixtures
        self._shape = shape
        self._means = np.zeros((k,) + shape, dtype=np.float32)
        self._variances = np.full((k,) + shape, self.var_init, dtype=np.float32)
        self._weights = np.zeros((k,) + shape, dtype=np.float32)

    def _resolve_rate(self, learning_rate: Optional[float]) -> float:
        if learning_rate is None or learning_rate < 0:
            return 1.0 / self.history
        if learning_rate > 1:
            raise ValueError("learning_rate must be in [0, 1] (or negative for automatic)")
        return float(learning_rate)

    def apply(self, frame: np.ndarray, learning_rate: Optional[float] = None) -> np.ndarray:
        """
        Classify a frame and fold it into the model.

        Args:
            frame: 2D intensity image with the same size as earlier frames.
            learning_rate: Override for this frame; None or negative means
                           1 / history, 0 leaves the model unchanged.

        Returns:
            uint8 mask with 0 (background), 127 (shadow) or 255 (foreground).

        Raises:
            ValueError: If the frame is not 2D or its size differs from the stream's.
        """
        _check_frame(frame, self._shape)
        if self._shape is None:
            self._allocate(frame.shape)

        alpha = self._resolve_rate(learning_rate)
        x = frame.astype(np.float32)

        diff = x[None] - self._means
        dist2 = diff * diff
        observed = self._weights > 0
        matches = observed & (dist2 < self.var_threshold * self._variances)
        any_match = matches.any(axis=0)
        # First match in sorted order wins
        first = np.argmax(matches, axis=0)

        # Classification uses the ordering from the end of the previous frame
        cum_before = np.cumsum(self._weights, axis=0) - self._weights
        bg_components = observed & (cum_before < self.background_ratio)
        matched_bg = any_match & np.take_along_axis(bg_components, first[None], axis=0)[0]

        mask = np.full(self._shape, FOREGROUND, dtype=np.uint8)
        mask[matched_bg] = BACKGROUND
        if self.detect_shadows:
            shadow = self._shadow_pixels(x, bg_components) & ~matched_bg
            mask[shadow] = SHADOW

        if alpha > 0:
            self._update(x, diff, dist2, any_match, first, alpha)
            self._sort()

        self.frame_count += 1
        return mask

    def _shadow_pixels(self, x: np.ndarray, bg_components: np.ndarray) -> np.ndarray:
        """Pixels that are a darker copy of some background component."""
        means = self._means
        ratio = x[None] / np.maximum(means, 1e-6)
        darker = (means > 0) & (ratio >= self.shadow_ratio) & (ratio <= 1.0)
        return (bg_components & darker).any(axis=0)

    def _update(
        self,
        x: np.ndarray,
        diff: np.ndarray,
        dist2: np.ndarray,
        any_match: np.ndarray,
        first: np.ndarray,
        alpha: float,
    ) -> None:
        k_index = np.arange(self.n_mixtures).reshape(-1, 1, 1)
        matched = (k_index == first[None]) & any_match[None]

        # w <- (1 - a) w for all, plus a for the matched one: w + a (1 - w)
        self._weights *= (1.0 - alpha)
        self._weights[matched] += alpha

        np.add(self._means, alpha * diff, out=self._means, where=matched)
        np.add(self._variances, alpha * (dist2 - self._variances), out=self._variances, where=matched)
        np.clip(self._variances, self.var_min, self.var_max, out=self._variances)

        # Unmatched pixels: the weakest component is replaced by a new one at x
        weakest = np.argmin(self._weights, axis=0)
        replaced = (k_index == weakest[None]) & ~any_match[None]
        self._means = np.where(replaced, x[None], self._means).astype(np.float32)
        self._variances = np.where(replaced, self.var_init, self._variances).astype(np.float32)
        self._weights = np.where(replaced, alpha, self._weights).astype(np.float32)

        total = self._weights.sum(axis=0, keepdims=True)
        np.divide(self._weights, total, out=self._weights, where=total > 0)

    def _sort(self) -> None:
        key = self._weights / np.sqrt(self._variances)
        order = np.argsort(-key, axis=0, kind="stable")
        self._means = np.take_along_axis(self._means, order, axis=0)
        self._variances = np.take_along_axis(self._variances, order, axis=0)
        self._weights = np.take_along_axis(self._weights, order, axis=0)

    def components(self) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """Return copies of (means, variances, weights), each (K, H, W)."""
        if self._means is None:
            return None
        return self._means.copy(), self._variances.copy(), self._weights.copy()

    def background_image(self) -> Optional[np.ndarray]:
        """Mean of the most background-like component as a uint8 image."""
        if self._means is None:
            return None
        return np.clip(np.rint(self._means[0]), 0, 255).astype(np.uint8)


class Mog2Model(BackgroundModel):
    """OpenCV MOG2 subtractor behind the BackgroundModel interface."""

    def __init__(
        self,
        history: int = 500,
        var_threshold: float = 16.0,
        detect_shadows: bool = True,
        shadow_ratio: float = 0.5,
        n_mixtures: int = 5,
        background_ratio: float = 0.9,
        var_init: float = 15.0,
        var_min: float = 4.0,
        var_max: float = 75.0,
    ) -> None:
        self.history = history
        self.var_threshold = var_threshold
        self.detect_shadows = detect_shadows
        self.shadow_ratio = shadow_ratio
        self.n_mixtures = n_mixtures
        self.background_ratio = background_ratio
        self.var_init = var_init
        self.var_min = var_min
        self.var_max = var_max
        self._shape: Optional[Tuple[int, int]] = None
        self.frame_count = 0
        self._build()

    def _build(self) -> None:
        self._subtractor = cv2.createBackgroundSubtractorMOG2(
            history=self.history,
            varThreshold=self.var_threshold,
            detectShadows=self.detect_shadows,
        )
        self._subtractor.setShadowThreshold(self.shadow_ratio)
        self._subtractor.setShadowValue(SHADOW)
        self._subtractor.setNMixtures(self.n_mixtures)
        self._subtractor.setBackgroundRatio(self.background_ratio)
        self._subtractor.setVarInit(self.var_init)
        self._subtractor.setVarMin(self.var_min)
        self._subtractor.setVarMax(self.var_max)

    @property
    def shape(self) -> Optional[Tuple[int, int]]:
        return self._shape

    def apply(self, frame: np.ndarray, learning_rate: Optional[float] = None) -> np.ndarray:
        _check_frame(frame, self._shape)
        self._shape = frame.shape
        rate = -1 if learning_rate is None else learning_rate
        self.frame_count += 1
        return self._subtractor.apply(frame, learningRate=rate)

    def reset(self) -> None:
        self._shape = None
        self.frame_count = 0
        self._build()

    def background_image(self) -> Optional[np.ndarray]:
        if self._shape is None:
            return None
        return self._subtractor.getBackgroundImage()


BACKENDS = {
    "gmm": GaussianMixtureModel,
    "mog2": Mog2Model,
}


def create_background_model(config: BackgroundConfig) -> BackgroundModel:
    """
    Factory function to create a background model from config.

    Raises:
        ValueError: If the backend name is unknown.
    """
    try:
        model_cls = BACKENDS[config.backend]
    except KeyError:
        raise ValueError(
            f"Unknown background backend '{config.backend}' (expected one of: {', '.join(BACKENDS)})"
        ) from None

    logging.debug(
        f"Creating background model: backend={config.backend}, history={config.history}, "
        f"var_threshold={config.var_threshold}, shadows={config.detect_shadows}"
    )
    return model_cls(
        history=config.history,
        var_threshold=config.var_threshold,
        detect_shadows=config.detect_shadows,
        shadow_ratio=config.shadow_ratio,
        n_mixtures=config.n_mixtures,
        background_ratio=config.background_ratio,
        var_init=config.var_init,
        var_min=config.var_min,
        var_max=config.var_max,
    )
