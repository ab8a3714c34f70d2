"""Overflow scaling for page content.

Pure numeric helpers: the renderer measures the natural content height and the
available page height, asks for a scale factor, and applies it itself.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScalerConfig:
    """Thresholds for shrinking overflowing page content.

    Attributes:
        overflow_tolerance: Content may exceed the container by this ratio
            before any shrinking happens.
        fit_ratio: Share of the container height the shrunk content targets.
        min_scale: Lower clamp for the scale factor.
        base_gap_px: Gap between items at scale 1.
        min_gap_px: Lower clamp for the scaled gap.
    """

    overflow_tolerance: float = 1.1
    fit_ratio: float = 0.9
    min_scale: float = 0.7
    base_gap_px: float = 8.0
    min_gap_px: float = 4.0


@dataclass(frozen=True)
class ScaleResult:
    scale: float
    gap_px: float

    @property
    def is_scaled(self) -> bool:
        return self.scale < 1.0


class LayoutScaler:
    """Computes a uniform shrink factor and the matching item gap."""

    def __init__(self, config: ScalerConfig | None = None) -> None:
        self._cfg = config or ScalerConfig()

    @property
    def config(self) -> ScalerConfig:
        return self._cfg

    def scale_factor(self, content_height: float, container_height: float) -> float:
        """Return the factor to apply to content of `content_height` (1.0 = untouched)."""
        cfg = self._cfg
        if container_height <= 0 or content_height <= 0:
            return 1.0
        if content_height <= container_height * cfg.overflow_tolerance:
            return 1.0
        return max(cfg.min_scale, (container_height * cfg.fit_ratio) / content_height)

    def gap_for(self, scale: float) -> float:
        """Item gap shrunk in lockstep with `scale`."""
        if scale >= 1.0:
            return self._cfg.base_gap_px
        return max(self._cfg.min_gap_px, self._cfg.base_gap_px * scale)

    def fit(self, content_height: float, container_height: float) -> ScaleResult:
        scale = self.scale_factor(content_height, container_height)
        return ScaleResult(scale=scale, gap_px=self.gap_for(scale))
