"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.services.layout_scaler import ScalerConfig
from core.services.page_builder import DEFAULT_PAGE_CAPACITY, PageCapacityConfig


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JsonSettings:
        """Build settings from an in-memory mapping (no file involved)."""
        inst = cls.__new__(cls)
        inst._path = Path("<memory>")
        inst._data = data
        return inst

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (ValueError, TypeError):
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (ValueError, TypeError):
            return default

    def get_str_list(self, key: str) -> list[str]:
        raw = self.get(key, [])
        if not isinstance(raw, list):
            return []
        return [str(v) for v in raw if isinstance(v, str) and v]


def page_capacity_from(settings: JsonSettings | None) -> PageCapacityConfig:
    """Capacity policy from `album.page_capacity` (invalid values fall back to 4)."""
    if settings is None:
        return PageCapacityConfig()
    value = settings.get_int("album.page_capacity", DEFAULT_PAGE_CAPACITY)
    return PageCapacityConfig(value if value >= 1 else DEFAULT_PAGE_CAPACITY)


def scaler_config_from(settings: JsonSettings | None) -> ScalerConfig:
    """Scaler thresholds from the `layout.*` keys."""
    base = ScalerConfig()
    if settings is None:
        return base
    return ScalerConfig(
        overflow_tolerance=settings.get_float("layout.overflow_tolerance", base.overflow_tolerance),
        fit_ratio=settings.get_float("layout.fit_ratio", base.fit_ratio),
        min_scale=settings.get_float("layout.min_scale", base.min_scale),
        base_gap_px=settings.get_float("layout.base_gap_px", base.base_gap_px),
        min_gap_px=settings.get_float("layout.min_gap_px", base.min_gap_px),
    )
