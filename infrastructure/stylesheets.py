"""Presentation rules copied into exported documents."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from core.services.interfaces import RuleCollection


class FileRuleSource:
    """Reads CSS rules from stylesheet files; unreadable files are skipped."""

    def __init__(self, paths: Iterable[str | Path] = ()) -> None:
        self._paths = [Path(p) for p in paths]

    def collect(self) -> RuleCollection:
        chunks: list[str] = []
        skipped: list[str] = []
        for path in self._paths:
            try:
                chunks.append(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as ex:
                logger.warning("Could not read stylesheet {}: {}", path, ex)
                skipped.append(str(path))
        return RuleCollection(css="\n".join(chunks), skipped=skipped)
