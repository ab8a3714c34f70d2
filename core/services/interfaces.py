"""Collaborator interfaces and shared result structures.

The core consumes capture metadata, media embedding and presentation rules
through these narrow contracts; `infrastructure` provides the default
implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol

from core.models import CaptureMetadata


@dataclass
class CaptureInfo:
    """Best-effort capture details for one media reference.

    Attributes:
        captured_at: Capture timestamp, None when unknown.
        location: Human readable location, None when unknown.
        metadata: Structured capture metadata (may be empty).
    """

    captured_at: datetime | None = None
    location: str | None = None
    metadata: CaptureMetadata = field(default_factory=CaptureMetadata)


@dataclass
class RuleCollection:
    """Collected presentation rules.

    Attributes:
        css: Concatenated rule text from every readable source.
        skipped: Sources that could not be read.
    """

    css: str
    skipped: list[str] = field(default_factory=list)


@dataclass
class ExportResult:
    """Outcome of an offline export.

    Attributes:
        path: Written artifact.
        page_count: Pages in the exported payload.
        item_count: Photo slots in the exported payload (favorites count twice).
        fallback_ids: Items that kept their original reference.
        skipped_sources: Stylesheet sources that could not be read.
    """

    path: Path
    page_count: int
    item_count: int
    fallback_ids: list[str] = field(default_factory=list)
    skipped_sources: list[str] = field(default_factory=list)


class MetadataExtractor(Protocol):
    """Reads capture details; must never raise."""

    def extract(self, source: str) -> CaptureInfo:
        """Return capture info for `source`, defaults when unavailable."""
        raise NotImplementedError


class MediaEmbedder(Protocol):
    """Turns a media reference into a self-contained representation."""

    async def embed(self, source: str) -> str:
        """Return an embeddable representation (e.g. a data URL); may raise."""
        raise NotImplementedError


class PresentationRuleSource(Protocol):
    """Supplies the stylesheet text copied into exported documents."""

    def collect(self) -> RuleCollection:
        """Return readable rules; unreadable sources are reported, not raised."""
        raise NotImplementedError
