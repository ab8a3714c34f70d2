"""Application-specific exceptions.

Per-item problems (a photo that cannot be embedded, an unreadable stylesheet,
missing EXIF) are handled where they happen and never reach these types. These
exceptions mark failures of a whole operation.
"""

from __future__ import annotations


class AlbumError(Exception):
    """Base exception for album operations."""


class MediaLoadError(AlbumError):
    """Raised when a media source (e.g. a folder) cannot be scanned at all."""


class ExportError(AlbumError):
    """Raised when assembling or writing an export artifact fails."""
