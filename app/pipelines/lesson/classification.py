"""Upload classification helpers (Stage 00 of the lesson pipeline)."""

from __future__ import annotations

from pathlib import PurePath
from typing import Final

from .types import FileCategory

VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {
        ".mp4",
        ".mov",
        ".avi",
        ".mkv",
        ".webm",
        ".flv",
        ".wmv",
        ".m4v",
        ".mpg",
        ".mpeg",
        ".3gp",
        ".ts",  # MPEG transport stream
        ".vob",
        ".ogv",
    }
)

DOCUMENT_EXTENSIONS: Final[frozenset[str]] = frozenset({".pdf", ".docx"})


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def classify_file(filename: str) -> FileCategory:
    """Map a file name to the pipeline branch that will process it."""

    extension = file_extension(filename)
    if extension in VIDEO_EXTENSIONS:
        return FileCategory.VIDEO
    if extension in DOCUMENT_EXTENSIONS:
        return FileCategory.DOCUMENT
    return FileCategory.OTHER


__all__ = ["DOCUMENT_EXTENSIONS", "VIDEO_EXTENSIONS", "classify_file", "file_extension"]
