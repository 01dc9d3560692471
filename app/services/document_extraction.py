"""Plain-text extraction for uploaded lesson documents.

Extractors are registered per file extension so new formats can be added
without touching the pipeline.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Mapping

from docx import Document
from fastapi.concurrency import run_in_threadpool
from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes], str]


class DocumentExtractionError(RuntimeError):
    """Raised when a document cannot be read as text."""


def extract_docx_text(data: bytes) -> str:
    document = Document(io.BytesIO(data))
    paragraphs = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            paragraphs.append("\t".join(cell.text for cell in row.cells))
    return "\n".join(paragraphs)


def extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


DEFAULT_EXTRACTORS: Mapping[str, Extractor] = {
    ".docx": extract_docx_text,
    ".pdf": extract_pdf_text,
}


class DocumentTextExtractor:
    """Dispatch documents to the extractor registered for their extension."""

    def __init__(self, extractors: Mapping[str, Extractor] | None = None) -> None:
        self._extractors = dict(extractors if extractors is not None else DEFAULT_EXTRACTORS)

    async def extract(self, path: Path | str) -> str:
        path = Path(path)
        extension = path.suffix.lower()
        extractor = self._extractors.get(extension)
        if extractor is None:
            raise DocumentExtractionError(f"No text extractor registered for '{extension}'")

        try:
            data = await run_in_threadpool(path.read_bytes)
            text = await run_in_threadpool(extractor, data)
        except DocumentExtractionError:
            raise
        except Exception as exc:
            # Parser libraries raise a wide range of exception types on corrupt input.
            raise DocumentExtractionError(f"Failed to extract text from {path.name}: {exc}") from exc

        logger.info("Extracted %d characters from %s", len(text), path.name)
        return text


__all__ = [
    "DEFAULT_EXTRACTORS",
    "DocumentExtractionError",
    "DocumentTextExtractor",
    "extract_docx_text",
    "extract_pdf_text",
]
