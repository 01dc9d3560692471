"""Pluggable per-extension document text extraction."""

from __future__ import annotations

import asyncio

import pytest
from docx import Document

from app.services.document_extraction import DocumentExtractionError, DocumentTextExtractor


def test_docx_paragraphs_and_tables(tmp_path):
    document = Document()
    document.add_paragraph("Hello world.")
    document.add_paragraph("Plants need light.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Leaf"
    table.rows[0].cells[1].text = "Makes food"
    path = tmp_path / "lesson.docx"
    document.save(str(path))

    text = asyncio.run(DocumentTextExtractor().extract(path))

    assert "Hello world.\nPlants need light." in text
    assert "Leaf\tMakes food" in text


def test_corrupt_document_raises_extraction_error(tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"this is not a zip archive")

    with pytest.raises(DocumentExtractionError, match="broken.docx"):
        asyncio.run(DocumentTextExtractor().extract(path))


def test_unregistered_extension_raises(tmp_path):
    path = tmp_path / "notes.odt"
    path.write_bytes(b"data")

    with pytest.raises(DocumentExtractionError, match=".odt"):
        asyncio.run(DocumentTextExtractor().extract(path))


def test_custom_extractors_can_be_registered(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("plain notes", encoding="utf-8")
    extractor = DocumentTextExtractor({".txt": lambda data: data.decode("utf-8")})

    assert asyncio.run(extractor.extract(path)) == "plain notes"
