"""Extension-based routing of uploads."""

from __future__ import annotations

import pytest

from app.pipelines.lesson import FileCategory, classify_file


@pytest.mark.parametrize(
    "filename",
    ["lecture.mp4", "CLIP.MOV", "1712000000000-talk.mkv", "stream.ts", "old.vob", "intro.ogv"],
)
def test_video_extensions(filename):
    assert classify_file(filename) is FileCategory.VIDEO


@pytest.mark.parametrize("filename", ["notes.docx", "Chapter.PDF"])
def test_document_extensions(filename):
    assert classify_file(filename) is FileCategory.DOCUMENT


@pytest.mark.parametrize("filename", ["slides.pptx", "notes.doc", "README", "archive.tar.gz"])
def test_everything_else_is_other(filename):
    assert classify_file(filename) is FileCategory.OTHER
