"""Shared fakes for lesson pipeline and API tests."""

from __future__ import annotations

import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.models.upload import UploadStatus  # noqa: E402
from app.pipelines.lesson import LessonVisualizer  # noqa: E402
from app.pipelines.lesson.prompts import NARRATION_SYSTEM_PROMPT  # noqa: E402
from app.services.image_generation import ImageGenerationError  # noqa: E402
from app.services.storage import StoredObject  # noqa: E402
from app.services.transcribe import Transcript, TranscriptWord  # noqa: E402


def scene_block(number: int, title: str, prompt: str, *, key_idea: bool = True) -> str:
    lines = [
        f"{number}. **Title:** {title}",
        f"**Description:** About {title.lower()}.",
    ]
    if key_idea:
        lines.append(f"**Key Idea:** Remember {title.lower()}.")
    lines.append(f"**Image_prompt:** {prompt}")
    return "\n".join(lines)


FOUR_SCENE_STORY = "Here is the comic breakdown of the lesson.\n\n" + "\n\n".join(
    [
        scene_block(1, "Meet the Cell", "A smiling cell waving hello"),
        scene_block(2, "The Nucleus", "A tiny captain steering a round ship"),
        scene_block(3, "Energy Makers", "Little power plants glowing inside a bubble"),
        scene_block(4, "Working Together", "Cartoon parts of a cell holding hands"),
    ]
)


@dataclass
class FakeRecord:
    owner_id: int
    original_name: str
    category: str
    source_link: str
    status: UploadStatus = UploadStatus.PROCESSING
    transcript: Any = None
    extracted_text: str | None = None
    audio_link: str | None = None
    blind_friendly_link: str | None = None
    dyslexia_friendly: Any = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


class InMemoryUploadRepository:
    """Dictionary-backed stand-in honouring the guarded write rules."""

    def __init__(self) -> None:
        self.records: dict[uuid.UUID, FakeRecord] = {}
        self.progress_writes: list[dict[str, Any]] = []

    async def create(self, *, owner_id, original_name, category, source_link) -> FakeRecord:
        record = FakeRecord(
            owner_id=owner_id,
            original_name=original_name,
            category=category,
            source_link=source_link,
        )
        self.records[record.id] = record
        return record

    def add(self, **kwargs: Any) -> FakeRecord:
        record = FakeRecord(**kwargs)
        self.records[record.id] = record
        return record

    async def get(self, record_id):
        return self.records.get(record_id)

    async def list_for_owner(self, owner_id):
        return [record for record in self.records.values() if record.owner_id == owner_id]

    async def claim(self, record_id) -> bool:
        return self._apply(record_id, {})

    async def record_progress(self, record_id, **fields) -> bool:
        self.progress_writes.append(dict(fields))
        return self._apply(record_id, fields)

    async def finish(self, record_id, status, **fields) -> bool:
        if not status.is_terminal:
            raise ValueError("finish() requires a terminal status")
        return self._apply(record_id, {**fields, "status": status})

    async def fail_stale(self, older_than: timedelta) -> int:
        cutoff = datetime.utcnow() - older_than
        stale = [
            record
            for record in self.records.values()
            if record.status is UploadStatus.PROCESSING and record.updated_at < cutoff
        ]
        for record in stale:
            record.status = UploadStatus.FAILED
        return len(stale)

    def _apply(self, record_id, fields: dict[str, Any]) -> bool:
        record = self.records.get(record_id)
        if record is None or record.status is not UploadStatus.PROCESSING:
            return False
        for name, value in fields.items():
            if value is not None:
                setattr(record, name, value)
        record.updated_at = datetime.utcnow()
        return True


class FakeStorage:
    def __init__(self) -> None:
        self.uploads: list[tuple[str, str]] = []

    async def upload(self, source, category, *, filename=None, content_type=None) -> StoredObject:
        name = filename or (Path(source).name if not isinstance(source, bytes) else "blob")
        key = f"{category}/{name}"
        self.uploads.append((category, name))
        return StoredObject(
            key=key,
            public_url=f"https://cdn.example.com/{key}",
            storage_uri=f"s3://lesson-bucket/{key}",
        )


class FakeTextGenerator:
    """Returns a narration for the rewrite prompt and a scene story otherwise."""

    def __init__(self, narration: str = "Narrated lesson about cells.", story: str = FOUR_SCENE_STORY) -> None:
        self.narration = narration
        self.story = story
        self.calls: list[tuple[str, str | None]] = []
        self.error: Exception | None = None

    async def generate(self, prompt, *, system_prompt=None, max_tokens=None, temperature=None) -> str:
        self.calls.append((prompt, system_prompt))
        if self.error is not None:
            raise self.error
        if system_prompt == NARRATION_SYSTEM_PROMPT:
            return self.narration
        return self.story


class FakeImageGenerator:
    """Fails every attempt for prompts containing one of ``failing`` fragments."""

    def __init__(self, failing: tuple[str, ...] = (), transient_failures: int = 0) -> None:
        self.failing = failing
        self.transient_failures = transient_failures
        self.calls: list[str] = []

    async def generate(self, prompt: str) -> bytes:
        self.calls.append(prompt)
        if any(fragment in prompt for fragment in self.failing):
            raise ImageGenerationError("model throttled")
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise ImageGenerationError("temporary outage")
        return b"\x89PNG fake image"


class FakeSpeechToText:
    def __init__(self, text: str = "Cells are the building blocks of life.") -> None:
        self.text = text
        self.calls: list[str] = []

    async def transcribe(self, storage_uri, *, language_hint="en", media_format="mp3") -> Transcript:
        self.calls.append(storage_uri)
        words = tuple(
            TranscriptWord(word=word, start_time=float(index), end_time=index + 0.5)
            for index, word in enumerate(self.text.split())
        )
        return Transcript(text=self.text, words=words, detected_language="en-US")


class FakeTextToSpeech:
    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.calls: list[str] = []

    async def synthesize_to_file(self, text: str) -> Path:
        self.calls.append(text)
        path = self.output_dir / f"narration-{len(self.calls)}.mp3"
        path.write_bytes(b"ID3 fake mp3")
        return path


class FakeTranscoder:
    async def extract_audio(self, video_path, *, codec="libmp3lame", extension="mp3") -> Path:
        video_path = Path(video_path)
        audio_path = video_path.with_name(f"{video_path.stem}-audio.{extension}")
        audio_path.write_bytes(b"ID3 extracted")
        return audio_path


class FakeExtractor:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[Path] = []

    async def extract(self, path) -> str:
        self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        return self.text


async def no_sleep(_seconds: float) -> None:
    return None


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def repository() -> InMemoryUploadRepository:
    return InMemoryUploadRepository()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def visualizer(text_generator, image_generator, storage) -> LessonVisualizer:
    return LessonVisualizer(
        text_generator=text_generator,
        image_generator=image_generator,
        storage=storage,
        sleep=no_sleep,
    )
