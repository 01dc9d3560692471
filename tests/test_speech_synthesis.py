"""Polly narration chunking and file output."""

from __future__ import annotations

import asyncio
import io

import pytest

from app.services.speech_synthesis import PollySpeechService, SpeechSynthesisError, split_for_synthesis


def test_short_text_is_one_chunk():
    assert split_for_synthesis("Plants need light. They also need water.") == [
        "Plants need light. They also need water."
    ]


def test_chunks_break_on_sentences_and_respect_limit():
    sentence = "Photosynthesis turns light into food."
    text = " ".join([sentence] * 10)

    chunks = split_for_synthesis(text, limit=80)

    assert all(len(chunk) <= 80 for chunk in chunks)
    assert all(chunk.endswith(".") for chunk in chunks)
    assert " ".join(chunks) == text


def test_overlong_sentence_is_hard_wrapped():
    text = " ".join(["word"] * 50)

    chunks = split_for_synthesis(text, limit=30)

    assert all(len(chunk) <= 30 for chunk in chunks)
    assert " ".join(chunks) == text


class FakePollyClient:
    def __init__(self) -> None:
        self.requests = []

    def synthesize_speech(self, **request):
        self.requests.append(request)
        return {"AudioStream": io.BytesIO(b"mp3-" + str(len(self.requests)).encode())}


def test_synthesize_writes_mp3_with_ssml_prosody(tmp_path):
    client = FakePollyClient()
    service = PollySpeechService(client=client, output_dir=tmp_path, voice_id="Kajal", language_code="en-IN")

    path = asyncio.run(service.synthesize_to_file("Cells are small. Cells are alive. Cells <grow> & divide."))

    assert path.parent == tmp_path
    assert path.suffix == ".mp3"
    assert path.read_bytes() == b"".join(b"mp3-" + str(i).encode() for i in range(1, len(client.requests) + 1))
    first = client.requests[0]
    assert first["TextType"] == "ssml"
    assert first["Text"].startswith('<speak><prosody rate="90%">')
    assert first["OutputFormat"] == "mp3"
    assert first["VoiceId"] == "Kajal"
    assert first["LanguageCode"] == "en-IN"
    assert any("&lt;grow&gt; &amp; divide." in request["Text"] for request in client.requests)


def test_blank_text_is_rejected(tmp_path):
    service = PollySpeechService(client=FakePollyClient(), output_dir=tmp_path, voice_id="Kajal")

    with pytest.raises(SpeechSynthesisError):
        asyncio.run(service.synthesize_to_file("   "))
