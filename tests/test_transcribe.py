"""Amazon Transcribe result parsing and job polling."""

from __future__ import annotations

import asyncio

import pytest

from app.services.transcribe import TranscribeService, TranscriptionError, parse_transcribe_output

from conftest import no_sleep

RESULT_DOCUMENT = {
    "jobName": "lesson-1",
    "results": {
        "language_code": "en-IN",
        "transcripts": [{"transcript": "Plants need light."}],
        "items": [
            {
                "type": "pronunciation",
                "start_time": "0.04",
                "end_time": "0.51",
                "alternatives": [{"confidence": "0.99", "content": "Plants"}],
            },
            {
                "type": "pronunciation",
                "start_time": "0.51",
                "end_time": "0.80",
                "alternatives": [{"confidence": "0.98", "content": "need"}],
            },
            {
                "type": "pronunciation",
                "start_time": "0.80",
                "end_time": "1.20",
                "alternatives": [{"confidence": "0.97", "content": "light"}],
            },
            {"type": "punctuation", "alternatives": [{"content": "."}]},
        ],
    },
}


def test_parse_output_builds_word_timings():
    transcript = parse_transcribe_output(RESULT_DOCUMENT)

    assert transcript.text == "Plants need light."
    assert transcript.detected_language == "en-IN"
    assert [word.word for word in transcript.words] == ["Plants", "need", "light"]
    assert transcript.to_payload()["words"][0] == {"word": "Plants", "startTime": 0.04, "endTime": 0.51}
    assert transcript.to_payload()["transcription"] == "Plants need light."


def test_job_language_overrides_result_language():
    assert parse_transcribe_output(RESULT_DOCUMENT, "hi-IN").detected_language == "hi-IN"


def test_parse_output_rejects_documents_without_results():
    with pytest.raises(TranscriptionError):
        parse_transcribe_output({"status": "COMPLETED"})


class FakeTranscribeClient:
    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.started = None

    def start_transcription_job(self, **request):
        self.started = request
        return {}

    def get_transcription_job(self, TranscriptionJobName):
        status = self.statuses.pop(0)
        job = {"TranscriptionJobName": TranscriptionJobName, "TranscriptionJobStatus": status}
        if status == "FAILED":
            job["FailureReason"] = "Unsupported media"
        return {"TranscriptionJob": job}


def test_failed_job_raises_with_reason():
    client = FakeTranscribeClient(["IN_PROGRESS", "FAILED"])
    service = TranscribeService(client=client, language_options=["en-US", "en-IN", "hi-IN"], sleep=no_sleep)

    with pytest.raises(TranscriptionError, match="Unsupported media"):
        asyncio.run(service.transcribe("s3://bucket/audio/a.mp3", language_hint="en"))

    assert client.started["IdentifyLanguage"] is True
    assert client.started["PreferredLanguage"] == "en-US"
    assert client.started["Media"] == {"MediaFileUri": "s3://bucket/audio/a.mp3"}


def test_single_language_option_uses_language_code():
    client = FakeTranscribeClient(["FAILED"])
    service = TranscribeService(client=client, language_options=["hi-IN"], sleep=no_sleep)

    with pytest.raises(TranscriptionError):
        asyncio.run(service.transcribe("s3://bucket/audio/a.mp3", language_hint="hi"))

    assert client.started["LanguageCode"] == "hi-IN"
    assert "IdentifyLanguage" not in client.started


def test_non_s3_locations_are_rejected():
    service = TranscribeService(client=FakeTranscribeClient([]), language_options=["en-US"])

    with pytest.raises(TranscriptionError):
        asyncio.run(service.transcribe("https://example.com/a.mp3"))
