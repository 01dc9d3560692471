"""Amazon Transcribe integration helpers using batch transcription jobs."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence
from uuid import uuid4

import httpx
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptWord:
    """One recognised word with its offsets in seconds."""

    word: str
    start_time: float
    end_time: float


@dataclass(frozen=True)
class Transcript:
    """Structured transcription outcome stored on the upload record."""

    text: str
    words: tuple[TranscriptWord, ...] = field(default_factory=tuple)
    detected_language: str = "unknown"

    def to_payload(self) -> dict[str, Any]:
        return {
            "transcription": self.text,
            "words": [
                {
                    "word": word.word,
                    "startTime": word.start_time,
                    "endTime": word.end_time,
                }
                for word in self.words
            ],
            "detectedLanguage": self.detected_language,
        }


class TranscriptionError(RuntimeError):
    """Raised when Amazon Transcribe fails to process audio successfully."""


def parse_transcribe_output(
    payload: Mapping[str, Any],
    language_code: str | None = None,
) -> Transcript:
    """Turn an Amazon Transcribe result document into a :class:`Transcript`."""

    results = payload.get("results")
    if not isinstance(results, Mapping):
        raise TranscriptionError("Transcription result has no 'results' section.")

    transcripts = results.get("transcripts") or []
    text = " ".join(
        str(entry.get("transcript", "")).strip()
        for entry in transcripts
        if isinstance(entry, Mapping)
    ).strip()

    words: list[TranscriptWord] = []
    for item in results.get("items") or []:
        if not isinstance(item, Mapping) or item.get("type") != "pronunciation":
            continue
        alternatives = item.get("alternatives") or []
        if not alternatives:
            continue
        try:
            words.append(
                TranscriptWord(
                    word=str(alternatives[0].get("content", "")),
                    start_time=float(item.get("start_time", 0.0)),
                    end_time=float(item.get("end_time", 0.0)),
                )
            )
        except (TypeError, ValueError):
            logger.debug("Skipping malformed transcript item: %s", item)

    detected = language_code or results.get("language_code") or "unknown"
    return Transcript(text=text, words=tuple(words), detected_language=str(detected))


class TranscribeService:
    """High-level facade for running Amazon Transcribe jobs on stored audio."""

    def __init__(
        self,
        *,
        client: Any,
        language_options: Sequence[str],
        poll_interval: float = 5.0,
        timeout: float = 1800.0,
        http_timeout: float = 60.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._language_options = list(language_options)
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._http_timeout = http_timeout
        self._sleep = sleep

    async def transcribe(
        self,
        storage_uri: str,
        *,
        language_hint: str = "en",
        media_format: str = "mp3",
    ) -> Transcript:
        """Transcribe the object at ``storage_uri`` (an ``s3://`` URI)."""

        if not storage_uri.startswith("s3://"):
            raise TranscriptionError(f"Unsupported media location: {storage_uri}")

        job_name = f"lesson-{uuid4().hex}"
        request: dict[str, Any] = {
            "TranscriptionJobName": job_name,
            "Media": {"MediaFileUri": storage_uri},
            "MediaFormat": media_format,
        }
        preferred = self._preferred_language(language_hint)
        if len(self._language_options) >= 2:
            request["IdentifyLanguage"] = True
            request["LanguageOptions"] = self._language_options
            if preferred:
                request["PreferredLanguage"] = preferred
        else:
            request["LanguageCode"] = preferred or "en-US"

        try:
            await run_in_threadpool(self._client.start_transcription_job, **request)
        except (BotoCoreError, ClientError) as exc:
            raise TranscriptionError(f"Failed to start transcription job: {exc}") from exc

        logger.info("Started transcription job %s for %s", job_name, storage_uri)
        job = await self._wait_for_job(job_name)

        transcript_uri = (job.get("Transcript") or {}).get("TranscriptFileUri")
        if not transcript_uri:
            raise TranscriptionError(f"Job {job_name} completed without a transcript file.")

        payload = await self._download_result(transcript_uri)
        transcript = parse_transcribe_output(payload, job.get("LanguageCode"))
        logger.info(
            "Transcription complete job=%s language=%s words=%d",
            job_name,
            transcript.detected_language,
            len(transcript.words),
        )
        return transcript

    def _preferred_language(self, hint: str) -> str | None:
        hint = (hint or "").strip()
        if not hint:
            return None
        for option in self._language_options:
            if option.lower() == hint.lower() or option.lower().startswith(f"{hint.lower()}-"):
                return option
        return None

    async def _wait_for_job(self, job_name: str) -> Mapping[str, Any]:
        deadline = time.monotonic() + self._timeout
        while True:
            try:
                response = await run_in_threadpool(
                    self._client.get_transcription_job,
                    TranscriptionJobName=job_name,
                )
            except (BotoCoreError, ClientError) as exc:
                raise TranscriptionError(f"Failed to poll job {job_name}: {exc}") from exc

            job = response.get("TranscriptionJob") or {}
            status = job.get("TranscriptionJobStatus")
            if status == "COMPLETED":
                return job
            if status == "FAILED":
                reason = job.get("FailureReason") or "unknown reason"
                raise TranscriptionError(f"Transcription job {job_name} failed: {reason}")
            if time.monotonic() >= deadline:
                raise TranscriptionError(f"Transcription job {job_name} timed out.")
            await self._sleep(self._poll_interval)

    async def _download_result(self, uri: str) -> Mapping[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._http_timeout) as client:
                response = await client.get(uri)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TranscriptionError(f"Failed to download transcript: {exc}") from exc


__all__ = [
    "TranscribeService",
    "Transcript",
    "TranscriptWord",
    "TranscriptionError",
    "parse_transcribe_output",
]
