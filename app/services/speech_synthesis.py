"""Amazon Polly text-to-speech for narrated lesson audio."""

from __future__ import annotations

import logging
import re
import time
from html import escape as html_escape
from pathlib import Path
from typing import Any, Iterator
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

# Polly caps a single request at 3000 billed characters; SSML tags count too.
_MAX_CHUNK_CHARS = 2500
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class SpeechSynthesisError(RuntimeError):
    """Raised when the Polly synthesis fails."""


def split_for_synthesis(text: str, limit: int = _MAX_CHUNK_CHARS) -> list[str]:
    """Split ``text`` into chunks no longer than ``limit``, preferring sentence ends."""

    chunks: list[str] = []
    current = ""
    for sentence in _SENTENCE_BOUNDARY.split(text.strip()):
        for piece in _hard_wrap(sentence, limit):
            candidate = f"{current} {piece}".strip() if current else piece
            if len(candidate) <= limit:
                current = candidate
                continue
            chunks.append(current)
            current = piece
    if current:
        chunks.append(current)
    return chunks


def _hard_wrap(sentence: str, limit: int) -> Iterator[str]:
    while len(sentence) > limit:
        cut = sentence.rfind(" ", 0, limit)
        if cut <= 0:
            cut = limit
        yield sentence[:cut].strip()
        sentence = sentence[cut:].strip()
    if sentence:
        yield sentence


class PollySpeechService:
    """Generate MP3 narration with Amazon Polly and write it to disk."""

    def __init__(
        self,
        *,
        client: Any,
        output_dir: Path | str,
        voice_id: str,
        engine: str = "neural",
        language_code: str | None = None,
        rate: float = 0.9,
    ) -> None:
        self._client = client
        self._output_dir = Path(output_dir)
        self._voice_id = voice_id
        self._engine = engine
        self._language_code = language_code
        self._rate = rate

    async def synthesize_to_file(self, text: str) -> Path:
        """Synthesize ``text`` and return the path of the written MP3 file.

        The caller owns the returned file and is expected to remove it once it
        has been persisted elsewhere.
        """

        chunks = split_for_synthesis(text)
        if not chunks:
            raise SpeechSynthesisError("Cannot synthesize empty text.")

        audio = bytearray()
        for chunk in chunks:
            audio.extend(await self._synthesize_chunk(chunk))

        self._output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self._output_dir / f"{int(time.time() * 1000)}-{uuid4().hex[:8]}-narration.mp3"
        try:
            await run_in_threadpool(output_path.write_bytes, bytes(audio))
        except OSError as exc:
            raise SpeechSynthesisError(f"Failed to write synthesized audio: {exc}") from exc

        logger.info(
            "Synthesized %d chunk(s) into %s (%d bytes)",
            len(chunks),
            output_path.name,
            len(audio),
        )
        return output_path

    def _build_ssml(self, text: str) -> str:
        rate_pct = max(20, min(200, int(round(self._rate * 100))))
        if rate_pct != 100:
            return f'<speak><prosody rate="{rate_pct}%">{html_escape(text)}</prosody></speak>'
        return f"<speak>{html_escape(text)}</speak>"

    async def _synthesize_chunk(self, text: str) -> bytes:
        request: dict[str, Any] = {
            "TextType": "ssml",
            "Text": self._build_ssml(text),
            "VoiceId": self._voice_id,
            "Engine": self._engine,
            "OutputFormat": "mp3",
        }
        if self._language_code:
            request["LanguageCode"] = self._language_code

        try:
            response: dict[str, Any] = await run_in_threadpool(
                self._client.synthesize_speech,
                **request,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Polly synth failed for voice '%s'", self._voice_id)
            raise SpeechSynthesisError(f"Failed to synthesize speech: {exc}") from exc

        audio_stream = response.get("AudioStream")
        if audio_stream is None:
            raise SpeechSynthesisError("Polly returned no audio stream.")
        audio_bytes = audio_stream.read()
        if not audio_bytes:
            raise SpeechSynthesisError("Polly returned an empty audio stream.")
        return audio_bytes


__all__ = ["PollySpeechService", "SpeechSynthesisError", "split_for_synthesis"]
