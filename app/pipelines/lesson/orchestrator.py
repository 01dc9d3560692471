"""Background orchestration of one uploaded lesson file.

Each run owns the upload's local file and always leaves the record in a
terminal state. A job whose record is already terminal when a worker
picks it up (e.g. swept as stale while queued) is dropped unprocessed.

* **video**: extract audio → upload video and audio → transcribe →
  narration rewrite → TTS → scenes → completed;
* **document**: extract text → (empty: completed without generation) →
  narration rewrite → TTS → scenes → upload original → completed;
* **other**: nothing to generate → completed.

Any unexpected error is caught once at the top, the local file is removed
and the record is marked failed. There are no retries at this level; image
retries live inside the visualization stage.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from app.models.upload import UploadStatus
from app.services.document_extraction import DocumentExtractionError
from app.telemetry import record_pipeline_run, stage_timer

from .prompts import NARRATION_SYSTEM_PROMPT, build_narration_prompt
from .types import FileCategory, PipelineJob, VisualizationResult

logger = logging.getLogger(__name__)

# Source media, extracted audio and narration all share the audio prefix.
SOURCE_CATEGORY = "audio"


def discard_local_file(path: Path | None) -> None:
    """Remove a temporary file or directory if it still exists."""

    if path is None:
        return
    try:
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete temporary file %s: %s", path, exc)


@contextmanager
def owned_local_file(path: Path) -> Iterator[Path]:
    """Hold ``path`` for the duration of a run and delete it on every exit path."""

    try:
        yield path
    finally:
        discard_local_file(path)


@dataclass(frozen=True)
class AccessibleVariants:
    """Generated narration, its audio and its illustrated scenes."""

    narration: str
    narration_audio_url: str
    visualization: VisualizationResult


class LessonPipeline:
    """Run the processing branch that matches an upload's file category."""

    def __init__(
        self,
        *,
        repository: Any,
        storage: Any,
        speech_to_text: Any,
        text_to_speech: Any,
        text_generator: Any,
        visualizer: Any,
        transcoder: Any,
        document_extractor: Any,
        language_hint: str = "en",
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._speech_to_text = speech_to_text
        self._text_to_speech = text_to_speech
        self._text_generator = text_generator
        self._visualizer = visualizer
        self._transcoder = transcoder
        self._document_extractor = document_extractor
        self._language_hint = language_hint

    async def run(self, job: PipelineJob) -> UploadStatus:
        """Process ``job`` and return the terminal status that was written."""

        with owned_local_file(job.local_path):
            if not await self._repository.claim(job.record_id):
                return await self._skip(job)
            logger.info(
                "Pipeline started record=%s owner=%s category=%s file=%s",
                job.record_id,
                job.owner_id,
                job.category.value,
                job.original_name,
            )
            try:
                if job.category is FileCategory.VIDEO:
                    status = await self._process_video(job)
                elif job.category is FileCategory.DOCUMENT:
                    status = await self._process_document(job)
                else:
                    status = await self._process_unclassified(job)
            except Exception:
                logger.exception("Background processing failed record=%s", job.record_id)
                discard_local_file(job.local_path)
                await self._finish(job, UploadStatus.FAILED)
                status = UploadStatus.FAILED

        record_pipeline_run(job.category.value, status.value)
        logger.info("Pipeline finished record=%s status=%s", job.record_id, status.value)
        return status

    async def abandon(self, job: PipelineJob) -> UploadStatus:
        """Fail a job that will never be run, e.g. one still queued at shutdown."""

        discard_local_file(job.local_path)
        status = await self._finish(job, UploadStatus.FAILED)
        record_pipeline_run(job.category.value, status.value)
        logger.warning("Abandoned queued record=%s", job.record_id)
        return status

    async def _skip(self, job: PipelineJob) -> UploadStatus:
        record = await self._repository.get(job.record_id)
        status = record.status if record is not None else UploadStatus.FAILED
        logger.warning(
            "Skipping record=%s: no longer processing (status=%s)",
            job.record_id,
            "missing" if record is None else status.value,
        )
        return status

    async def _process_video(self, job: PipelineJob) -> UploadStatus:
        audio_path: Path | None = None
        try:
            with stage_timer("transcoding"):
                audio_path = await self._transcoder.extract_audio(job.local_path)
            with stage_timer("upload"):
                video = await self._storage.upload(job.local_path, SOURCE_CATEGORY)
                audio = await self._storage.upload(audio_path, SOURCE_CATEGORY)
        finally:
            discard_local_file(audio_path)
        discard_local_file(job.local_path)

        with stage_timer("transcription"):
            transcript = await self._speech_to_text.transcribe(
                audio.storage_uri,
                language_hint=self._language_hint,
            )
        transcript_payload = transcript.to_payload()
        await self._repository.record_progress(
            job.record_id,
            audio_link=audio.public_url,
            transcript=transcript_payload,
        )

        if not transcript.text.strip():
            logger.info("Empty transcript record=%s; skipping generation", job.record_id)
            return await self._finish(
                job,
                UploadStatus.COMPLETED,
                source_link=video.public_url,
                audio_link=audio.public_url,
                transcript=transcript_payload,
            )

        variants = await self._accessible_variants(job, transcript.text)
        return await self._finish(
            job,
            UploadStatus.COMPLETED,
            source_link=video.public_url,
            audio_link=audio.public_url,
            blind_friendly_link=variants.narration_audio_url,
            transcript=transcript_payload,
            extracted_text=variants.narration,
            dyslexia_friendly=variants.visualization.scene_payloads(),
        )

    async def _process_document(self, job: PipelineJob) -> UploadStatus:
        try:
            with stage_timer("extraction"):
                text = await self._document_extractor.extract(job.local_path)
        except DocumentExtractionError:
            logger.exception("Document extraction failed record=%s", job.record_id)
            discard_local_file(job.local_path)
            return await self._finish(job, UploadStatus.FAILED)

        if not text or not text.strip():
            logger.info(
                "No text extracted record=%s; file might be scanned or empty",
                job.record_id,
            )
            discard_local_file(job.local_path)
            return await self._finish(job, UploadStatus.COMPLETED, extracted_text=None)

        variants = await self._accessible_variants(job, text.strip())

        with stage_timer("upload"):
            original = await self._storage.upload(job.local_path, SOURCE_CATEGORY)
        discard_local_file(job.local_path)

        return await self._finish(
            job,
            UploadStatus.COMPLETED,
            source_link=original.public_url,
            blind_friendly_link=variants.narration_audio_url,
            extracted_text=variants.narration,
            dyslexia_friendly=variants.visualization.scene_payloads(),
        )

    async def _process_unclassified(self, job: PipelineJob) -> UploadStatus:
        logger.info("No processing defined for %s record=%s", job.original_name, job.record_id)
        discard_local_file(job.local_path)
        return await self._finish(job, UploadStatus.COMPLETED)

    async def _accessible_variants(self, job: PipelineJob, text: str) -> AccessibleVariants:
        with stage_timer("narration"):
            narration = await self._text_generator.generate(
                build_narration_prompt(text),
                system_prompt=NARRATION_SYSTEM_PROMPT,
            )
        await self._repository.record_progress(job.record_id, extracted_text=narration)

        with stage_timer("speech_synthesis"):
            narration_audio_url = await self._synthesize(narration)
        await self._repository.record_progress(
            job.record_id,
            blind_friendly_link=narration_audio_url,
        )

        with stage_timer("visualization"):
            visualization = await self._visualizer.visualize(narration)
        logger.info(
            "Scenes ready record=%s illustrated=%d/%d",
            job.record_id,
            visualization.successful_scenes,
            visualization.total_scenes,
        )
        return AccessibleVariants(
            narration=narration,
            narration_audio_url=narration_audio_url,
            visualization=visualization,
        )

    async def _synthesize(self, text: str) -> str:
        audio_path = await self._text_to_speech.synthesize_to_file(text)
        try:
            stored = await self._storage.upload(audio_path, SOURCE_CATEGORY)
        finally:
            discard_local_file(audio_path)
        return stored.public_url

    async def _finish(
        self,
        job: PipelineJob,
        status: UploadStatus,
        **fields: Any,
    ) -> UploadStatus:
        applied = await self._repository.finish(job.record_id, status, **fields)
        if not applied:
            logger.warning(
                "Record %s was already terminal; dropped %s result",
                job.record_id,
                status.value,
            )
        return status


__all__ = ["LessonPipeline", "discard_local_file", "owned_local_file"]
