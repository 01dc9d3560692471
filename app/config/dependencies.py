"""Service wiring for controllers and the background lesson pipeline.

Each provider builds its collaborator once from :mod:`app.config.settings`
and caches it; tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import HTTPException, Request, status

from app.database import SessionFactory
from app.pipelines.lesson import (
    HttpLessonVisualizer,
    LessonPipeline,
    LessonVisualizer,
    PipelineWorkerPool,
    SceneVisualizer,
)
from app.services.aws import create_boto3_client
from app.services.document_extraction import DocumentTextExtractor
from app.services.image_generation import BedrockImageGenerator
from app.services.llm_client import BedrockTextGenerator, decode_bedrock_api_key
from app.services.speech_synthesis import PollySpeechService
from app.services.storage import StorageGateway
from app.services.transcoding import MediaTranscoder
from app.services.transcribe import TranscribeService
from app.services.upload_repository import UploadRepository

from .settings import settings


def upload_dir() -> Path:
    path = Path(settings.pipeline.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@lru_cache
def get_upload_repository() -> UploadRepository:
    return UploadRepository(SessionFactory)


@lru_cache
def get_storage_gateway() -> StorageGateway:
    client = create_boto3_client("s3", region_name=settings.s3.region)
    return StorageGateway(
        client=client,
        bucket=settings.s3.bucket_name,
        region=settings.s3.region,
        public_base_url=settings.s3.public_base_url,
    )


@lru_cache
def get_transcribe_service() -> TranscribeService:
    config = settings.transcribe
    client = create_boto3_client("transcribe", region_name=config.region)
    return TranscribeService(
        client=client,
        language_options=config.language_options,
        poll_interval=config.poll_interval_seconds,
        timeout=config.timeout_seconds,
    )


@lru_cache
def get_speech_service() -> PollySpeechService:
    config = settings.polly
    client = create_boto3_client("polly", region_name=config.region)
    return PollySpeechService(
        client=client,
        output_dir=upload_dir(),
        voice_id=config.voice_id,
        engine=config.engine,
        language_code=config.language_code,
        rate=config.speaking_rate,
    )


def _bedrock_client():
    api_key = settings.bedrock.api_key
    credentials = decode_bedrock_api_key(api_key.get_secret_value() if api_key else None)
    access_key, secret_key = credentials if credentials else (None, None)
    return create_boto3_client(
        "bedrock-runtime",
        region_name=settings.bedrock.region,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        read_timeout=300,
        max_attempts=3,
    )


@lru_cache
def get_text_generator() -> BedrockTextGenerator:
    config = settings.bedrock
    return BedrockTextGenerator(
        client=_bedrock_client(),
        model_id=config.model_id,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        top_p=config.top_p,
    )


@lru_cache
def get_image_generator() -> BedrockImageGenerator:
    config = settings.bedrock
    return BedrockImageGenerator(
        client=_bedrock_client(),
        model_id=config.image_model_id,
        width=config.image_width,
        height=config.image_height,
    )


@lru_cache
def get_lesson_visualizer() -> LessonVisualizer:
    """In-process visualizer backing the ``/visualize-lesson`` endpoint."""

    config = settings.pipeline
    return LessonVisualizer(
        text_generator=get_text_generator(),
        image_generator=get_image_generator(),
        storage=get_storage_gateway(),
        max_scenes=config.max_scenes,
        image_attempts=config.image_attempts,
        backoff_base_ms=config.backoff_base_ms,
        backoff_cap_ms=config.backoff_cap_ms,
        scene_delay=config.scene_delay_seconds,
    )


def get_pipeline_visualizer() -> SceneVisualizer:
    """Visualizer the background pipeline uses: the HTTP endpoint unless unset."""

    config = settings.pipeline
    if config.visualization_url:
        return HttpLessonVisualizer(
            config.visualization_url,
            timeout=config.visualization_timeout_seconds,
        )
    return get_lesson_visualizer()


@lru_cache
def get_lesson_pipeline() -> LessonPipeline:
    return LessonPipeline(
        repository=get_upload_repository(),
        storage=get_storage_gateway(),
        speech_to_text=get_transcribe_service(),
        text_to_speech=get_speech_service(),
        text_generator=get_text_generator(),
        visualizer=get_pipeline_visualizer(),
        transcoder=MediaTranscoder(settings.pipeline.ffmpeg_path),
        document_extractor=DocumentTextExtractor(),
        language_hint=settings.transcribe.language_hint,
    )


def build_worker_pool() -> PipelineWorkerPool:
    pipeline = get_lesson_pipeline()
    return PipelineWorkerPool(
        pipeline.run,
        workers=settings.pipeline.workers,
        queue_size=settings.pipeline.queue_size,
        on_abandon=pipeline.abandon,
    )


def get_worker_pool(request: Request) -> PipelineWorkerPool:
    pool = getattr(request.app.state, "worker_pool", None)
    if pool is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lesson pipeline is not running",
        )
    return pool


__all__ = [
    "build_worker_pool",
    "get_image_generator",
    "get_lesson_pipeline",
    "get_lesson_visualizer",
    "get_pipeline_visualizer",
    "get_speech_service",
    "get_storage_gateway",
    "get_text_generator",
    "get_transcribe_service",
    "get_upload_repository",
    "get_worker_pool",
    "upload_dir",
]
