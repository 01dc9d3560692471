"""Service layer helpers for external integrations."""

from .document_extraction import DocumentExtractionError, DocumentTextExtractor
from .image_generation import BedrockImageGenerator, ImageGenerationError
from .llm_client import BedrockTextGenerator, TextGenerationError
from .speech_synthesis import PollySpeechService, SpeechSynthesisError
from .storage import StorageError, StorageGateway, StoredObject
from .transcoding import MediaTranscoder, TranscodingError
from .transcribe import Transcript, TranscribeService, TranscriptionError, TranscriptWord
from .upload_repository import UnknownFieldError, UploadRepository

__all__ = [
    "BedrockImageGenerator",
    "BedrockTextGenerator",
    "DocumentExtractionError",
    "DocumentTextExtractor",
    "ImageGenerationError",
    "MediaTranscoder",
    "PollySpeechService",
    "SpeechSynthesisError",
    "StorageError",
    "StorageGateway",
    "StoredObject",
    "TextGenerationError",
    "Transcript",
    "TranscribeService",
    "TranscriptWord",
    "TranscriptionError",
    "TranscodingError",
    "UnknownFieldError",
    "UploadRepository",
]
