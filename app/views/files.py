"""Pydantic schemas for lesson file uploads and scene visualization."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.upload import UploadStatus


class UploadRecordResponse(BaseModel):
    """Full view of an upload record and its generated variants."""

    id: UUID
    original_name: str = Field(serialization_alias="originalName")
    category: str
    source_link: str = Field(serialization_alias="sourceLink")
    status: UploadStatus
    transcript: Optional[dict[str, Any]] = None
    extracted_text: Optional[str] = Field(default=None, serialization_alias="extractedText")
    audio_link: Optional[str] = Field(default=None, serialization_alias="audioLink")
    blind_friendly_link: Optional[str] = Field(
        default=None,
        serialization_alias="blindFriendlyLink",
    )
    dyslexia_friendly: Optional[list[dict[str, Any]]] = Field(
        default=None,
        serialization_alias="dyslexiaFriendly",
    )
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UploadAcceptedResponse(BaseModel):
    """Returned as soon as the upload is stored and queued."""

    message: str = "File uploaded successfully! Background processing started."
    file: UploadRecordResponse


class UploadStatusResponse(BaseModel):
    status: UploadStatus
    message: str


class VisualizeLessonRequest(BaseModel):
    text: Optional[str] = None


class SceneResponse(BaseModel):
    title: str
    description: str
    key_idea: str = Field(serialization_alias="keyIdea")
    image_prompt: str = Field(serialization_alias="imagePrompt")
    image_url: Optional[str] = Field(default=None, serialization_alias="imageUrl")
    file_name: Optional[str] = Field(default=None, serialization_alias="fileName")
    scene_number: int = Field(serialization_alias="sceneNumber")
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class VisualizeLessonResponse(BaseModel):
    scenes: list[SceneResponse]
    message: str
    total_scenes: int = Field(serialization_alias="totalScenes")
    successful_scenes: int = Field(serialization_alias="successfulScenes")
    full_story: str = Field(serialization_alias="fullStory")


__all__ = [
    "SceneResponse",
    "UploadAcceptedResponse",
    "UploadRecordResponse",
    "UploadStatusResponse",
    "VisualizeLessonRequest",
    "VisualizeLessonResponse",
]
