"""Typed containers shared across the lesson pipeline.

These dataclasses live in their own module so the stages (`scenes`,
`visualization`, `orchestrator`) and the HTTP layer can import them without
creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping
from uuid import UUID


class FileCategory(str, Enum):
    """Processing branch an upload is routed to, decided once from its extension."""

    VIDEO = "video"
    DOCUMENT = "document"
    OTHER = "other"


@dataclass(frozen=True)
class Scene:
    """One illustrated segment of a lesson."""

    title: str
    description: str
    key_idea: str
    image_prompt: str
    scene_number: int
    image_url: str | None = None
    file_name: str | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "keyIdea": self.key_idea,
            "imagePrompt": self.image_prompt,
            "imageUrl": self.image_url,
            "fileName": self.file_name,
            "sceneNumber": self.scene_number,
        }
        if self.error:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Scene":
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            key_idea=str(data.get("keyIdea") or ""),
            image_prompt=str(data.get("imagePrompt") or ""),
            scene_number=int(data.get("sceneNumber") or 0),
            image_url=data.get("imageUrl"),
            file_name=data.get("fileName"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class VisualizationResult:
    """Scenes produced for a narration, with per-scene image outcomes."""

    scenes: tuple[Scene, ...]
    full_story: str = ""

    @property
    def total_scenes(self) -> int:
        return len(self.scenes)

    @property
    def successful_scenes(self) -> int:
        return sum(1 for scene in self.scenes if scene.image_url)

    @property
    def message(self) -> str:
        return (
            "Lesson visualization generated with "
            f"{self.successful_scenes}/{self.total_scenes} scenes"
        )

    def scene_payloads(self) -> list[dict[str, Any]]:
        return [scene.to_payload() for scene in self.scenes]


@dataclass(frozen=True)
class PipelineJob:
    """Work item handed from the upload handler to the background workers."""

    record_id: UUID
    local_path: Path
    original_name: str
    category: FileCategory
    owner_id: int | None = field(default=None, compare=False)


__all__ = ["FileCategory", "PipelineJob", "Scene", "VisualizationResult"]
