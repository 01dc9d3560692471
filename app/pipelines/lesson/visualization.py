"""Scene visualization stage of the lesson pipeline.

Turns narration text into up to four illustrated scenes. Images are produced
one scene at a time with a pause in between to stay under the image model's
rate limits; a scene whose image cannot be produced keeps its text and an
error message, and never aborts the other scenes.
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Protocol, Sequence

import httpx

from app.services.image_generation import ImageGenerationError
from app.services.storage import StorageError
from app.telemetry import record_scene_image

from .prompts import SCENE_SYSTEM_PROMPT, build_scene_prompt, styled_image_prompt
from .scenes import MAX_SCENES, parse_scenes
from .types import Scene, VisualizationResult

logger = logging.getLogger(__name__)

IMAGE_CATEGORY = "images"


class VisualizationError(RuntimeError):
    """Raised when a lesson cannot be visualized at all."""


class SceneVisualizer(Protocol):
    async def visualize(self, text: str) -> VisualizationResult: ...


def backoff_delay(attempt: int, *, base_ms: int = 1000, cap_ms: int = 10000) -> float:
    """Seconds to wait after failed ``attempt`` (1-indexed) before the next one."""

    return min(base_ms * 2**attempt, cap_ms) / 1000


def scene_image_filename(scene_index: int) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"scene-{scene_index}-{int(time.time() * 1000)}-{suffix}.png"


class LessonVisualizer:
    """Generate scenes with the text model and illustrate them one by one."""

    def __init__(
        self,
        *,
        text_generator: Any,
        image_generator: Any,
        storage: Any,
        max_scenes: int = MAX_SCENES,
        image_attempts: int = 3,
        backoff_base_ms: int = 1000,
        backoff_cap_ms: int = 10000,
        scene_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if image_attempts < 1:
            raise ValueError("image_attempts must be at least 1")
        self._text_generator = text_generator
        self._image_generator = image_generator
        self._storage = storage
        self._max_scenes = max_scenes
        self._image_attempts = image_attempts
        self._backoff_base_ms = backoff_base_ms
        self._backoff_cap_ms = backoff_cap_ms
        self._scene_delay = scene_delay
        self._sleep = sleep

    async def visualize(self, text: str) -> VisualizationResult:
        if not text or not text.strip():
            raise VisualizationError("No text provided")

        story = await self._text_generator.generate(
            build_scene_prompt(text, self._max_scenes),
            system_prompt=SCENE_SYSTEM_PROMPT,
        )
        scenes = parse_scenes(story, self._max_scenes)
        logger.info("Parsed %d scenes for image generation", len(scenes))

        illustrated = await self._illustrate(scenes)
        result = VisualizationResult(scenes=tuple(illustrated), full_story=story)
        logger.info(
            "Image generation completed: %d/%d successful",
            result.successful_scenes,
            result.total_scenes,
        )
        return result

    async def _illustrate(self, scenes: Sequence[Scene]) -> list[Scene]:
        results: list[Scene] = []
        for index, scene in enumerate(scenes):
            logger.info("Processing scene %d/%d", index + 1, len(scenes))
            results.append(await self._illustrate_scene(index, scene))
            if index < len(scenes) - 1:
                await self._sleep(self._scene_delay)
        return results

    async def _illustrate_scene(self, index: int, scene: Scene) -> Scene:
        try:
            image = await self._generate_with_retry(styled_image_prompt(scene.image_prompt))
            file_name = scene_image_filename(index)
            stored = await self._storage.upload(
                image,
                IMAGE_CATEGORY,
                filename=file_name,
                content_type="image/png",
            )
        except (ImageGenerationError, StorageError) as exc:
            logger.warning("Failed to process scene %d: %s", scene.scene_number, exc)
            record_scene_image(success=False)
            return replace(scene, image_url=None, file_name=None, error=f"Failed to generate image: {exc}")

        record_scene_image(success=True)
        return replace(scene, image_url=stored.public_url, file_name=file_name)

    async def _generate_with_retry(self, prompt: str) -> bytes:
        for attempt in range(1, self._image_attempts + 1):
            try:
                return await self._image_generator.generate(prompt)
            except ImageGenerationError as exc:
                logger.warning("Image generation attempt %d failed: %s", attempt, exc)
                if attempt == self._image_attempts:
                    raise
                delay = backoff_delay(
                    attempt,
                    base_ms=self._backoff_base_ms,
                    cap_ms=self._backoff_cap_ms,
                )
                logger.info("Waiting %.1fs before retry", delay)
                await self._sleep(delay)
        raise RuntimeError("unreachable: image_attempts is validated in __init__")


class HttpLessonVisualizer:
    """Call the ``/visualize-lesson`` endpoint instead of running in-process."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 600.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client

    async def visualize(self, text: str) -> VisualizationResult:
        try:
            if self._client is not None:
                response = await self._client.post(self._url, json={"text": text})
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json={"text": text})
        except httpx.HTTPError as exc:
            raise VisualizationError(f"Scene endpoint unreachable: {exc}") from exc

        if response.is_error:
            raise VisualizationError(
                f"Failed to generate lesson scenes (HTTP {response.status_code})"
            )

        try:
            data = response.json()
            scenes = tuple(Scene.from_payload(item) for item in data.get("scenes") or [])
        except (ValueError, TypeError, AttributeError) as exc:
            raise VisualizationError(f"Malformed scene endpoint response: {exc}") from exc
        return VisualizationResult(scenes=scenes, full_story=str(data.get("fullStory") or ""))


__all__ = [
    "HttpLessonVisualizer",
    "LessonVisualizer",
    "SceneVisualizer",
    "VisualizationError",
    "backoff_delay",
    "scene_image_filename",
]
