"""Scene visualization endpoint used by the lesson pipeline and the UI."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.config.dependencies import get_lesson_visualizer
from app.pipelines.lesson import SceneVisualizer, VisualizationError
from app.services.llm_client import TextGenerationError
from app.views import SceneResponse, VisualizeLessonRequest, VisualizeLessonResponse

router = APIRouter(tags=["visualization"])

logger = logging.getLogger(__name__)

VisualizerDep = Annotated[SceneVisualizer, Depends(get_lesson_visualizer)]


@router.post("/visualize-lesson", response_model=VisualizeLessonResponse)
async def visualize_lesson(
    payload: VisualizeLessonRequest,
    visualizer: VisualizerDep,
) -> VisualizeLessonResponse:
    """Split lesson text into illustrated scenes.

    Per-scene image failures are reported inside ``scenes``; only a failure to
    produce the story itself is an error response.
    """

    text = (payload.text or "").strip()
    if not text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No text provided",
        )

    try:
        result = await visualizer.visualize(text)
    except (VisualizationError, TextGenerationError) as exc:
        logger.exception("Lesson visualization failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate lesson visualization",
        ) from exc

    return VisualizeLessonResponse(
        scenes=[SceneResponse.model_validate(scene) for scene in result.scenes],
        message=result.message,
        total_scenes=result.total_scenes,
        successful_scenes=result.successful_scenes,
        full_story=result.full_story,
    )
