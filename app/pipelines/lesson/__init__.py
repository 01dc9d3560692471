"""Lesson accessibility pipeline package.

Modules follow the order in which an uploaded file is processed:

1. `classification` – route the upload to the video, document or other branch.
2. `orchestrator` – run the branch in the background and write the terminal status.
3. `prompts` – narration rewrite and scene breakdown prompts.
4. `scenes` – parse the model's numbered scene blocks.
5. `visualization` – illustrate scenes with retry/backoff and store the images.
6. `worker` – bounded queue of background workers plus the stale-record sweep.

The upload controller only classifies, persists and submits; everything
after that lives here.
"""

from .classification import DOCUMENT_EXTENSIONS, VIDEO_EXTENSIONS, classify_file
from .orchestrator import LessonPipeline, discard_local_file
from .scenes import MAX_SCENES, parse_scenes
from .types import FileCategory, PipelineJob, Scene, VisualizationResult
from .visualization import (
    HttpLessonVisualizer,
    LessonVisualizer,
    SceneVisualizer,
    VisualizationError,
    backoff_delay,
)
from .worker import PipelineWorkerPool, QueueFullError, run_stale_sweeper, sweep_stale_records

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "FileCategory",
    "HttpLessonVisualizer",
    "LessonPipeline",
    "LessonVisualizer",
    "MAX_SCENES",
    "PipelineJob",
    "PipelineWorkerPool",
    "QueueFullError",
    "Scene",
    "SceneVisualizer",
    "VIDEO_EXTENSIONS",
    "VisualizationError",
    "VisualizationResult",
    "backoff_delay",
    "classify_file",
    "discard_local_file",
    "parse_scenes",
    "run_stale_sweeper",
    "sweep_stale_records",
]
