"""Scene extraction from generated lesson breakdowns.

The scene prompt asks the model for numbered blocks such as::

    1. **Title:** ...
    **Description:** ...
    **Key Idea:** ...
    **Image_prompt:** ...

Models do not always comply, so parsing is tolerant: blocks without both a
title and an image prompt are treated as preamble/commentary and skipped,
each field falls back independently, and a block that cannot be parsed at
all becomes a generic placeholder scene instead of aborting the batch.
"""

from __future__ import annotations

import logging
import re
from typing import Final

from .types import Scene

logger = logging.getLogger(__name__)

MAX_SCENES: Final[int] = 4
GENERIC_IMAGE_PROMPT: Final[str] = "comic panel explaining the concept"

_TITLE_MARKER: Final[str] = "**Title:**"
_IMAGE_PROMPT_MARKER: Final[str] = "**Image_prompt:**"

# Numbered-list markers ("1.", "2.") separate scene blocks.
_BLOCK_DELIMITER = re.compile(r"\d+\.")

# Each field runs until the next label that is actually present, so one
# missing label does not blank its neighbour.
_FIELD_PATTERNS: Final[dict[str, re.Pattern[str]]] = {
    "title": re.compile(
        r"\*\*Title:\*\*(.*?)(?=\*\*(?:Description|Key Idea|Image_prompt):|\Z)",
        re.IGNORECASE | re.DOTALL,
    ),
    "description": re.compile(
        r"\*\*Description:\*\*(.*?)(?=\*\*(?:Key Idea|Image_prompt):|\Z)",
        re.IGNORECASE | re.DOTALL,
    ),
    "key_idea": re.compile(
        r"\*\*Key Idea:\*\*(.*?)(?=\*\*Image_prompt:|\Z)",
        re.IGNORECASE | re.DOTALL,
    ),
    "image_prompt": re.compile(
        r"\*\*Image_prompt:\*\*(.*)",
        re.IGNORECASE | re.DOTALL,
    ),
}


def split_scene_blocks(raw_text: str) -> list[str]:
    """Return the numbered blocks that look like scenes, in original order."""

    return [
        block
        for block in _BLOCK_DELIMITER.split(raw_text or "")
        if block.strip() and _TITLE_MARKER in block and _IMAGE_PROMPT_MARKER in block
    ]


def placeholder_scene(scene_number: int) -> Scene:
    return Scene(
        title=f"Scene {scene_number}",
        description="",
        key_idea="",
        image_prompt=GENERIC_IMAGE_PROMPT,
        scene_number=scene_number,
    )


def _extract_field(block: str, name: str) -> str:
    match = _FIELD_PATTERNS[name].search(block)
    if match is None:
        return ""
    return match.group(1).strip()


def _parse_block(block: str, scene_number: int) -> Scene:
    return Scene(
        title=_extract_field(block, "title") or f"Scene {scene_number}",
        description=_extract_field(block, "description"),
        key_idea=_extract_field(block, "key_idea"),
        image_prompt=_extract_field(block, "image_prompt") or GENERIC_IMAGE_PROMPT,
        scene_number=scene_number,
    )


def parse_scenes(raw_text: str, max_scenes: int = MAX_SCENES) -> list[Scene]:
    """Extract at most ``max_scenes`` structured scenes from ``raw_text``."""

    scenes: list[Scene] = []
    for index, block in enumerate(split_scene_blocks(raw_text)[:max_scenes]):
        scene_number = index + 1
        try:
            scenes.append(_parse_block(block, scene_number))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not parse scene %d, using placeholder: %s", scene_number, exc)
            scenes.append(placeholder_scene(scene_number))
    return scenes


__all__ = [
    "GENERIC_IMAGE_PROMPT",
    "MAX_SCENES",
    "parse_scenes",
    "placeholder_scene",
    "split_scene_blocks",
]
