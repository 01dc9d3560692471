"""Prompt construction for the lesson pipeline.

Two prompts drive the generation stages: the narration rewrite (turns a
transcript or document into text that reads well through TTS) and the scene
breakdown (turns that narration into numbered, labelled comic scenes that
:mod:`app.pipelines.lesson.scenes` can parse).
"""

from __future__ import annotations

NARRATION_SYSTEM_PROMPT = (
    "You are an accessibility writer who prepares lesson material to be read "
    "aloud to blind and visually impaired learners."
)

_NARRATION_TEMPLATE = """Rewrite the lesson material below as clear spoken narration.

Rules:
1. Drop filler words, false starts and repetitions.
2. Fix grammar and punctuation.
3. Prefer short, natural sentences that a text-to-speech voice can read smoothly.
4. Keep a warm, instructional tone.
5. Explain processes step by step.
6. Replace references to visuals ("as you can see", "this diagram") with spoken descriptions.
7. Expand abbreviations and avoid unexplained jargon.
8. Use plain text only: no markdown, lists, emojis or headings.

Return only the narration, with no preamble or notes.

Lesson material:
{text}
"""

SCENE_SYSTEM_PROMPT = (
    "You are a special educator who explains lessons to learners with visual, "
    "intellectual and cognitive disabilities using short illustrated comic scenes."
)

_SCENE_TEMPLATE = """Break the lesson below into 3 to {max_scenes} comic-style scenes. Never produce more than {max_scenes} scenes.

Each scene must have:
- Title: short and engaging
- Description: at most two simple sentences
- Key Idea: one short summary sentence
- Image_prompt: a visual description of a picture that explains the idea

Use exactly this numbered format and these bold labels:
1. **Title:** The Brain of the Computer
**Description:** A neural network is like a brain made of many small helpers. Each helper passes information to the next.
**Key Idea:** Many small parts work together to solve big problems.
**Image_prompt:** Small friendly robots passing glowing balls of light along a line.

2. **Title:** Learning Together
**Description:** The helpers practice again and again. They remember what works.
**Key Idea:** Practice makes computer brains better too.
**Image_prompt:** Cartoon robots high-fiving after passing a ball of light correctly.

Lesson:
{text}
"""

IMAGE_STYLE_SUFFIX = (
    "vivid colors, 512x512, highly detailed comic book style, educational illustration"
)


def build_narration_prompt(text: str) -> str:
    """Wrap transcript/document text in the narration rewrite instructions."""

    return _NARRATION_TEMPLATE.format(text=text.strip())


def build_scene_prompt(text: str, max_scenes: int = 4) -> str:
    """Ask for a capped number of labelled scenes describing ``text``."""

    return _SCENE_TEMPLATE.format(text=text.strip(), max_scenes=max_scenes)


def styled_image_prompt(image_prompt: str) -> str:
    """Append the fixed illustration style qualifiers to a scene prompt."""

    return f"{image_prompt.strip().rstrip('.,')}, {IMAGE_STYLE_SUFFIX}"


__all__ = [
    "IMAGE_STYLE_SUFFIX",
    "NARRATION_SYSTEM_PROMPT",
    "SCENE_SYSTEM_PROMPT",
    "build_narration_prompt",
    "build_scene_prompt",
    "styled_image_prompt",
]
