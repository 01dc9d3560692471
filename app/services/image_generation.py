"""Bedrock text-to-image generation for illustrated lesson scenes."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

# Nova Canvas / Titan Image reject prompts above 1024 characters.
_MAX_PROMPT_CHARS = 1024


class ImageGenerationError(RuntimeError):
    """Raised when no image could be produced for a prompt."""


class BedrockImageGenerator:
    """Generate a single PNG image per prompt via ``invoke_model``."""

    def __init__(
        self,
        *,
        client: Any,
        model_id: str,
        width: int = 512,
        height: int = 512,
        cfg_scale: float = 8.0,
    ) -> None:
        self._client = client
        self._model_id = model_id
        self._width = width
        self._height = height
        self._cfg_scale = cfg_scale

    async def generate(self, prompt: str) -> bytes:
        """Return raw PNG bytes for ``prompt``."""

        body = {
            "taskType": "TEXT_IMAGE",
            "textToImageParams": {"text": prompt[:_MAX_PROMPT_CHARS]},
            "imageGenerationConfig": {
                "numberOfImages": 1,
                "width": self._width,
                "height": self._height,
                "cfgScale": self._cfg_scale,
            },
        }

        try:
            response = await run_in_threadpool(
                self._client.invoke_model,
                modelId=self._model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )
            payload = json.loads(response["body"].read())
        except (BotoCoreError, ClientError) as exc:
            raise ImageGenerationError(f"Image model invocation failed: {exc}") from exc
        except (KeyError, ValueError) as exc:
            raise ImageGenerationError(f"Unreadable image model response: {exc}") from exc

        if payload.get("error"):
            raise ImageGenerationError(str(payload["error"]))

        images = payload.get("images") or []
        if not images:
            raise ImageGenerationError("No image data returned from API")

        encoded = images[0]
        if encoded.startswith("data:"):
            encoded = encoded.split(",", 1)[-1]
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageGenerationError(f"Image payload was not valid base64: {exc}") from exc


__all__ = ["BedrockImageGenerator", "ImageGenerationError"]
