"""Thin Bedrock client wrapper for text generation."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

# Upper bound on prompt size; lesson documents beyond this are truncated.
MAX_PROMPT_CHARS = 100_000


class TextGenerationError(RuntimeError):
    """Raised when the Bedrock invocation fails or returns nothing."""


def decode_bedrock_api_key(secret_value: Optional[str]) -> tuple[str, str] | None:
    """Decode the BEDROCK_API_KEY secret into access/secret key components."""

    if not secret_value:
        return None

    try:
        decoded_bytes = base64.b64decode(secret_value.strip(), validate=True)
    except (binascii.Error, ValueError):
        decoded_bytes = secret_value.encode("utf-8", "ignore")

    filtered = "".join(chr(b) for b in decoded_bytes if 31 < b < 127)
    if ":" not in filtered:
        return None
    access_key, secret_key = filtered.split(":", 1)
    return access_key, secret_key


class BedrockTextGenerator:
    """Invoke Amazon Bedrock chat models with standard configuration."""

    def __init__(
        self,
        *,
        client: Any,
        model_id: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        top_p: float = 0.9,
    ) -> None:
        self._client = client
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._top_p = top_p

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Run a Bedrock ``converse`` call and return the aggregate text output."""

        if not prompt.strip():
            raise TextGenerationError("Prompt is empty.")
        if len(prompt) > MAX_PROMPT_CHARS:
            logger.warning("Prompt truncated from %d to %d characters", len(prompt), MAX_PROMPT_CHARS)
            prompt = prompt[:MAX_PROMPT_CHARS]

        request: dict[str, Any] = {
            "modelId": self._model_id,
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "maxTokens": max_tokens or self._max_tokens,
                "temperature": temperature if temperature is not None else self._temperature,
                "topP": self._top_p,
            },
        }
        if system_prompt:
            request["system"] = [{"text": system_prompt}]

        try:
            response = await run_in_threadpool(self._client.converse, **request)
        except (BotoCoreError, ClientError) as exc:
            raise TextGenerationError(f"Error generating text: {exc}") from exc

        content_blocks = (
            response.get("output", {})
            .get("message", {})
            .get("content", [])
        )
        texts = [block.get("text", "") for block in content_blocks if block.get("text")]
        result = "\n".join(texts).strip()
        if not result:
            raise TextGenerationError("Model returned an empty response.")
        return result


__all__ = ["BedrockTextGenerator", "TextGenerationError", "decode_bedrock_api_key"]
