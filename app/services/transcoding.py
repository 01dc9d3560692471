"""ffmpeg helpers for turning lesson videos into audio tracks."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class TranscodingError(RuntimeError):
    """Raised when ffmpeg cannot produce the requested output."""


class MediaTranscoder:
    """Extract audio-only tracks from video files."""

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self._ffmpeg_path = ffmpeg_path

    async def extract_audio(self, video_path: Path | str, *, codec: str = "libmp3lame", extension: str = "mp3") -> Path:
        """Write the audio track of ``video_path`` next to it and return the new path."""

        return await run_in_threadpool(self._extract_audio_sync, Path(video_path), codec, extension)

    def _extract_audio_sync(self, video_path: Path, codec: str, extension: str) -> Path:
        output_path = video_path.with_name(f"{video_path.stem}-audio.{extension.lstrip('.')}")
        try:
            subprocess.run(
                [
                    self._ffmpeg_path,
                    "-y",
                    "-i", str(video_path),
                    "-vn",
                    "-acodec", codec,
                    str(output_path),
                ],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            output_path.unlink(missing_ok=True)
            error_msg = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else "No stderr"
            logger.error("ffmpeg failed. stderr: %s", error_msg)
            raise TranscodingError(f"ffmpeg failed to extract audio: {error_msg}") from exc
        except OSError as exc:
            output_path.unlink(missing_ok=True)
            raise TranscodingError(f"Could not run ffmpeg: {exc}") from exc

        if not output_path.exists() or output_path.stat().st_size == 0:
            output_path.unlink(missing_ok=True)
            raise TranscodingError("ffmpeg produced no audio output.")

        logger.info("Extracted audio track %s", output_path.name)
        return output_path


__all__ = ["MediaTranscoder", "TranscodingError"]
