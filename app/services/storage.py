"""S3 storage gateway for lesson artifacts."""

from __future__ import annotations

import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

_CACHE_CONTROL = "public, max-age=31536000"


class StorageError(RuntimeError):
    """Raised when S3 asset persistence fails."""


@dataclass(frozen=True)
class StoredObject:
    """Location of an uploaded object."""

    key: str
    public_url: str
    storage_uri: str


class StorageGateway:
    """Upload local files or in-memory buffers to the lesson bucket."""

    def __init__(
        self,
        *,
        client: Any,
        bucket: str,
        region: str,
        public_base_url: str | None = None,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._region = region
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    async def upload(
        self,
        source: Path | str | bytes,
        category: str,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> StoredObject:
        """Store ``source`` under the ``category`` prefix.

        Local paths get a millisecond timestamp prefix so re-uploads of the same
        name never collide; an explicit ``filename`` is used verbatim.
        """

        if not self._bucket:
            raise StorageError("S3 bucket name is not configured.")

        if isinstance(source, bytes):
            if not source:
                raise StorageError("Upload payload was empty.")
            name = filename or uuid4().hex
        else:
            path = Path(source)
            name = filename or f"{int(time.time() * 1000)}-{path.name}"

        key = f"{category.strip('/')}/{name}"
        extra_args = {
            "CacheControl": _CACHE_CONTROL,
            "ContentType": content_type
            or mimetypes.guess_type(name)[0]
            or "application/octet-stream",
        }

        try:
            if isinstance(source, bytes):
                await run_in_threadpool(
                    self._client.put_object,
                    Bucket=self._bucket,
                    Key=key,
                    Body=source,
                    **extra_args,
                )
            else:
                await run_in_threadpool(
                    self._client.upload_file,
                    str(path),
                    self._bucket,
                    key,
                    ExtraArgs=extra_args,
                )
        except (BotoCoreError, ClientError, OSError) as exc:
            raise StorageError(f"Failed to upload {key}: {exc}") from exc

        return StoredObject(
            key=key,
            public_url=self.public_url(key),
            storage_uri=f"s3://{self._bucket}/{key}",
        )

    def public_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        if self._region == "us-east-1":
            return f"https://{self._bucket}.s3.amazonaws.com/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"


__all__ = ["StorageGateway", "StorageError", "StoredObject"]
