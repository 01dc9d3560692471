"""Repository helpers for reading/writing upload records.

Every write the pipeline makes goes through :class:`UploadRepository` so the
status contract lives in one place:

* writes only land while the record is still ``processing``;
* ``None`` values are dropped, so a field never reverts to null;
* :meth:`UploadRepository.finish` is the one terminal transition.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.upload import UploadRecord, UploadStatus

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset(
    {
        "source_link",
        "transcript",
        "extracted_text",
        "audio_link",
        "blind_friendly_link",
        "dyslexia_friendly",
    }
)


class UnknownFieldError(ValueError):
    """Raised when a caller tries to write a column the pipeline does not own."""


def _writable_values(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        raise UnknownFieldError(f"Fields not writable by the pipeline: {sorted(unknown)}")
    return {name: value for name, value in fields.items() if value is not None}


class UploadRepository:
    """Persistence gateway for :class:`UploadRecord` rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        *,
        owner_id: int,
        original_name: str,
        category: str,
        source_link: str,
    ) -> UploadRecord:
        async with self._session_factory() as session:
            record = UploadRecord(
                owner_id=owner_id,
                original_name=original_name,
                category=category,
                source_link=source_link,
                status=UploadStatus.PROCESSING,
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record

    async def get(self, record_id: UUID) -> UploadRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UploadRecord).where(UploadRecord.id == record_id)
            )
            return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: int) -> Sequence[UploadRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UploadRecord)
                .where(UploadRecord.owner_id == owner_id)
                .order_by(UploadRecord.created_at.desc())
            )
            return result.scalars().all()

    async def claim(self, record_id: UUID) -> bool:
        """Refresh ``updated_at`` as a worker picks the record up.

        Returns False when the record is gone or already terminal, so the
        caller can drop the job without doing any work.
        """

        return await self._guarded_update(record_id, {})

    async def record_progress(self, record_id: UUID, **fields: Any) -> bool:
        """Persist intermediate artifacts while the record is still processing."""

        values = _writable_values(fields)
        if not values:
            return False
        return await self._guarded_update(record_id, values)

    async def finish(
        self,
        record_id: UUID,
        status: UploadStatus,
        **fields: Any,
    ) -> bool:
        """Apply the terminal status write; returns False if already terminal."""

        if not status.is_terminal:
            raise ValueError("finish() requires a terminal status")
        values = _writable_values(fields)
        values["status"] = status
        applied = await self._guarded_update(record_id, values)
        if not applied:
            logger.warning(
                "Ignored terminal write for record=%s status=%s: not processing",
                record_id,
                status.value,
            )
        return applied

    async def fail_stale(self, older_than: timedelta) -> int:
        """Terminal-fail records stuck in processing longer than ``older_than``."""

        cutoff = datetime.utcnow() - older_than
        async with self._session_factory() as session:
            result = await session.execute(
                update(UploadRecord)
                .where(UploadRecord.status == UploadStatus.PROCESSING)
                .where(UploadRecord.updated_at < cutoff)
                .values(status=UploadStatus.FAILED, updated_at=datetime.utcnow())
            )
            await session.commit()
            return result.rowcount or 0

    async def _guarded_update(self, record_id: UUID, values: dict[str, Any]) -> bool:
        values["updated_at"] = datetime.utcnow()
        async with self._session_factory() as session:
            result = await session.execute(
                update(UploadRecord)
                .where(UploadRecord.id == record_id)
                .where(UploadRecord.status == UploadStatus.PROCESSING)
                .values(**values)
            )
            await session.commit()
            return bool(result.rowcount)


__all__ = ["UploadRepository", "UnknownFieldError"]
