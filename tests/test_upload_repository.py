"""Upload repository write contract, checked in memory and against SQLite."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.models import Base
from app.models.upload import UploadRecord, UploadStatus
from app.services.upload_repository import UnknownFieldError, UploadRepository


def _unused_session_factory():
    raise AssertionError("no database access expected")


def test_finish_requires_terminal_status():
    repository = UploadRepository(_unused_session_factory)

    with pytest.raises(ValueError):
        asyncio.run(repository.finish(uuid.uuid4(), UploadStatus.PROCESSING))


def test_unknown_fields_are_rejected():
    repository = UploadRepository(_unused_session_factory)

    with pytest.raises(UnknownFieldError):
        asyncio.run(repository.record_progress(uuid.uuid4(), status="completed"))


def test_progress_with_only_nulls_is_a_no_op():
    repository = UploadRepository(_unused_session_factory)

    assert asyncio.run(repository.record_progress(uuid.uuid4(), extracted_text=None)) is False


def test_terminal_statuses():
    assert not UploadStatus.PROCESSING.is_terminal
    assert UploadStatus.COMPLETED.is_terminal
    assert UploadStatus.FAILED.is_terminal


def _run_against_sqlite(tmp_path, scenario):
    """Run ``scenario(repository, session_factory)`` on a fresh SQLite schema."""

    async def runner():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'uploads.db'}")
        try:
            async with engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
            session_factory = async_sessionmaker(engine, expire_on_commit=False)
            return await scenario(UploadRepository(session_factory), session_factory)
        finally:
            await engine.dispose()

    return asyncio.run(runner())


async def _new_record(repository, name="notes.docx"):
    return await repository.create(
        owner_id=1,
        original_name=name,
        category="document",
        source_link=f"/uploads/{name}",
    )


def test_terminal_write_is_applied_once(tmp_path):
    async def scenario(repository, session_factory):
        record = await _new_record(repository)
        writes = [
            await repository.claim(record.id),
            await repository.record_progress(record.id, extracted_text="Narration"),
            await repository.finish(
                record.id,
                UploadStatus.COMPLETED,
                blind_friendly_link="https://cdn.example.com/audio/n.mp3",
                dyslexia_friendly=[{"title": "One", "sceneNumber": 1}],
            ),
            await repository.finish(record.id, UploadStatus.FAILED),
            await repository.record_progress(record.id, audio_link="https://cdn.example.com/audio/late.mp3"),
            await repository.claim(record.id),
            await repository.finish(uuid.uuid4(), UploadStatus.COMPLETED),
        ]
        return writes, await repository.get(record.id)

    writes, stored = _run_against_sqlite(tmp_path, scenario)

    assert writes == [True, True, True, False, False, False, False]
    assert stored.status is UploadStatus.COMPLETED
    assert stored.extracted_text == "Narration"
    assert stored.blind_friendly_link == "https://cdn.example.com/audio/n.mp3"
    assert stored.dyslexia_friendly == [{"title": "One", "sceneNumber": 1}]
    assert stored.audio_link is None


def test_progress_never_clears_a_field(tmp_path):
    async def scenario(repository, session_factory):
        record = await _new_record(repository)
        await repository.record_progress(record.id, extracted_text="Narration")
        await repository.finish(record.id, UploadStatus.COMPLETED, extracted_text=None)
        return await repository.get(record.id)

    stored = _run_against_sqlite(tmp_path, scenario)

    assert stored.status is UploadStatus.COMPLETED
    assert stored.extracted_text == "Narration"


def test_fail_stale_only_touches_old_processing_rows(tmp_path):
    async def scenario(repository, session_factory):
        stale = await _new_record(repository, "stale.docx")
        fresh = await _new_record(repository, "fresh.docx")
        done = await _new_record(repository, "done.docx")
        await repository.finish(done.id, UploadStatus.COMPLETED)

        old = datetime.utcnow() - timedelta(hours=5)
        async with session_factory() as session:
            await session.execute(
                update(UploadRecord)
                .where(UploadRecord.id.in_([stale.id, done.id]))
                .values(updated_at=old)
            )
            await session.commit()

        count = await repository.fail_stale(timedelta(hours=2))
        late = await repository.finish(stale.id, UploadStatus.COMPLETED)
        statuses = [
            (await repository.get(record.id)).status for record in (stale, fresh, done)
        ]
        return count, late, statuses

    count, late, statuses = _run_against_sqlite(tmp_path, scenario)

    assert count == 1
    assert late is False
    assert statuses == [UploadStatus.FAILED, UploadStatus.PROCESSING, UploadStatus.COMPLETED]
