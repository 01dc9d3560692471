"""Background worker pool and stale-record sweep."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from app.models.upload import UploadStatus
from app.pipelines.lesson import (
    FileCategory,
    PipelineJob,
    PipelineWorkerPool,
    QueueFullError,
    run_stale_sweeper,
    sweep_stale_records,
)


def _job(name: str) -> PipelineJob:
    return PipelineJob(uuid.uuid4(), Path(f"/tmp/{name}"), name, FileCategory.OTHER)


def test_workers_drain_queue_and_survive_handler_errors():
    handled: list[str] = []

    async def handler(job: PipelineJob) -> None:
        if job.original_name == "explode.bin":
            raise RuntimeError("boom")
        handled.append(job.original_name)

    async def scenario() -> None:
        pool = PipelineWorkerPool(handler, workers=2, queue_size=10)
        pool.start()
        for name in ("a.bin", "explode.bin", "b.bin", "c.bin"):
            pool.submit(_job(name))
        await asyncio.wait_for(pool.join(), timeout=5)
        assert pool.running
        await pool.stop()
        assert not pool.running

    asyncio.run(scenario())

    assert sorted(handled) == ["a.bin", "b.bin", "c.bin"]


def test_submit_rejects_when_queue_is_full():
    async def handler(job: PipelineJob) -> None:
        return None

    async def scenario() -> None:
        pool = PipelineWorkerPool(handler, workers=1, queue_size=1)
        pool.submit(_job("first.bin"))
        with pytest.raises(QueueFullError):
            pool.submit(_job("second.bin"))
        assert pool.pending == 1

    asyncio.run(scenario())


def test_pool_requires_a_worker():
    async def handler(job: PipelineJob) -> None:
        return None

    with pytest.raises(ValueError):
        PipelineWorkerPool(handler, workers=0)


def test_sweep_fails_only_old_processing_records(repository):
    old = datetime.utcnow() - timedelta(hours=5)
    stale = repository.add(
        owner_id=1, original_name="a.mp4", category="video", source_link="/uploads/a.mp4", updated_at=old
    )
    fresh = repository.add(
        owner_id=1, original_name="b.mp4", category="video", source_link="/uploads/b.mp4"
    )
    done = repository.add(
        owner_id=1,
        original_name="c.mp4",
        category="video",
        source_link="/uploads/c.mp4",
        status=UploadStatus.COMPLETED,
        updated_at=old,
    )

    count = asyncio.run(sweep_stale_records(repository, timedelta(hours=2)))

    assert count == 1
    assert stale.status is UploadStatus.FAILED
    assert fresh.status is UploadStatus.PROCESSING
    assert done.status is UploadStatus.COMPLETED


class _StopSweeper(Exception):
    pass


def test_sweeper_keeps_running_after_a_failed_sweep():
    class FlakyRepository:
        def __init__(self) -> None:
            self.calls = 0

        async def fail_stale(self, older_than):
            self.calls += 1
            if self.calls == 1:
                raise ConnectionError("database restarting")
            return 0

    repository = FlakyRepository()

    async def stop_after_two(seconds: float) -> None:
        assert seconds == 60
        if repository.calls >= 2:
            raise _StopSweeper

    with pytest.raises(_StopSweeper):
        asyncio.run(
            run_stale_sweeper(
                repository,
                older_than=timedelta(minutes=5),
                interval_seconds=60,
                sleep=stop_after_two,
            )
        )

    assert repository.calls == 2


def _stop_with_one_job_in_flight(tmp_path, on_abandon=None):
    """Block the only worker on the first job, queue a second, then stop."""

    first = tmp_path / "a.docx"
    second = tmp_path / "b.docx"
    first.write_bytes(b"first")
    second.write_bytes(b"second")

    async def scenario() -> PipelineWorkerPool:
        picked_up = asyncio.Event()
        release = asyncio.Event()

        async def handler(job: PipelineJob) -> None:
            picked_up.set()
            await release.wait()

        pool = PipelineWorkerPool(handler, workers=1, queue_size=5, on_abandon=on_abandon)
        pool.start()
        pool.submit(PipelineJob(uuid.uuid4(), first, "a.docx", FileCategory.DOCUMENT))
        pool.submit(PipelineJob(uuid.uuid4(), second, "b.docx", FileCategory.DOCUMENT))
        await asyncio.wait_for(picked_up.wait(), timeout=5)
        await pool.stop()
        return pool

    pool = asyncio.run(scenario())
    return pool, second


def test_stop_removes_files_of_jobs_still_queued(tmp_path):
    pool, queued = _stop_with_one_job_in_flight(tmp_path)

    assert not pool.running
    assert pool.pending == 0
    assert not queued.exists()


def test_stop_hands_queued_jobs_to_abandon_callback(tmp_path):
    abandoned: list[str] = []

    async def on_abandon(job: PipelineJob) -> None:
        abandoned.append(job.original_name)
        job.local_path.unlink()

    _, queued = _stop_with_one_job_in_flight(tmp_path, on_abandon=on_abandon)

    assert abandoned == ["b.docx"]
    assert not queued.exists()


def test_failing_abandon_callback_still_removes_file(tmp_path):
    async def on_abandon(job: PipelineJob) -> None:
        raise ConnectionError("database gone")

    _, queued = _stop_with_one_job_in_flight(tmp_path, on_abandon=on_abandon)

    assert not queued.exists()
