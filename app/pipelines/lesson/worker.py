"""Bounded background execution for lesson pipeline jobs.

Uploads are acknowledged before any processing happens; the job is put on an
``asyncio.Queue`` and a fixed number of worker tasks drain it. A separate
sweeper task terminal-fails records left in ``processing`` by a crash or
restart.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable

from app.telemetry import record_stale_records

from .orchestrator import discard_local_file
from .types import PipelineJob

logger = logging.getLogger(__name__)

JobHandler = Callable[[PipelineJob], Awaitable[Any]]


class QueueFullError(RuntimeError):
    """Raised when the pipeline cannot accept another job right now."""


class PipelineWorkerPool:
    """Fixed-size pool of asyncio workers consuming :class:`PipelineJob` items.

    ``on_abandon`` is awaited for every job still queued when the pool stops,
    so those records are failed and their local files removed.
    """

    def __init__(
        self,
        handler: JobHandler,
        *,
        workers: int = 4,
        queue_size: int = 100,
        on_abandon: JobHandler | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._handler = handler
        self._on_abandon = on_abandon
        self._worker_count = workers
        self._queue: asyncio.Queue[PipelineJob] = asyncio.Queue(maxsize=queue_size)
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._work(index), name=f"lesson-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info("Started %d lesson pipeline workers", self._worker_count)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        abandoned = 0
        while True:
            try:
                job = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            abandoned += 1
            try:
                if self._on_abandon is not None:
                    await self._on_abandon(job)
                else:
                    discard_local_file(job.local_path)
            except Exception:
                logger.exception("Could not abandon queued record=%s", job.record_id)
                discard_local_file(job.local_path)
            finally:
                self._queue.task_done()
        logger.info("Lesson pipeline workers stopped; abandoned %d queued jobs", abandoned)

    def submit(self, job: PipelineJob) -> None:
        """Enqueue ``job`` without waiting; raises :class:`QueueFullError` when saturated."""

        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull as exc:
            raise QueueFullError("Lesson pipeline queue is full") from exc
        logger.debug("Queued record=%s (pending=%d)", job.record_id, self.pending)

    async def join(self) -> None:
        await self._queue.join()

    async def _work(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._handler(job)
            except asyncio.CancelledError:
                raise
            except Exception:
                # Handlers record their own failures; this keeps the worker alive.
                logger.exception("Worker %d crashed on record=%s", index, job.record_id)
            finally:
                self._queue.task_done()


async def sweep_stale_records(repository: Any, older_than: timedelta) -> int:
    """Fail every record stuck in ``processing`` for longer than ``older_than``."""

    count = await repository.fail_stale(older_than)
    record_stale_records(count)
    if count:
        logger.warning("Marked %d stale upload records as failed", count)
    return count


async def run_stale_sweeper(
    repository: Any,
    *,
    older_than: timedelta,
    interval_seconds: float,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> None:
    """Periodically call :func:`sweep_stale_records` until cancelled."""

    while True:
        try:
            await sweep_stale_records(repository, older_than)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Stale record sweep failed")
        await sleep(interval_seconds)


__all__ = [
    "JobHandler",
    "PipelineWorkerPool",
    "QueueFullError",
    "run_stale_sweeper",
    "sweep_stale_records",
]
