from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from starlette.concurrency import run_in_threadpool

from menuvision.services.errors import QueueFullError

log = logging.getLogger("pipeline_queue")

DEFAULT_WORKERS = 4
DEFAULT_QUEUE_SIZE = 100


@dataclass(slots=True)
class PipelineJob:
    name: str
    func: Callable[..., Any]
    args: tuple[Any, ...]


class PipelineQueue:
    """
    In-memory work queue drained by a fixed pool of asyncio workers.

    Jobs are blocking callables (lifecycle runs, photo classification)
    executed in the threadpool. Nothing survives a process restart.
    """

    def __init__(self, workers: int = DEFAULT_WORKERS, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue: "asyncio.Queue[Optional[PipelineJob]]" = asyncio.Queue(maxsize=maxsize)
        self._workers: list[asyncio.Task[None]] = []
        self._lock = asyncio.Lock()
        self._worker_count = max(1, workers)

    @property
    def running(self) -> bool:
        return any(not worker.done() for worker in self._workers)

    async def start(self) -> None:
        async with self._lock:
            if self.running:
                return
            self._workers = [
                asyncio.create_task(self._run(index), name=f"pipeline-worker-{index}")
                for index in range(self._worker_count)
            ]
            log.info("pipeline.started workers=%s", self._worker_count)

    async def stop(self) -> None:
        async with self._lock:
            if not self._workers:
                return
            for _ in self._workers:
                await self._queue.put(None)
            try:
                await asyncio.gather(*self._workers)
            finally:
                self._workers = []
                log.info("pipeline.stopped")

    async def submit(self, name: str, func: Callable[..., Any], *args: Any) -> None:
        """
        Schedule `func(*args)` without waiting for it.

        Raises:
            QueueFullError: If the queue is at capacity
        """
        job = PipelineJob(name=name, func=func, args=args)
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull as exc:
            log.warning("pipeline.queue_full job=%s size=%s", name, self._queue.qsize())
            raise QueueFullError(f"Background queue is full, could not schedule {name}") from exc
        log.info("pipeline.submitted job=%s pending=%s", name, self._queue.qsize())

    async def join(self) -> None:
        await self._queue.join()

    async def _run(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            if job is None:
                self._queue.task_done()
                break
            try:
                await run_in_threadpool(job.func, *job.args)
                log.info("pipeline.job_done job=%s worker=%s", job.name, index)
            except Exception:
                log.exception("pipeline.worker_unexpected_error job=%s worker=%s", job.name, index)
            finally:
                self._queue.task_done()


_PIPELINE_QUEUE: Optional[PipelineQueue] = None


def get_queue() -> PipelineQueue:
    global _PIPELINE_QUEUE
    if _PIPELINE_QUEUE is None:
        _PIPELINE_QUEUE = PipelineQueue()
    return _PIPELINE_QUEUE


def configure(workers: int, maxsize: int) -> PipelineQueue:
    """Replace the process-wide queue. Call before `start_worker`."""
    global _PIPELINE_QUEUE
    _PIPELINE_QUEUE = PipelineQueue(workers=workers, maxsize=maxsize)
    return _PIPELINE_QUEUE


async def start_worker() -> None:
    await get_queue().start()


async def stop_worker() -> None:
    await get_queue().stop()


async def submit(name: str, func: Callable[..., Any], *args: Any) -> None:
    await get_queue().submit(name, func, *args)
