"""ReportWorkerPool — bounded queue of status reports drained by fixed workers."""

from __future__ import annotations

import asyncio
import os
from typing import Any, NamedTuple

import structlog

from statusreporter.models import DispatchTask
from statusreporter.reporting.dispatcher import StatusDispatcher

_log = structlog.get_logger(__name__)

_DEFAULT_WORKERS = 2
_DEFAULT_QUEUE_SIZE = 1000


class QueuedReport(NamedTuple):
    dispatcher: StatusDispatcher
    task: DispatchTask


class ReportWorkerPool:
    """Fire-and-forget execution of :class:`DispatchTask` instances.

    Submitters never wait: :meth:`submit` enqueues and returns. Reports are
    executed at most once, in no guaranteed order, and a failing report never
    stops a worker.
    """

    def __init__(
        self,
        workers: int = _DEFAULT_WORKERS,
        maxsize: int = _DEFAULT_QUEUE_SIZE,
        *,
        logger: Any = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._size = workers
        self._queue: asyncio.Queue[QueuedReport] = asyncio.Queue(maxsize=maxsize)
        self._tasks: list[asyncio.Task[None]] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._log = logger or _log

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the worker tasks."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"status-worker-{i}")
            for i in range(self._size)
        ]
        self._loop = asyncio.get_running_loop()
        self._log.info("pool.started", workers=self._size)

    async def stop(self, drain_timeout: float | None = 5.0) -> None:
        """Drain the queue for up to *drain_timeout* seconds, then cancel the workers.

        Reports still queued or running when the timeout expires are dropped.
        """
        if self._tasks and drain_timeout:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                self._log.warning("pool.drain_timeout", pending=self._queue.qsize())
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._loop = None
        self._log.info("pool.stopped", dropped=self._queue.qsize())

    async def join(self) -> None:
        """Wait until every submitted report has been executed."""
        await self._queue.join()

    def submit(self, dispatcher: StatusDispatcher, task: DispatchTask) -> bool:
        """Enqueue a report. Returns False (and logs) if the queue is full.

        Safe to call from any thread: calls from outside the pool's event loop
        are handed to the loop with ``call_soon_threadsafe`` and always return
        True; a full queue is then only reported in the log.
        """
        item = QueuedReport(dispatcher, task)
        loop = self._loop
        if loop is not None and not loop.is_closed() and _running_loop() is not loop:
            loop.call_soon_threadsafe(self._enqueue, item)
            return True
        return self._enqueue(item)

    def _enqueue(self, item: QueuedReport) -> bool:
        task = item.task
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self._log.warning(
                "pool.queue_full",
                hash=task.version.version,
                build_id=task.build.build_id,
                state=task.state.value,
            )
            return False
        return True

    async def _worker(self, index: int) -> None:
        while True:
            item = await self._queue.get()
            try:
                await item.dispatcher.run(item.task)
            except Exception:
                self._log.exception(
                    "pool.report_failed", worker=index, build_id=item.task.build.build_id
                )
            finally:
                self._queue.task_done()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def create_worker_pool() -> ReportWorkerPool:
    """Build a pool sized from the environment.

    STATUSREPORTER_WORKERS     — number of workers (default: 2)
    STATUSREPORTER_QUEUE_SIZE  — queued reports before new ones are dropped (default: 1000)
    """
    return ReportWorkerPool(
        workers=_env_int("STATUSREPORTER_WORKERS", _DEFAULT_WORKERS),
        maxsize=_env_int("STATUSREPORTER_QUEUE_SIZE", _DEFAULT_QUEUE_SIZE),
    )
