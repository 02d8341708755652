"""Bounded background worker pool for call pipelines."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from callqual.pipeline.errors import AdmissionRejectedError

logger = logging.getLogger(__name__)

JobHandler = Callable[[str], Awaitable[None]]
AdmissionHook = Callable[[str, int], bool]


def max_depth_admission(max_depth: int) -> AdmissionHook:
    """Admission hook that refuses new jobs once max_depth are waiting."""

    def _admit(call_id: str, queue_depth: int) -> bool:
        return queue_depth < max_depth

    return _admit


class PipelineQueue:
    """
    asyncio.Queue drained by a fixed number of worker tasks.

    enqueue() never blocks the caller; workers are started lazily on the first
    enqueue (or explicitly with start()) inside the running event loop.
    """

    def __init__(
        self,
        handler: JobHandler,
        max_workers: int = 4,
        admission: AdmissionHook | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._handler = handler
        self._max_workers = max_workers
        self._admission = admission
        self._queue: asyncio.Queue[str] | None = None
        self._workers: list[asyncio.Task] = []
        self._in_flight: dict[int, str] = {}

    @property
    def depth(self) -> int:
        """Jobs waiting to be picked up."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks. Must be called from inside the event loop."""
        if self._workers:
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"callqual-worker-{n}")
            for n in range(self._max_workers)
        ]
        logger.info("Pipeline queue started with %d workers", self._max_workers)

    def enqueue(self, call_id: str) -> None:
        """Schedule a call. Raises AdmissionRejectedError if the hook refuses it."""
        depth = self.depth
        if self._admission is not None and not self._admission(call_id, depth):
            logger.warning("Admission rejected for call %s (queue depth %d)", call_id, depth)
            raise AdmissionRejectedError(call_id, depth)
        self.start()
        self._queue.put_nowait(call_id)
        logger.debug("Enqueued call %s (queue depth %d)", call_id, depth + 1)

    async def join(self) -> None:
        """Wait until every enqueued job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, drain_timeout: float | None = None) -> list[str]:
        """
        Stop the workers, first giving queued and running jobs up to
        drain_timeout seconds to finish. Returns the ids of the jobs that were
        still running when the workers were cancelled. Jobs never picked up are
        dropped.
        """
        if drain_timeout and self._workers and self._queue is not None:
            try:
                await asyncio.wait_for(self._queue.join(), drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Pipeline queue did not drain within %.1fs, %d jobs running",
                    drain_timeout,
                    len(self._in_flight),
                )

        interrupted = list(self._in_flight.values())
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._in_flight.clear()
        logger.info("Pipeline queue stopped")
        return interrupted

    async def _worker(self, n: int) -> None:
        while True:
            call_id = await self._queue.get()
            self._in_flight[n] = call_id
            try:
                await self._handler(call_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Worker %d: pipeline for call %s raised", n, call_id)
            finally:
                self._in_flight.pop(n, None)
                self._queue.task_done()
