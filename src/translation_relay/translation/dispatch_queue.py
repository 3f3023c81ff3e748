"""Serialized dispatch queue.

``DispatchQueue`` guarantees that translation jobs reach the remote tier
strictly in submission order and one at a time:

- ``submit`` puts a ``DispatchJob`` on an ``asyncio.Queue`` and returns the
  job's future.
- A single worker task takes jobs off the queue, awaits the handler, and
  resolves the job's future with the handler's result or exception.
- After every job, successful or not, the worker sleeps for the throttle
  delay before taking the next one, to keep bursts off the endpoints'
  quotas.

A handler exception lands on that job's future only.  The worker carries
on with the next job, so one bad request never stalls the queue.

The worker is started lazily by the first ``submit`` (it needs a running
event loop) and stopped by ``aclose``; jobs still waiting at that point are
cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Pause between consecutive dispatches, in seconds.
DEFAULT_THROTTLE_SECONDS = 0.3


@dataclass
class DispatchJob:
    """One queued translation request.

    Attributes:
        text:   Source text as the caller passed it.
        target: Target language code.
        future: Resolved with the job's outcome by the worker.
    """

    text: str
    target: str
    future: asyncio.Future = field(repr=False)


JobHandler = Callable[[DispatchJob], Awaitable[Any]]


class DispatchQueue:
    """Single-worker FIFO of dispatch jobs.

    Attributes:
        _handler:  Coroutine function run for each job.
        _throttle: Seconds to wait after each job.
        _queue:    Pending jobs; created with the worker.
        _worker:   The worker task, ``None`` until the first submit.
    """

    def __init__(
        self,
        handler: JobHandler,
        *,
        throttle_seconds: float = DEFAULT_THROTTLE_SECONDS,
    ) -> None:
        self._handler = handler
        self._throttle = throttle_seconds
        self._queue: asyncio.Queue[DispatchJob] | None = None
        self._worker: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        """Jobs submitted but not yet picked up by the worker."""
        return self._queue.qsize() if self._queue is not None else 0

    def submit(self, text: str, target: str) -> asyncio.Future:
        """Enqueue a job and return its future.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._ensure_worker(loop)
        job = DispatchJob(text=text, target=target, future=loop.create_future())
        assert self._queue is not None
        self._queue.put_nowait(job)
        return job.future

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._worker is not None and not self._worker.done():
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._worker = loop.create_task(self._run(), name="translation-dispatch")

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            job = await self._queue.get()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()
            await asyncio.sleep(self._throttle)

    async def _process(self, job: DispatchJob) -> None:
        if job.future.done():
            # Caller cancelled while the job was waiting.
            return
        try:
            result = await self._handler(job)
        except asyncio.CancelledError:
            job.future.cancel()
            raise
        except Exception as exc:
            logger.error("Translation job for %r failed", job.target, exc_info=True)
            if not job.future.done():
                job.future.set_exception(exc)
        else:
            if not job.future.done():
                job.future.set_result(result)

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        """Stop the worker and cancel jobs that never started."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        if self._queue is not None:
            while not self._queue.empty():
                job = self._queue.get_nowait()
                job.future.cancel()
                self._queue.task_done()
