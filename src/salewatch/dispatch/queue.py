"""Dispatch queue — bounded-concurrency executor for notification sends.

Learn: enqueue() never blocks and never fails. Jobs go onto one unbounded
asyncio.Queue and `concurrency` consumer tasks pull from it, so:

- at most `concurrency` sends are in flight at once
- jobs start in submission order (strictly one-at-a-time with concurrency=1)
- a job that raises is caught where it runs, logged with its platform,
  and turned into a failed TaskResult. Other jobs and the consumers
  themselves are unaffected.

Consumers start lazily on the first enqueue (autostart), so the queue can
be built before the event loop is running.

Failed sends are not retried.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog

from salewatch.events.models import TaskResult
from salewatch.events.types import DISPATCH_FAILED, DISPATCH_SENT
from salewatch.status import NotificationStatus

logger = structlog.get_logger()

SendTask = Callable[[], Awaitable[Any]]


@dataclass
class _Job:
    task: SendTask
    platform: str
    transaction_id: Optional[str] = None


@dataclass
class DispatchStats:
    enqueued: int = 0
    succeeded: int = 0
    failed: int = 0
    in_flight: int = 0


class DispatchQueue:
    def __init__(
        self,
        concurrency: int = 5,
        *,
        status: Optional[NotificationStatus] = None,
        history: int = 100,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.status = status or NotificationStatus()
        self.stats = DispatchStats()
        self.results: deque[TaskResult] = deque(maxlen=history)
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._consumers: list[asyncio.Task] = []

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(
        self,
        task: SendTask,
        *,
        platform: str,
        transaction_id: Optional[str] = None,
    ) -> None:
        """Admit a send immediately. It runs when a consumer is free."""
        self._queue.put_nowait(_Job(task, platform, transaction_id))
        self.stats.enqueued += 1
        self._ensure_started()

    async def join(self) -> None:
        """Wait until every job enqueued so far has finished."""
        await self._queue.join()

    async def close(self, drain: bool = True) -> None:
        if drain:
            await self.join()
        for consumer in self._consumers:
            consumer.cancel()
        if self._consumers:
            await asyncio.gather(*self._consumers, return_exceptions=True)
        self._consumers = []

    def _ensure_started(self) -> None:
        self._consumers = [c for c in self._consumers if not c.done()]
        while len(self._consumers) < self.concurrency:
            index = len(self._consumers)
            self._consumers.append(
                asyncio.create_task(self._consume(), name=f"dispatch:{index}")
            )

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                self.results.append(await self._run(job))
            finally:
                self._queue.task_done()

    async def _run(self, job: _Job) -> TaskResult:
        self.stats.in_flight += 1
        try:
            await job.task()
        except Exception as e:
            self.stats.failed += 1
            self.status.record_failure()
            logger.error(
                DISPATCH_FAILED,
                platform=job.platform,
                transaction_id=job.transaction_id,
                error=str(e) or type(e).__name__,
            )
            return TaskResult(
                platform=job.platform,
                ok=False,
                transaction_id=job.transaction_id,
                error=str(e) or type(e).__name__,
            )
        finally:
            self.stats.in_flight -= 1

        self.stats.succeeded += 1
        self.status.record_success()
        logger.info(DISPATCH_SENT, platform=job.platform, transaction_id=job.transaction_id)
        return TaskResult(platform=job.platform, ok=True, transaction_id=job.transaction_id)

    def snapshot(self) -> dict:
        return {
            "concurrency": self.concurrency,
            "pending": self.pending,
            "in_flight": self.stats.in_flight,
            "enqueued": self.stats.enqueued,
            "succeeded": self.stats.succeeded,
            "failed": self.stats.failed,
        }
