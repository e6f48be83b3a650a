"""Scheduler — one independent polling loop per feed worker.

Learn: Each loop is Idle → Running → Waiting → Idle, forever:

  execute() → sleep(jitter) → execute() → ...

Loops don't wait on each other. A slow or broken worker only delays
itself. Jitter spreads requests out so many workers polling the same
rate-limited API don't fire in lockstep.

Same shape as a background worker's run_loop: while running, try the
unit of work, log anything that escapes, sleep, repeat.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Sequence

import structlog

from salewatch.events.types import (
    SCHEDULER_STARTED,
    SCHEDULER_STOPPED,
    SCHEDULER_WORKER_ERROR,
)
from salewatch.feeds.worker import Worker

logger = structlog.get_logger()

Jitter = Callable[[], float]  # returns a delay in milliseconds
Sleep = Callable[[float], Awaitable[None]]


def random_jitter(max_ms: float = 5000) -> Jitter:
    """Uniform 0..max_ms delay."""
    return lambda: random.random() * max_ms


class Scheduler:
    def __init__(
        self,
        workers: Sequence[Worker],
        jitter: Optional[Jitter] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.workers = list(workers)
        self._jitter = jitter or random_jitter()
        self._sleep = sleep
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> list[asyncio.Task]:
        """Spawn one loop task per worker and return them."""
        if self._running:
            return self._tasks
        self._running = True
        self._tasks = [
            asyncio.create_task(self._loop(worker), name=f"feed:{worker.name}")
            for worker in self.workers
        ]
        logger.info(SCHEDULER_STARTED, workers=len(self._tasks))
        return self._tasks

    async def run(self) -> None:
        """Start every loop and wait on them until stop() or cancellation."""
        tasks = self.start()
        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info(SCHEDULER_STOPPED, workers=len(self._tasks))
        self._tasks = []

    async def _loop(self, worker: Worker) -> None:
        log = logger.bind(worker=worker.name)
        while self._running:
            try:
                await worker.execute()
            except Exception:
                log.exception(SCHEDULER_WORKER_ERROR)

            if not self._running:
                break
            await self._sleep(self._delay_seconds())

    def _delay_seconds(self) -> float:
        try:
            delay_ms = float(self._jitter())
        except Exception:
            logger.exception("scheduler.jitter_failed")
            delay_ms = 0.0
        return max(delay_ms, 0.0) / 1000
