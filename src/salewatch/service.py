"""Service wiring — builds the pipeline from settings and runs it.

Learn: Everything shared is created exactly once here and passed down:

  Settings ─┬─ httpx.AsyncClient (one pool for Magic Eden, Discord, webhooks)
            ├─ NotificationStatus ──┬─ DispatchQueue
            │                       └─ status API
            ├─ NotifierFactory (queue + senders) → one Notifier per feed
            └─ FeedWorker per feed → Scheduler

run_service() runs the scheduler and the uvicorn status server in the
same event loop until SIGINT/SIGTERM, then drains the dispatch queue.
"""

import asyncio
import contextlib
import signal
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx
import structlog
import uvicorn

from salewatch.config import Settings, build_feeds
from salewatch.dispatch import DispatchQueue, NotifierFactory
from salewatch.feeds import FeedWorker
from salewatch.marketplaces import MagicEdenClient
from salewatch.platforms import build_senders
from salewatch.scheduler import Scheduler, random_jitter
from salewatch.status import NotificationStatus

logger = structlog.get_logger()


@dataclass
class Runtime:
    settings: Settings
    http: httpx.AsyncClient
    status: NotificationStatus
    queue: DispatchQueue
    notifiers: NotifierFactory
    magic_eden: MagicEdenClient
    workers: list[FeedWorker]
    scheduler: Scheduler

    def find_worker(self, name: str) -> Optional[FeedWorker]:
        for worker in self.workers:
            if worker.name == name:
                return worker
        return None

    async def close(self) -> None:
        await self.scheduler.stop()
        await self.queue.close(drain=True)
        await self.notifiers.close()
        await self.magic_eden.close()
        await self.http.aclose()


def build_runtime(
    settings: Settings,
    *,
    http: Optional[httpx.AsyncClient] = None,
    start_at: Optional[datetime] = None,
) -> Runtime:
    http = http or httpx.AsyncClient(timeout=settings.http_timeout)
    status = NotificationStatus()
    queue = DispatchQueue(settings.queue_concurrency, status=status)
    notifiers = NotifierFactory(queue, build_senders(settings, http))
    magic_eden = MagicEdenClient(
        settings.magic_eden_url, client=http, limit=settings.fetch_limit
    )

    workers = [
        FeedWorker(
            feed,
            fetch_batch=magic_eden.fetch_activity_batch,
            resolve_asset=magic_eden.resolve_asset,
            notifier=notifiers.create(feed),
            marketplace=magic_eden.marketplace,
            policy=settings.batch_policy,
            recency_limit=settings.recency_limit,
            start_at=start_at,
        )
        for feed in build_feeds(settings)
    ]
    scheduler = Scheduler(workers, random_jitter(settings.jitter_max_ms))

    return Runtime(
        settings=settings,
        http=http,
        status=status,
        queue=queue,
        notifiers=notifiers,
        magic_eden=magic_eden,
        workers=workers,
        scheduler=scheduler,
    )


class _EmbeddedServer(uvicorn.Server):
    """uvicorn without its own signal handling; run_service owns shutdown."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


async def run_service(settings: Settings) -> None:
    """Run until interrupted."""
    from salewatch.api import create_app

    runtime = build_runtime(settings)
    if not runtime.workers:
        logger.warning("salewatch.no_feeds", hint="set SALEWATCH_MAGIC_EDEN_COLLECTION")
    if not runtime.notifiers.platforms:
        logger.warning("salewatch.no_platforms", hint="set a Discord bot token or webhook URL")

    server = _EmbeddedServer(uvicorn.Config(
        create_app(runtime),
        host=settings.host,
        port=settings.port,
        log_config=None,
    ))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    logger.info(
        "salewatch.starting",
        feeds=[w.name for w in runtime.workers],
        platforms=[p.value for p in runtime.notifiers.platforms],
        port=settings.port,
    )

    scheduler_task = asyncio.create_task(runtime.scheduler.run())
    server_task = asyncio.create_task(server.serve())
    try:
        await stop.wait()
    finally:
        logger.info("salewatch.shutdown")
        server.should_exit = True
        await server_task
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
        await runtime.close()
        logger.info("salewatch.stopped", **runtime.status.snapshot())
