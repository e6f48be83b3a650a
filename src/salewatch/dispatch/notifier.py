"""Notifier — per-feed fan-out of one event to every destination platform.

Learn: notify() only enqueues. It returns as soon as one job per
configured platform is on the dispatch queue, without waiting for any
send to finish. Platforms the feed wants but the process has no sender
for (no bot token, no webhook URL) are skipped.
"""

from functools import partial
from typing import Mapping

import structlog

from salewatch.dispatch.queue import DispatchQueue
from salewatch.events.models import Event, EventKind, FeedConfig, Platform
from salewatch.events.types import DISPATCH_PLATFORM_SKIPPED
from salewatch.platforms.base import PlatformSender

logger = structlog.get_logger()


class Notifier:
    def __init__(
        self,
        feed: FeedConfig,
        queue: DispatchQueue,
        senders: Mapping[Platform, PlatformSender],
    ):
        self.feed = feed
        self._queue = queue
        self._senders = senders

    async def notify(self, kind: EventKind, event: Event) -> None:
        for platform in self.feed.platforms:
            sender = self._senders.get(platform)
            if sender is None:
                logger.debug(
                    DISPATCH_PLATFORM_SKIPPED, feed=self.feed.name, platform=platform.value
                )
                continue
            self._queue.enqueue(
                partial(sender.send, kind, event),
                platform=platform.value,
                transaction_id=event.transaction_id,
            )


class NotifierFactory:
    """Builds one Notifier per feed, all sharing the same queue and senders."""

    def __init__(self, queue: DispatchQueue, senders: Mapping[Platform, PlatformSender]):
        self.queue = queue
        self.senders = dict(senders)

    @property
    def platforms(self) -> list[Platform]:
        return list(self.senders)

    def create(self, feed: FeedConfig) -> Notifier:
        return Notifier(feed, self.queue, self.senders)

    async def close(self) -> None:
        for sender in self.senders.values():
            await sender.close()
