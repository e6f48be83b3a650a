"""Feed worker — turns one unordered, at-least-once activity feed into
an ordered, deduplicated stream of notifications.

Learn: Each call to execute() is one poll cycle:

  fetch → sort by block time → kind filter → watermark → recency
        → resolve asset → allow-list → notify

The source gives no ordering guarantee, so the batch is sorted before
anything else. The watermark only ever moves forward, and only after a
notify, so processing must be strictly ascending within a batch.

A rejected record either skips just itself (BatchPolicy.SKIP) or ends
the cycle (BatchPolicy.STOP). Kind mismatches are always skipped. Fetch
failures always end the cycle with no state change.

The worker owns its RecencySet and Watermark outright. Nothing else
reads or writes them, so there's no locking.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol

import structlog

from salewatch.errors import FetchError
from salewatch.events.models import (
    ActivityRecord,
    AssetData,
    BatchPolicy,
    Event,
    EventKind,
    FeedConfig,
    Marketplace,
)
from salewatch.events.types import (
    FEED_ASSET_UNRESOLVED,
    FEED_BATCH_FETCHED,
    FEED_BATCH_STOPPED,
    FEED_BEFORE_WATERMARK,
    FEED_CYCLE_FAILED,
    FEED_DUPLICATE,
    FEED_FETCH_FAILED,
    FEED_NOT_WATCHED,
    FEED_NOTIFIED,
)
from salewatch.feeds.recency import DEFAULT_RECENCY_LIMIT, RecencySet
from salewatch.feeds.watermark import Watermark

logger = structlog.get_logger()

FetchBatch = Callable[[FeedConfig], Awaitable[list[ActivityRecord]]]
ResolveAsset = Callable[[str], Awaitable[Optional[AssetData]]]


class EventNotifier(Protocol):
    async def notify(self, kind: EventKind, event: Event) -> None: ...


class Worker(Protocol):
    """The unit the scheduler drives. execute() must not raise."""

    name: str

    async def execute(self) -> None: ...


@dataclass
class FeedStats:
    cycles: int = 0
    fetch_errors: int = 0
    notified: int = 0
    rejected: int = 0
    last_cycle_at: Optional[datetime] = None


class FeedWorker:
    """Polls one feed and notifies each new event exactly once per process."""

    def __init__(
        self,
        feed: FeedConfig,
        *,
        fetch_batch: FetchBatch,
        resolve_asset: ResolveAsset,
        notifier: EventNotifier,
        marketplace: Marketplace,
        policy: BatchPolicy = BatchPolicy.SKIP,
        recency_limit: int = DEFAULT_RECENCY_LIMIT,
        start_at: Optional[datetime] = None,
    ):
        self.feed = feed
        self.policy = policy
        self.marketplace = marketplace
        self.recency = RecencySet(recency_limit)
        self.watermark = Watermark(start_at)
        self.stats = FeedStats()
        self._fetch_batch = fetch_batch
        self._resolve_asset = resolve_asset
        self._notifier = notifier
        self._log = logger.bind(feed=feed.name)

    @property
    def name(self) -> str:
        return self.feed.name

    async def execute(self) -> None:
        self.stats.cycles += 1
        self.stats.last_cycle_at = datetime.now(timezone.utc)

        try:
            batch = await self._fetch_batch(self.feed)
        except FetchError as e:
            self.stats.fetch_errors += 1
            self._log.error(FEED_FETCH_FAILED, error=str(e), status_code=e.status_code)
            return
        except Exception:
            self.stats.fetch_errors += 1
            self._log.exception(FEED_FETCH_FAILED)
            return

        self._log.debug(FEED_BATCH_FETCHED, size=len(batch))

        try:
            await self._process_batch(batch)
        except Exception:
            self._log.exception(FEED_CYCLE_FAILED)

    async def _process_batch(self, batch: list[ActivityRecord]) -> None:
        for record in sorted(batch, key=lambda r: r.block_time or 0):
            if record.kind not in self.feed.source_kinds:
                continue

            reason = await self._process(record)
            if reason is None:
                continue

            self.stats.rejected += 1
            if self.policy is BatchPolicy.STOP:
                self._log.debug(
                    FEED_BATCH_STOPPED, reason=reason, signature=record.signature
                )
                return

    async def _process(self, record: ActivityRecord) -> Optional[str]:
        """Notify one record. Returns why it was rejected, or None if notified.

        The watermark and recency checks don't depend on the asset, so they
        run before the lookup to avoid resolving records that are already
        handled. The set of notified events is the same either way.
        """
        occurred_at = record.occurred_at

        if not self.watermark.admits(occurred_at):
            self._log.debug(
                FEED_BEFORE_WATERMARK,
                signature=record.signature,
                occurred_at=occurred_at.isoformat(),
                watermark=self.watermark.value.isoformat(),
            )
            return "before_watermark"

        if record.signature in self.recency:
            self._log.warning(FEED_DUPLICATE, signature=record.signature)
            return "duplicate"

        asset = await self._resolve(record)
        if asset is None:
            return "unresolved"

        if not self.feed.watches(asset):
            self._log.debug(FEED_NOT_WATCHED, signature=record.signature, asset=asset.name)
            return "not_watched"

        event = self._build_event(record, asset)
        await self._notifier.notify(self.feed.kind, event)

        self.recency.add(event.transaction_id)
        self.watermark.advance(event.occurred_at)
        self.stats.notified += 1
        self._log.info(
            FEED_NOTIFIED,
            signature=event.transaction_id,
            asset=asset.name,
            price=str(event.price),
        )
        return None

    async def _resolve(self, record: ActivityRecord) -> Optional[AssetData]:
        try:
            asset = await self._resolve_asset(record.token_mint)
        except Exception as e:
            self._log.warning(
                FEED_ASSET_UNRESOLVED,
                signature=record.signature,
                mint=record.token_mint,
                error=str(e),
            )
            return None

        if asset is None:
            self._log.info(
                FEED_ASSET_UNRESOLVED, signature=record.signature, mint=record.token_mint
            )
        return asset

    async def fetch(self) -> list[ActivityRecord]:
        """One raw batch from the source, unsorted. Raises FetchError."""
        return await self._fetch_batch(self.feed)

    async def preview(self, record: ActivityRecord) -> Optional[Event]:
        """Build the event a record would produce, without touching any state."""
        if record.kind not in self.feed.source_kinds:
            return None
        asset = await self._resolve(record)
        if asset is None or not self.feed.watches(asset):
            return None
        return self._build_event(record, asset)

    def _build_event(self, record: ActivityRecord, asset: AssetData) -> Event:
        return Event(
            transaction_id=record.signature,
            occurred_at=record.occurred_at,
            asset_id=record.token_mint,
            price=record.price,
            kind=self.feed.kind,
            source_feed=self.feed,
            asset=asset,
            marketplace=self.marketplace,
            seller=record.seller,
            buyer=record.buyer if self.feed.kind is EventKind.SALE else None,
        )

    def snapshot(self) -> dict:
        return {
            "name": self.feed.name,
            "collection": self.feed.collection,
            "kind": self.feed.kind.value,
            "policy": self.policy.value,
            "watermark": self.watermark.value.isoformat(),
            "recent": self.recency.snapshot(),
            "cycles": self.stats.cycles,
            "fetch_errors": self.stats.fetch_errors,
            "notified": self.stats.notified,
            "rejected": self.stats.rejected,
        }
