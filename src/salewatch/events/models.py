"""Value objects for the ingestion pipeline.

Learn: These are plain dataclasses, not ORM rows. Nothing here is
persisted — events live only as long as it takes to fan them out.

- ActivityRecord: one raw row from a marketplace activity feed
- Event: a confirmed sale or listing, ready to notify
- FeedConfig: static description of one watched feed
- TaskResult: outcome of one platform send
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

LAMPORTS_PER_SOL = 10**9


class EventKind(str, Enum):
    SALE = "sale"
    LISTING = "listing"


class Platform(str, Enum):
    DISCORD = "discord"
    TWITTER = "twitter"
    WEBHOOK = "webhook"


class BatchPolicy(str, Enum):
    """What the feed worker does with the rest of a batch after a rejected record.

    SKIP drops just that record and moves on. STOP abandons the remainder
    of the batch until the next poll.
    """

    SKIP = "skip"
    STOP = "stop"


@dataclass(frozen=True)
class Marketplace:
    name: str
    base_url: str
    icon_url: str = ""
    item_path: str = "/item-details/{token}"
    profile_path: str = "/u/{address}"

    def item_url(self, token: str) -> str:
        return self.base_url + self.item_path.format(token=token)

    def profile_url(self, address: str) -> str:
        return self.base_url + self.profile_path.format(address=address)


@dataclass(frozen=True)
class AssetData:
    name: str
    image: str = ""
    symbol: Optional[str] = None
    attributes: tuple = ()

    @property
    def edition(self) -> str:
        """The segment after the first '#', e.g. '1234' for 'Degen #1234'."""
        if "#" not in self.name:
            return ""
        return self.name.split("#")[1].strip()


@dataclass(frozen=True)
class ActivityRecord:
    signature: str
    kind: str  # as delivered by the source, e.g. "list" or "buyNow"
    token_mint: str
    block_time: int  # unix seconds
    price: Decimal
    seller: Optional[str] = None
    buyer: Optional[str] = None
    source: Optional[str] = None

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromtimestamp(self.block_time or 0, tz=timezone.utc)


@dataclass(frozen=True)
class FeedConfig:
    """Everything a feed worker needs to know about what it watches.

    allow_list holds name fragments (the part after '#'). Empty means
    every asset in the collection is watched.
    """

    name: str
    collection: str
    kind: EventKind
    source_kinds: frozenset[str]
    allow_list: frozenset[str] = frozenset()
    discord_channel_id: Optional[str] = None
    platforms: tuple[Platform, ...] = (Platform.DISCORD, Platform.TWITTER, Platform.WEBHOOK)

    def watches(self, asset: AssetData) -> bool:
        if not self.allow_list:
            return True
        return asset.edition in self.allow_list


@dataclass(frozen=True)
class Event:
    transaction_id: str
    occurred_at: datetime
    asset_id: str
    price: Decimal
    kind: EventKind
    source_feed: FeedConfig
    asset: AssetData
    marketplace: Marketplace
    seller: Optional[str] = None
    buyer: Optional[str] = None

    @property
    def price_lamports(self) -> int:
        return int(self.price * LAMPORTS_PER_SOL)

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "occurred_at": self.occurred_at.isoformat(),
            "asset_id": self.asset_id,
            "asset_name": self.asset.name,
            "asset_image": self.asset.image,
            "price": str(self.price),
            "price_lamports": self.price_lamports,
            "kind": self.kind.value,
            "feed": self.source_feed.name,
            "marketplace": self.marketplace.name,
            "seller": self.seller,
            "buyer": self.buyer,
        }


@dataclass
class TaskResult:
    """Outcome of one queued send. Logged by the dispatcher, never raised."""

    platform: str
    ok: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
