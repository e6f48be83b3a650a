"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with SALEWATCH_ prefix,
plus an optional .env file in the working directory.

Learn: Everything about what to watch and where to send it is static for
the life of the process. build_feeds() turns the flat settings into the
FeedConfig objects the workers are built from.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from salewatch.events.models import BatchPolicy, EventKind, FeedConfig

# Magic Eden activity "type" values for each kind of event we notify.
SALE_SOURCE_KINDS = frozenset({"buyNow"})
LISTING_SOURCE_KINDS = frozenset({"list"})


class Settings(BaseSettings):
    """All app configuration. Set via SALEWATCH_* env vars."""

    # Marketplace
    magic_eden_url: str = "https://api-mainnet.magiceden.dev/v2"
    magic_eden_collection: str = ""
    fetch_limit: int = Field(default=100, ge=1, le=1000)
    http_timeout: float = Field(default=10.0, gt=0)

    # What to watch
    watch_sales: bool = True
    watch_listings: bool = True
    allow_list: list[str] = []  # e.g. ["1234", "42"]: matched after '#' in the name

    # Destinations
    discord_bot_token: str = ""
    discord_channel_id: str = ""
    discord_api_url: str = "https://discord.com/api/v10"
    webhook_url: str = ""
    twitter_api_key: str = ""
    twitter_api_secret: str = ""
    twitter_access_token: str = ""
    twitter_access_secret: str = ""
    twitter_api_url: str = "https://api.twitter.com/2"

    # Pipeline
    queue_concurrency: int = 5
    jitter_max_ms: float = 5000
    recency_limit: int = 50
    batch_policy: BatchPolicy = BatchPolicy.SKIP

    # Status server
    host: str = "0.0.0.0"
    port: int = 4000

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="SALEWATCH_", env_file=".env", extra="ignore")

    @property
    def twitter_configured(self) -> bool:
        return all((
            self.twitter_api_key,
            self.twitter_api_secret,
            self.twitter_access_token,
            self.twitter_access_secret,
        ))

    @field_validator("queue_concurrency", "recency_limit")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("jitter_max_ms")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v}")
        return v


def build_feeds(settings: Settings) -> list[FeedConfig]:
    """One sales feed and one listings feed for the configured collection."""
    collection = settings.magic_eden_collection
    if not collection:
        return []

    allow_list = frozenset(s.strip() for s in settings.allow_list if s.strip())
    channel_id: Optional[str] = settings.discord_channel_id or None

    feeds = []
    if settings.watch_sales:
        feeds.append(FeedConfig(
            name=f"{collection}:sales",
            collection=collection,
            kind=EventKind.SALE,
            source_kinds=SALE_SOURCE_KINDS,
            allow_list=allow_list,
            discord_channel_id=channel_id,
        ))
    if settings.watch_listings:
        feeds.append(FeedConfig(
            name=f"{collection}:listings",
            collection=collection,
            kind=EventKind.LISTING,
            source_kinds=LISTING_SOURCE_KINDS,
            allow_list=allow_list,
            discord_channel_id=channel_id,
        ))
    return feeds
