"""Magic Eden REST client — activity batches and token metadata.

Learn: Two calls back the feed workers:

  GET /collections/{symbol}/activities?offset=0&limit=N   → fetch_activity_batch
  GET /tokens/{mint}                                       → resolve_asset

The activity endpoint is rate limited, unordered and at-least-once: the
same signature can show up in consecutive polls, in any position. The
feed worker handles all of that; this client only turns HTTP into
ActivityRecords or raises FetchError.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from salewatch.errors import FetchError, ResolutionError
from salewatch.events.models import ActivityRecord, AssetData, FeedConfig, Marketplace

MAGIC_EDEN = Marketplace(
    name="Magic Eden",
    base_url="https://magiceden.io",
    icon_url="https://www.magiceden.io/img/favicon.png",
    item_path="/item-details/{token}",
    profile_path="/u/{address}",
)


class CollectionActivity(BaseModel):
    """One row of the collection activities endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    signature: str
    type: str
    source: Optional[str] = None
    token_mint: str = Field(alias="tokenMint")
    collection: Optional[str] = None
    slot: Optional[int] = None
    block_time: int = Field(default=0, alias="blockTime")
    buyer: Optional[str] = None
    seller: Optional[str] = None
    price: Decimal = Decimal(0)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> Decimal:
        if v is None:
            return Decimal(0)
        try:
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            return Decimal(str(v))
        except InvalidOperation as e:
            raise ValueError(f"invalid price {v!r}") from e

    def to_record(self) -> ActivityRecord:
        return ActivityRecord(
            signature=self.signature,
            kind=self.type,
            token_mint=self.token_mint,
            block_time=self.block_time or 0,
            price=self.price,
            seller=self.seller or None,
            buyer=self.buyer or None,
            source=self.source,
        )


class TokenMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mint_address: Optional[str] = Field(default=None, alias="mintAddress")
    name: str
    image: str = ""
    collection: Optional[str] = None
    attributes: list[dict] = []


class MagicEdenClient:
    """Thin async client. Pass an httpx.AsyncClient to share a pool or mock transport."""

    def __init__(
        self,
        base_url: str = "https://api-mainnet.magiceden.dev/v2",
        *,
        client: Optional[httpx.AsyncClient] = None,
        limit: int = 100,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self.marketplace = MAGIC_EDEN
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_activity_batch(self, feed: FeedConfig) -> list[ActivityRecord]:
        url = f"{self.base_url}/collections/{feed.collection}/activities"
        try:
            resp = await self._client.get(url, params={"offset": 0, "limit": self.limit})
        except httpx.HTTPError as e:
            raise FetchError(f"GET {url} failed: {e}") from e

        if resp.status_code != 200:
            raise FetchError(
                f"GET {url} returned {resp.status_code}", status_code=resp.status_code
            )

        try:
            rows = resp.json()
        except ValueError as e:
            raise FetchError(f"GET {url} returned invalid JSON") from e
        if not isinstance(rows, list):
            raise FetchError(f"GET {url} returned {type(rows).__name__}, expected a list")

        try:
            return [CollectionActivity.model_validate(row).to_record() for row in rows]
        except ValidationError as e:
            raise FetchError(f"GET {url} returned malformed activity: {e}") from e

    async def resolve_asset(self, mint: str) -> Optional[AssetData]:
        url = f"{self.base_url}/tokens/{mint}"
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise ResolutionError(f"GET {url} failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ResolutionError(f"GET {url} returned {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise ResolutionError(f"GET {url} returned invalid JSON") from e
        if not body:
            return None

        try:
            token = TokenMetadata.model_validate(body)
        except ValidationError as e:
            raise ResolutionError(f"GET {url} returned malformed token: {e}") from e

        return AssetData(
            name=token.name,
            image=token.image,
            symbol=token.collection,
            attributes=tuple(
                (a.get("trait_type"), a.get("value")) for a in token.attributes
            ),
        )
