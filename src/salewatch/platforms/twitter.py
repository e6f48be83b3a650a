"""Twitter sender — posts one status per event through the v2 API.

Learn: Posting needs user-context auth, so every request is signed with
OAuth 1.0a (consumer key/secret plus access token/secret). authlib's
AsyncOAuth1Client is an httpx.AsyncClient that signs each request, so
the send path looks the same as the Discord and webhook senders:

  POST /2/tweets  {"text": "..."}   → 201 {"data": {"id": ...}}
"""

from typing import Optional

import httpx
import structlog
from authlib.integrations.httpx_client import AsyncOAuth1Client

from salewatch.errors import SendError
from salewatch.events.models import Event, EventKind, Platform
from salewatch.platforms.base import PlatformSender

logger = structlog.get_logger()

TWITTER_API_URL = "https://api.twitter.com/2"
MAX_TWEET_LENGTH = 280


class TwitterSender(PlatformSender):
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        access_token: str,
        access_secret: str,
        *,
        api_url: str = TWITTER_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self._client = client or AsyncOAuth1Client(
            api_key,
            api_secret,
            token=access_token,
            token_secret=access_secret,
            timeout=timeout,
        )
        self.api_url = api_url.rstrip("/")

    @property
    def platform(self) -> Platform:
        return Platform.TWITTER

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(self, kind: EventKind, event: Event) -> None:
        try:
            resp = await self._client.post(
                f"{self.api_url}/tweets", json={"text": build_status(kind, event)}
            )
        except httpx.HTTPError as e:
            raise SendError(self.platform.value, f"request failed: {e}") from e

        if resp.status_code >= 400:
            raise SendError(
                self.platform.value,
                f"tweet rejected with {resp.status_code}: {resp.text[:200]}",
            )

        logger.info("twitter.notified", asset=event.asset.name, kind=kind.value)


def build_status(kind: EventKind, event: Event) -> str:
    """'Degen #12 sold for 3 S◎L on Magic Eden' plus the item link."""
    verb = "sold" if kind is EventKind.SALE else "listed"
    url = event.marketplace.item_url(event.asset_id)
    headline = f"{event.asset.name} {verb} for {event.price} S◎L on {event.marketplace.name}"
    # Links count as 23 characters however long they are.
    room = MAX_TWEET_LENGTH - 24
    if len(headline) > room:
        headline = headline[: room - 3] + "..."
    return f"{headline}\n{url}"
