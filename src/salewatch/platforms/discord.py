"""Discord sender — posts one embed per event to a channel via the bot API.

Learn: No gateway connection is needed to post messages. A single
authenticated REST call does it:

  POST /channels/{channel_id}/messages
  Authorization: Bot <token>

The message carries an embed (name, price, seller/buyer, image) and a
row of link buttons to the transaction and token on the explorer.
"""

from typing import Optional

import httpx
import structlog

from salewatch.errors import SendError
from salewatch.events.models import Event, EventKind, Platform
from salewatch.platforms.base import PlatformSender, truncate_address

logger = structlog.get_logger()

DISCORD_API_URL = "https://discord.com/api/v10"
EXPLORER_URL = "https://solscan.io"

EMBED_COLOR = 0x0099FF
BUTTON_LINK_STYLE = 5
COMPONENT_ACTION_ROW = 1
COMPONENT_BUTTON = 2


class DiscordSender(PlatformSender):
    def __init__(
        self,
        client: httpx.AsyncClient,
        bot_token: str,
        *,
        api_url: str = DISCORD_API_URL,
        default_channel_id: Optional[str] = None,
    ):
        self._client = client
        self._token = bot_token
        self.api_url = api_url.rstrip("/")
        self.default_channel_id = default_channel_id

    @property
    def platform(self) -> Platform:
        return Platform.DISCORD

    async def send(self, kind: EventKind, event: Event) -> None:
        channel_id = event.source_feed.discord_channel_id or self.default_channel_id
        if not channel_id:
            raise SendError(self.platform.value, f"no channel for feed {event.source_feed.name}")

        try:
            resp = await self._client.post(
                f"{self.api_url}/channels/{channel_id}/messages",
                headers={"Authorization": f"Bot {self._token}"},
                json=build_message(kind, event),
            )
        except httpx.HTTPError as e:
            raise SendError(self.platform.value, f"request failed: {e}") from e

        if resp.status_code >= 400:
            raise SendError(
                self.platform.value,
                f"channel {channel_id} returned {resp.status_code}: {resp.text[:200]}",
            )

        logger.info(
            "discord.notified",
            channel_id=channel_id,
            asset=event.asset.name,
            kind=kind.value,
        )


def build_message(kind: EventKind, event: Event) -> dict:
    """Render the Discord message payload for one event."""
    marketplace = event.marketplace
    verb = "Sold" if kind is EventKind.SALE else "Listed"

    fields = [
        {"name": "Price", "value": f"{event.price:.2f} S◎L", "inline": False},
        {
            "name": "Seller",
            "value": _format_address(event, event.seller) if event.seller else "unknown",
            "inline": True,
        },
    ]
    if kind is EventKind.SALE:
        fields.append({
            "name": "Buyer",
            "value": _format_address(event, event.buyer) if event.buyer else "unknown",
            "inline": True,
        })

    embed = {
        "color": EMBED_COLOR,
        "title": event.asset.name,
        "url": marketplace.item_url(event.asset_id),
        "description": f"{verb} for {event.price} S◎L on {marketplace.name}",
        "timestamp": event.occurred_at.isoformat(),
        "fields": fields,
        "footer": {
            "text": f"{verb} on {marketplace.name}",
            "icon_url": marketplace.icon_url or None,
        },
    }
    if event.asset.image:
        embed["image"] = {"url": event.asset.image}

    buttons = [
        {
            "type": COMPONENT_BUTTON,
            "style": BUTTON_LINK_STYLE,
            "label": "View Transaction",
            "url": f"{EXPLORER_URL}/tx/{event.transaction_id}",
        },
        {
            "type": COMPONENT_BUTTON,
            "style": BUTTON_LINK_STYLE,
            "label": "View Token",
            "url": f"{EXPLORER_URL}/token/{event.asset_id}",
        },
    ]

    return {
        "embeds": [embed],
        "components": [{"type": COMPONENT_ACTION_ROW, "components": buttons}],
    }


def _format_address(event: Event, address: str) -> str:
    return f"[{truncate_address(address)}]({event.marketplace.profile_url(address)})"
