"""Notification destinations.

Learn: build_senders() only creates a sender for a platform whose
credentials are configured. Notifiers skip platforms with no sender,
so an unconfigured destination is silently off.
"""

import httpx

from salewatch.config import Settings
from salewatch.events.models import Platform
from salewatch.platforms.base import PlatformSender
from salewatch.platforms.discord import DiscordSender
from salewatch.platforms.twitter import TwitterSender
from salewatch.platforms.webhook import WebhookSender


def build_senders(settings: Settings, client: httpx.AsyncClient) -> dict[Platform, PlatformSender]:
    senders: dict[Platform, PlatformSender] = {}
    if settings.discord_bot_token:
        senders[Platform.DISCORD] = DiscordSender(
            client,
            settings.discord_bot_token,
            api_url=settings.discord_api_url,
            default_channel_id=settings.discord_channel_id or None,
        )
    # Twitter signs every request, so it gets its own OAuth1 client.
    if settings.twitter_configured:
        senders[Platform.TWITTER] = TwitterSender(
            settings.twitter_api_key,
            settings.twitter_api_secret,
            settings.twitter_access_token,
            settings.twitter_access_secret,
            api_url=settings.twitter_api_url,
            timeout=settings.http_timeout,
        )
    if settings.webhook_url:
        senders[Platform.WEBHOOK] = WebhookSender(client, settings.webhook_url)
    return senders


__all__ = ["DiscordSender", "PlatformSender", "TwitterSender", "WebhookSender", "build_senders"]
