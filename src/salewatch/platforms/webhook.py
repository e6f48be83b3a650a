"""Generic JSON webhook sender."""

import httpx

from salewatch.errors import SendError
from salewatch.events.models import Event, EventKind, Platform
from salewatch.platforms.base import PlatformSender


class WebhookSender(PlatformSender):
    def __init__(self, client: httpx.AsyncClient, url: str):
        self._client = client
        self.url = url

    @property
    def platform(self) -> Platform:
        return Platform.WEBHOOK

    async def send(self, kind: EventKind, event: Event) -> None:
        payload = {"type": kind.value, **event.to_dict()}
        try:
            resp = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise SendError(self.platform.value, f"request failed: {e}") from e
        if resp.status_code >= 400:
            raise SendError(
                self.platform.value, f"webhook returned {resp.status_code}"
            )
