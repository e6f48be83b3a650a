"""Platform sender base — one implementation per notification destination.

Learn: The dispatch queue doesn't know what Discord or a webhook is.
It only runs the send coroutine a sender hands it and logs the outcome.
A sender reports failure by raising SendError.
"""

from abc import ABC, abstractmethod

from salewatch.events.models import Event, EventKind, Platform


class PlatformSender(ABC):
    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Which destination this sender delivers to."""

    @abstractmethod
    async def send(self, kind: EventKind, event: Event) -> None:
        """Deliver one event. Raise SendError on failure."""

    async def close(self) -> None:
        """Release anything the sender owns. Most share the runtime client."""


def truncate_address(address: str, keep: int = 4) -> str:
    """'9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin' -> '9xQe...VFin'."""
    if len(address) <= keep * 2 + 3:
        return address
    return f"{address[:keep]}...{address[-keep:]}"
