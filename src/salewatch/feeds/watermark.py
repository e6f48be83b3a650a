"""Per-feed "notified up to" timestamp."""

from datetime import datetime, timezone
from typing import Optional


class Watermark:
    """Monotonic timestamp. Events strictly before it are already handled."""

    def __init__(self, start: Optional[datetime] = None):
        self._value = start or datetime.now(timezone.utc)

    @property
    def value(self) -> datetime:
        return self._value

    def admits(self, occurred_at: datetime) -> bool:
        return occurred_at >= self._value

    def advance(self, occurred_at: datetime) -> None:
        if occurred_at > self._value:
            self._value = occurred_at

    def __repr__(self) -> str:
        return f"Watermark({self._value.isoformat()})"
