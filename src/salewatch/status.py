"""Notification status — how many sends succeeded and when the last one did.

Learn: One instance is created at startup and handed by reference to the
dispatch queue (which records successes) and the status API (which reads
them). A lock guards it so a reader on another thread never sees a
half-updated pair.
"""

import threading
from datetime import datetime, timezone
from typing import Optional


class NotificationStatus:
    def __init__(self):
        self._lock = threading.Lock()
        self._total_notified = 0
        self._total_failed = 0
        self._last_notified: Optional[datetime] = None

    def record_success(self, at: Optional[datetime] = None) -> None:
        with self._lock:
            self._total_notified += 1
            self._last_notified = at or datetime.now(timezone.utc)

    def record_failure(self) -> None:
        with self._lock:
            self._total_failed += 1

    @property
    def total_notified(self) -> int:
        with self._lock:
            return self._total_notified

    @property
    def last_notified(self) -> Optional[datetime]:
        with self._lock:
            return self._last_notified

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "total_notified": self._total_notified,
                "total_failed": self._total_failed,
                "last_notified": (
                    self._last_notified.isoformat() if self._last_notified else None
                ),
            }
