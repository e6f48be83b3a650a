"""Bounded memory of recently notified transaction ids.

Learn: A deque with maxlen gives O(1) push-front with automatic eviction
of the oldest entry. A plain set mirrors its contents so membership
checks don't scan the deque.
"""

from collections import deque
from typing import Iterator

DEFAULT_RECENCY_LIMIT = 50


class RecencySet:
    """Newest-first set of at most ``limit`` transaction ids."""

    def __init__(self, limit: int = DEFAULT_RECENCY_LIMIT):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._order: deque[str] = deque(maxlen=limit)
        self._members: set[str] = set()

    def add(self, tx_id: str) -> None:
        if tx_id in self._members:
            # Already tracked: move it to the front without growing.
            self._order.remove(tx_id)
        elif len(self._order) == self.limit:
            self._members.discard(self._order[-1])
        self._order.appendleft(tx_id)
        self._members.add(tx_id)

    def __contains__(self, tx_id: object) -> bool:
        return tx_id in self._members

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def snapshot(self) -> list[str]:
        return list(self._order)
