"""Domain types shared by feeds, the dispatcher and the API."""

from salewatch.events.models import (
    ActivityRecord,
    AssetData,
    BatchPolicy,
    Event,
    EventKind,
    FeedConfig,
    Marketplace,
    Platform,
    TaskResult,
)

__all__ = [
    "ActivityRecord",
    "AssetData",
    "BatchPolicy",
    "Event",
    "EventKind",
    "FeedConfig",
    "Marketplace",
    "Platform",
    "TaskResult",
]
