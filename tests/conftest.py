"""Shared fixtures — feed configs, fake source, recording notifier, worker factory."""

import os
from typing import Optional

import pytest

from salewatch.events.models import BatchPolicy, EventKind, FeedConfig
from salewatch.feeds import FeedWorker
from salewatch.marketplaces import MAGIC_EDEN

from fakes import T0, FakeSource, RecordingNotifier


@pytest.fixture()
def listing_feed() -> FeedConfig:
    return FeedConfig(
        name="degods:listings",
        collection="degods",
        kind=EventKind.LISTING,
        source_kinds=frozenset({"list"}),
        discord_channel_id="123",
    )


@pytest.fixture()
def sale_feed() -> FeedConfig:
    return FeedConfig(
        name="degods:sales",
        collection="degods",
        kind=EventKind.SALE,
        source_kinds=frozenset({"buyNow"}),
        discord_channel_id="123",
    )


@pytest.fixture()
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def make_worker(listing_feed, source, notifier):
    """Build a FeedWorker wired to the fake source and recording notifier."""

    def _make(
        feed: Optional[FeedConfig] = None,
        policy: BatchPolicy = BatchPolicy.SKIP,
        recency_limit: int = 50,
    ) -> FeedWorker:
        return FeedWorker(
            feed or listing_feed,
            fetch_batch=source.fetch,
            resolve_asset=source.resolve,
            notifier=notifier,
            marketplace=MAGIC_EDEN,
            policy=policy,
            recency_limit=recency_limit,
            start_at=T0,
        )

    return _make


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep a developer's SALEWATCH_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("SALEWATCH_"):
            monkeypatch.delenv(key)
