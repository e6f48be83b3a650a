"""Settings and feed construction tests."""

import pytest
from pydantic import ValidationError

from salewatch.config import Settings, build_feeds
from salewatch.events.models import BatchPolicy, EventKind


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.queue_concurrency == 5
    assert settings.jitter_max_ms == 5000
    assert settings.recency_limit == 50
    assert settings.batch_policy is BatchPolicy.SKIP
    assert build_feeds(settings) == []


def test_env_vars_are_loaded(monkeypatch):
    monkeypatch.setenv("SALEWATCH_MAGIC_EDEN_COLLECTION", "degods")
    monkeypatch.setenv("SALEWATCH_ALLOW_LIST", '["42", " 7 ", ""]')
    monkeypatch.setenv("SALEWATCH_BATCH_POLICY", "stop")
    monkeypatch.setenv("SALEWATCH_QUEUE_CONCURRENCY", "2")
    monkeypatch.setenv("SALEWATCH_DISCORD_CHANNEL_ID", "999")

    settings = Settings(_env_file=None)
    feeds = build_feeds(settings)

    assert settings.batch_policy is BatchPolicy.STOP
    assert settings.queue_concurrency == 2
    assert [f.name for f in feeds] == ["degods:sales", "degods:listings"]
    sales, listings = feeds
    assert sales.kind is EventKind.SALE
    assert sales.source_kinds == frozenset({"buyNow"})
    assert listings.kind is EventKind.LISTING
    assert listings.source_kinds == frozenset({"list"})
    assert listings.allow_list == frozenset({"42", "7"})
    assert listings.discord_channel_id == "999"


def test_feeds_can_be_turned_off():
    settings = Settings(_env_file=None, magic_eden_collection="degods", watch_sales=False)
    assert [f.kind for f in build_feeds(settings)] == [EventKind.LISTING]


@pytest.mark.parametrize(
    "field, value",
    [
        ("queue_concurrency", 0),
        ("recency_limit", 0),
        ("jitter_max_ms", -1),
        ("log_level", "LOUD"),
        ("batch_policy", "sometimes"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_log_level_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"
