"""CLI tests via click's CliRunner."""

import json

import httpx
from click.testing import CliRunner

from salewatch.cli.main import main
from salewatch.service import build_runtime

from fakes import T0, T0_SECONDS


def test_feeds_without_collection():
    result = CliRunner().invoke(main, ["feeds"])
    assert result.exit_code == 0
    assert "No feeds configured" in result.output


def test_feeds_lists_configured_feeds(monkeypatch):
    monkeypatch.setenv("SALEWATCH_MAGIC_EDEN_COLLECTION", "degods")
    monkeypatch.setenv("SALEWATCH_ALLOW_LIST", '["42"]')
    monkeypatch.setenv("SALEWATCH_WEBHOOK_URL", "https://hooks.test")

    result = CliRunner().invoke(main, ["feeds"])

    assert result.exit_code == 0
    assert "degods:sales" in result.output
    assert "degods:listings" in result.output
    assert "allow: 42" in result.output
    assert "webhook  on" in result.output
    assert "discord  off" in result.output


def test_invalid_config_exits_1(monkeypatch):
    monkeypatch.setenv("SALEWATCH_QUEUE_CONCURRENCY", "0")

    result = CliRunner().invoke(main, ["feeds"])

    assert result.exit_code == 1
    assert "SALEWATCH_QUEUE_CONCURRENCY" in result.output


def test_unparseable_list_value_exits_1(monkeypatch):
    monkeypatch.setenv("SALEWATCH_ALLOW_LIST", "1234,42")

    result = CliRunner().invoke(main, ["feeds"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid configuration" in result.output
    assert "allow_list" in result.output


def _patched_runtime(monkeypatch, handler):
    import salewatch.service

    def _build(settings, **kw):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return build_runtime(settings, http=http, start_at=T0)

    monkeypatch.setattr(salewatch.service, "build_runtime", _build)
    monkeypatch.setenv("SALEWATCH_MAGIC_EDEN_COLLECTION", "degods")


def test_check_prints_event(monkeypatch):
    def handler(request):
        if request.url.path.endswith("/activities"):
            return httpx.Response(200, json=[{
                "signature": "sig-9", "type": "list", "tokenMint": "mint-9",
                "blockTime": T0_SECONDS + 1, "seller": "s", "price": 1,
            }])
        return httpx.Response(200, json={"name": "Degen #9", "image": ""})

    _patched_runtime(monkeypatch, handler)

    result = CliRunner().invoke(main, ["check", "sig-9", "--feed", "degods:listings"])

    assert result.exit_code == 0, result.output
    event = json.loads(result.output)
    assert event["transaction_id"] == "sig-9"
    assert event["asset_name"] == "Degen #9"


def test_check_unknown_feed(monkeypatch):
    _patched_runtime(monkeypatch, lambda request: httpx.Response(200, json=[]))

    result = CliRunner().invoke(main, ["check", "sig-9", "--feed", "other:listings"])

    assert result.exit_code == 1
    assert "Unknown feed" in result.output


def test_check_fetch_failure(monkeypatch):
    _patched_runtime(monkeypatch, lambda request: httpx.Response(500))

    result = CliRunner().invoke(main, ["check", "sig-9", "--feed", "degods:listings"])

    assert result.exit_code == 1
    assert "Fetch failed" in result.output
