"""Status API tests.

Learn: The runtime is built by the same build_runtime() the service
uses, but its httpx client runs on a MockTransport that plays both
Magic Eden and the webhook endpoint. The app is driven in-process
through ASGITransport.
"""

import json

import httpx
import pytest
import pytest_asyncio

from salewatch.api import create_app
from salewatch.config import Settings
from salewatch.events.models import Platform
from salewatch.platforms.base import PlatformSender
from salewatch.service import build_runtime

from fakes import T0, T0_SECONDS

ACTIVITIES = [
    {"signature": "list-1", "type": "list", "tokenMint": "mint-1",
     "blockTime": T0_SECONDS + 5, "seller": "seller-1", "price": 2.5},
    {"signature": "sale-1", "type": "buyNow", "tokenMint": "mint-2",
     "blockTime": T0_SECONDS + 6, "seller": "seller-2", "buyer": "buyer-2", "price": 9},
]


class FakeUpstream:
    def __init__(self):
        self.webhook_posts = []
        self.activities_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/activities"):
            if self.activities_status != 200:
                return httpx.Response(self.activities_status)
            return httpx.Response(200, json=ACTIVITIES)
        if "/tokens/" in path:
            mint = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"name": f"Degen #{mint[-1]}", "image": ""})
        if request.url.host == "hooks.test":
            self.webhook_posts.append(json.loads(request.content))
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture()
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture()
async def runtime(upstream):
    settings = Settings(
        _env_file=None,
        magic_eden_url="https://me.test/v2",
        magic_eden_collection="degods",
        webhook_url="https://hooks.test/notify",
        queue_concurrency=1,
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    rt = build_runtime(settings, http=http, start_at=T0)
    yield rt
    await rt.close()


@pytest_asyncio.fixture()
async def client(runtime):
    transport = httpx.ASGITransport(app=create_app(runtime))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    data = r.json()
    assert data["server"] == "ok"
    assert "version" in data
    assert data["queue"]["concurrency"] == 1


@pytest.mark.asyncio
async def test_status_lists_feeds_and_counts(client, runtime):
    r = await client.get("/api/v1/status")
    assert r.status_code == 200
    data = r.json()
    assert [w["feed"] for w in data["watching"]] == ["degods:sales", "degods:listings"]
    assert data["platforms"] == ["webhook"]
    assert data["total_notified"] == 0
    assert data["last_notified"] is None
    assert "now" in data


@pytest.mark.asyncio
async def test_status_reflects_worker_cycle(client, runtime, upstream):
    for worker in runtime.workers:
        await worker.execute()
    await runtime.queue.join()

    assert sorted(p["transaction_id"] for p in upstream.webhook_posts) == ["list-1", "sale-1"]

    data = (await client.get("/api/v1/status")).json()
    assert data["total_notified"] == 2
    assert data["last_notified"] is not None

    feeds = (await client.get("/api/v1/feeds")).json()
    by_name = {f["name"]: f for f in feeds}
    assert by_name["degods:listings"]["recent"] == ["list-1"]
    assert by_name["degods:sales"]["recent"] == ["sale-1"]


@pytest.mark.asyncio
async def test_debug_activity_previews_without_state_change(client, runtime, upstream):
    r = await client.get(
        "/api/v1/debug/activity/list-1", params={"feed": "degods:listings"}
    )
    assert r.status_code == 200
    body = r.json()
    assert body["event"]["transaction_id"] == "list-1"
    assert body["event"]["asset_name"] == "Degen #1"
    assert body["notified"] is False

    worker = runtime.find_worker("degods:listings")
    assert len(worker.recency) == 0
    assert worker.watermark.value == T0
    assert upstream.webhook_posts == []


@pytest.mark.asyncio
async def test_debug_activity_notify(client, runtime, upstream):
    r = await client.get(
        "/api/v1/debug/activity/sale-1",
        params={"feed": "degods:sales", "notify": "true"},
    )
    assert r.status_code == 200
    await runtime.queue.join()
    assert [p["transaction_id"] for p in upstream.webhook_posts] == ["sale-1"]
    assert upstream.webhook_posts[0]["buyer"] == "buyer-2"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "signature, feed, status",
    [
        ("list-1", "nope:listings", 404),
        ("missing", "degods:listings", 404),
        ("sale-1", "degods:listings", 422),
    ],
)
async def test_debug_activity_errors(client, signature, feed, status):
    r = await client.get(f"/api/v1/debug/activity/{signature}", params={"feed": feed})
    assert r.status_code == status


@pytest.mark.asyncio
async def test_debug_activity_upstream_failure(client, upstream):
    upstream.activities_status = 429
    r = await client.get(
        "/api/v1/debug/activity/list-1", params={"feed": "degods:listings"}
    )
    assert r.status_code == 502


class RecordingSender(PlatformSender):
    def __init__(self, platform):
        self._platform = platform
        self.sent = []

    @property
    def platform(self):
        return self._platform

    async def send(self, kind, event):
        self.sent.append((event.transaction_id, event.source_feed.discord_channel_id))


@pytest.mark.asyncio
async def test_debug_activity_channel_override_and_tweet_toggle(client, runtime):
    discord = RecordingSender(Platform.DISCORD)
    twitter = RecordingSender(Platform.TWITTER)
    runtime.notifiers.senders.update({Platform.DISCORD: discord, Platform.TWITTER: twitter})
    path = "/api/v1/debug/activity/list-1"

    r = await client.get(
        path, params={"feed": "degods:listings", "notify": "true", "channel_id": "999"}
    )
    assert r.status_code == 200
    await runtime.queue.join()
    assert discord.sent == [("list-1", "999")]
    assert twitter.sent == []

    r = await client.get(path, params={"feed": "degods:listings", "notify": "true", "tweet": "true"})
    assert r.status_code == 200
    await runtime.queue.join()
    assert discord.sent[-1] == ("list-1", None)
    assert twitter.sent == [("list-1", None)]
