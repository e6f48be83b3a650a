"""Status and debug endpoints.

Learn: The pipeline has no UI. Operators see it through logs and these
read-only endpoints. The debug endpoint runs one record through the
same resolve/filter/build path the worker uses, without touching the
worker's watermark or recency set.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from salewatch import __version__
from salewatch.errors import FetchError
from salewatch.events.models import Platform
from salewatch.service import Runtime

router = APIRouter()


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


@router.get("/health")
async def health_check(runtime: Runtime = Depends(get_runtime)):
    """Server liveness plus dispatch queue depth."""
    return {
        "server": "ok",
        "version": __version__,
        "scheduler": "running" if runtime.scheduler.running else "stopped",
        "queue": runtime.queue.snapshot(),
    }


@router.get("/status")
async def status(runtime: Runtime = Depends(get_runtime)):
    return {
        "watching": [
            {
                "feed": w.feed.name,
                "collection": w.feed.collection,
                "kind": w.feed.kind.value,
                "discord_channel_id": w.feed.discord_channel_id,
            }
            for w in runtime.workers
        ],
        "platforms": [p.value for p in runtime.notifiers.platforms],
        **runtime.status.snapshot(),
        "now": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/feeds")
async def list_feeds(runtime: Runtime = Depends(get_runtime)):
    return [w.snapshot() for w in runtime.workers]


@router.get("/debug/activity/{signature}")
async def debug_activity(
    signature: str,
    feed: str = Query(..., description="Feed name, e.g. 'degods:listings'"),
    notify: bool = Query(False, description="Also dispatch the event"),
    channel_id: Optional[str] = Query(None, description="Post to this Discord channel instead"),
    tweet: bool = Query(False, description="Include Twitter when notifying"),
    runtime: Runtime = Depends(get_runtime),
):
    """Find a signature in the feed's current batch and show the event it builds."""
    worker = runtime.find_worker(feed)
    if worker is None:
        raise HTTPException(status_code=404, detail=f"Unknown feed: {feed}")

    try:
        batch = await worker.fetch()
    except FetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    record = next((r for r in batch if r.signature == signature), None)
    if record is None:
        raise HTTPException(status_code=404, detail="Signature not found in current batch")
    if record.kind not in worker.feed.source_kinds:
        raise HTTPException(
            status_code=422, detail=f"Activity type {record.kind!r} is not watched by {feed}"
        )

    event = await worker.preview(record)
    if event is None:
        raise HTTPException(status_code=422, detail="Asset unresolved or not in allow list")

    if notify:
        target = worker.feed
        if channel_id:
            target = replace(target, discord_channel_id=channel_id)
        if not tweet:
            target = replace(
                target, platforms=tuple(p for p in target.platforms if p is not Platform.TWITTER)
            )
        await runtime.notifiers.create(target).notify(
            target.kind, replace(event, source_feed=target)
        )

    return {"event": event.to_dict(), "notified": notify}
