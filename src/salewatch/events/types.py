"""Log event names.

Learn: Centralizing event names as constants prevents typos and makes
it easy to grep the logs for every stage of the pipeline.
"""

# ─── Feed worker ─────────────────────────────────────────

FEED_FETCH_FAILED = "feed.fetch_failed"
FEED_BATCH_FETCHED = "feed.batch_fetched"
FEED_ASSET_UNRESOLVED = "feed.asset_unresolved"
FEED_NOT_WATCHED = "feed.not_watched"
FEED_BEFORE_WATERMARK = "feed.before_watermark"
FEED_DUPLICATE = "feed.duplicate"
FEED_NOTIFIED = "feed.notified"
FEED_BATCH_STOPPED = "feed.batch_stopped"
FEED_CYCLE_FAILED = "feed.cycle_failed"

# ─── Scheduler ───────────────────────────────────────────

SCHEDULER_STARTED = "scheduler.started"
SCHEDULER_WORKER_ERROR = "scheduler.worker_error"
SCHEDULER_STOPPED = "scheduler.stopped"

# ─── Dispatch ────────────────────────────────────────────

DISPATCH_SENT = "dispatch.sent"
DISPATCH_FAILED = "dispatch.failed"
DISPATCH_PLATFORM_SKIPPED = "dispatch.platform_skipped"
