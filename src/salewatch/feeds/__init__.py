"""Feed workers: fetch, order, filter and deduplicate marketplace activity."""

from salewatch.feeds.recency import DEFAULT_RECENCY_LIMIT, RecencySet
from salewatch.feeds.watermark import Watermark
from salewatch.feeds.worker import FeedWorker, Worker

__all__ = ["DEFAULT_RECENCY_LIMIT", "FeedWorker", "RecencySet", "Watermark", "Worker"]
