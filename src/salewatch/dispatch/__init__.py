"""Notification dispatch: the shared send queue and per-feed notifiers."""

from salewatch.dispatch.notifier import Notifier, NotifierFactory
from salewatch.dispatch.queue import DispatchQueue

__all__ = ["DispatchQueue", "Notifier", "NotifierFactory"]
