"""Salewatch — NFT marketplace sale and listing notifier.

Polls marketplace activity feeds, deduplicates and orders what comes back,
and fans each confirmed event out to Discord channels and webhooks.
"""

__version__ = "0.1.0"
