"""Marketplace clients that feed workers poll."""

from salewatch.marketplaces.magic_eden import MAGIC_EDEN, CollectionActivity, MagicEdenClient

__all__ = ["MAGIC_EDEN", "CollectionActivity", "MagicEdenClient"]
