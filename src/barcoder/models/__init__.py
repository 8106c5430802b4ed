"""Pydantic models defining shared data contracts."""

from barcoder.models.cards import SavedCard
from barcoder.models.product import EMPTY_PRODUCT, LookupOutcome, ProductInfo, ProductLookup
from barcoder.models.replay import ReplayPhase, ReplayState
from barcoder.models.shopping import ScannedItem, ShoppingList

__all__ = [
    "SavedCard",
    "EMPTY_PRODUCT",
    "LookupOutcome",
    "ProductInfo",
    "ProductLookup",
    "ReplayPhase",
    "ReplayState",
    "ScannedItem",
    "ShoppingList",
]
