"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScannedItem(BaseModel):
    """One distinct barcode on a shopping list with its scanned quantity."""

    barcode: str
    quantity: int = Field(default=1, ge=1)
    first_scanned_at: datetime
    defect: bool = Field(
        default=False,
        description="Could not be read by the store scanner and needs manual handling.",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class ShoppingList(BaseModel):
    """Named list of scanned items, ordered by first scan."""

    id: str
    name: str
    created_at: datetime
    items: list[ScannedItem] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @property
    def unique_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, barcode: str) -> Optional[ScannedItem]:
        for item in self.items:
            if item.barcode == barcode:
                return item
        return None


__all__ = ["ScannedItem", "ShoppingList"]
