"""Shopping list store: CRUD and scan quantity reconciliation.

Each mutation loads the whole list collection, applies a pure transformation to the
target list and writes the whole collection back. Operations on an unknown list id
leave the collection untouched and return None.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from barcoder.models.shopping import ScannedItem, ShoppingList

from .snapshots import Repository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ListTransform = Callable[[ShoppingList], ShoppingList]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


def with_scan(shopping_list: ShoppingList, barcode: str, scanned_at: datetime) -> ShoppingList:
    """Count one more scan of ``barcode``, appending it when it is new to the list."""

    if shopping_list.find(barcode) is None:
        item = ScannedItem(barcode=barcode, quantity=1, first_scanned_at=scanned_at)
        return shopping_list.model_copy(update={"items": [*shopping_list.items, item]})

    items = [
        item.model_copy(update={"quantity": item.quantity + 1}) if item.barcode == barcode else item
        for item in shopping_list.items
    ]
    return shopping_list.model_copy(update={"items": items})


def without_item(shopping_list: ShoppingList, barcode: str) -> ShoppingList:
    if shopping_list.find(barcode) is None:
        return shopping_list
    items = [item for item in shopping_list.items if item.barcode != barcode]
    return shopping_list.model_copy(update={"items": items})


def with_quantity_delta(shopping_list: ShoppingList, barcode: str, delta: int) -> ShoppingList:
    """Shift the quantity of ``barcode`` by ``delta``; items reaching zero are dropped."""

    if delta == 0 or shopping_list.find(barcode) is None:
        return shopping_list

    items: List[ScannedItem] = []
    for item in shopping_list.items:
        if item.barcode != barcode:
            items.append(item)
            continue
        quantity = item.quantity + delta
        if quantity > 0:
            items.append(item.model_copy(update={"quantity": quantity}))
    return shopping_list.model_copy(update={"items": items})


def with_defect(shopping_list: ShoppingList, barcode: str, defect: bool) -> ShoppingList:
    current = shopping_list.find(barcode)
    if current is None or current.defect == defect:
        return shopping_list
    items = [
        item.model_copy(update={"defect": defect}) if item.barcode == barcode else item
        for item in shopping_list.items
    ]
    return shopping_list.model_copy(update={"items": items})


class ListStore:
    """Authoritative store for shopping lists and their scanned items."""

    def __init__(
        self,
        repository: Repository[ShoppingList],
        *,
        clock: Clock = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory

    def all_lists(self) -> List[ShoppingList]:
        """Return every list, newest first."""

        return self._repository.load()

    def get_list(self, list_id: str) -> Optional[ShoppingList]:
        for shopping_list in self._repository.load():
            if shopping_list.id == list_id:
                return shopping_list
        return None

    def create_list(self, name: str) -> ShoppingList:
        created = ShoppingList(
            id=self._id_factory(),
            name=name.strip(),
            created_at=self._clock(),
            items=[],
        )
        lists = self._repository.load()
        self._repository.save([created, *lists])
        logger.info("Created list %s name=%s", created.id, created.name, extra={"list_id": created.id})
        return created

    def delete_list(self, list_id: str) -> None:
        lists = self._repository.load()
        remaining = [shopping_list for shopping_list in lists if shopping_list.id != list_id]
        if len(remaining) == len(lists):
            logger.debug("Delete of unknown list %s ignored", list_id)
            return
        self._repository.save(remaining)
        logger.info("Deleted list %s", list_id, extra={"list_id": list_id})

    def add_item(self, list_id: str, barcode: str) -> Optional[ShoppingList]:
        scanned_at = self._clock()
        return self._mutate(list_id, lambda current: with_scan(current, barcode, scanned_at))

    def remove_item(self, list_id: str, barcode: str) -> Optional[ShoppingList]:
        return self._mutate(list_id, lambda current: without_item(current, barcode))

    def update_quantity(self, list_id: str, barcode: str, delta: int) -> Optional[ShoppingList]:
        return self._mutate(list_id, lambda current: with_quantity_delta(current, barcode, delta))

    def mark_defect(self, list_id: str, barcode: str, defect: bool) -> Optional[ShoppingList]:
        return self._mutate(list_id, lambda current: with_defect(current, barcode, defect))

    def _mutate(self, list_id: str, transform: ListTransform) -> Optional[ShoppingList]:
        lists = self._repository.load()
        for index, current in enumerate(lists):
            if current.id != list_id:
                continue
            updated = transform(current)
            if updated is not current:
                lists[index] = updated
                self._repository.save(lists)
                logger.debug(
                    "List %s now has %s item(s), %s total",
                    list_id,
                    updated.unique_count,
                    updated.total_quantity,
                    extra={"list_id": list_id},
                )
            return updated

        logger.debug("Mutation on unknown list %s ignored", list_id)
        return None


__all__ = [
    "ListStore",
    "with_defect",
    "with_quantity_delta",
    "with_scan",
    "without_item",
]
