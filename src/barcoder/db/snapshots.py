"""Whole-collection repositories backed by snapshot slots.

Every collection (lists, cards, the product cache) is persisted as one JSON array.
Callers load the whole collection, transform it and save it back; there is no
row-level access. Unreadable snapshots load as an empty collection.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Generic, Iterable, List, Optional, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from barcoder.db.repository import read_slot, write_slot

logger = logging.getLogger(__name__)

LISTS_SLOT = "lists"
CARDS_SLOT = "cards"
PRODUCTS_SLOT = "products"

T = TypeVar("T")


class Repository(Protocol[T]):
    def load(self) -> List[T]: ...

    def save(self, items: Iterable[T]) -> None: ...


class CollectionRepository(Generic[T]):
    """Persist a homogeneous collection under a single snapshot slot."""

    def __init__(self, slot: str, item_type: Any, *, database_path: Optional[Path] = None) -> None:
        self.slot = slot
        self._adapter: TypeAdapter[List[T]] = TypeAdapter(List[item_type])  # type: ignore[valid-type]
        self._database_path = database_path

    def load(self) -> List[T]:
        try:
            raw = read_slot(self.slot, self._database_path)
        except SQLAlchemyError:
            logger.warning("Unable to read %s snapshot; starting empty", self.slot, exc_info=True)
            return []
        if raw is None:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable %s snapshot (%s error(s))", self.slot, exc.error_count()
            )
            return []

    def save(self, items: Iterable[T]) -> None:
        payload = self._adapter.dump_json(list(items), by_alias=True).decode("utf-8")
        write_slot(self.slot, payload, self._database_path)
        logger.debug("Saved %s snapshot bytes=%s", self.slot, len(payload))


class InMemoryRepository(Generic[T]):
    """Repository keeping the collection in process memory only."""

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._items: List[T] = list(items or [])
        self.saves = 0

    def load(self) -> List[T]:
        return list(self._items)

    def save(self, items: Iterable[T]) -> None:
        self._items = list(items)
        self.saves += 1


__all__ = [
    "CARDS_SLOT",
    "LISTS_SLOT",
    "PRODUCTS_SLOT",
    "CollectionRepository",
    "InMemoryRepository",
    "Repository",
]
