"""Tests for the shopping list store and its quantity reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from barcoder.db.lists import ListStore
from barcoder.db.snapshots import LISTS_SLOT, CollectionRepository, InMemoryRepository
from barcoder.models.shopping import ShoppingList
from tests.utils import EAN8, EAN13, EAN13_OTHER, UPCA

START = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class SteppingClock:
    def __init__(self) -> None:
        self._ticks = count()

    def __call__(self) -> datetime:
        return START + timedelta(minutes=next(self._ticks))


@pytest.fixture()
def store() -> ListStore:
    return ListStore(InMemoryRepository(), clock=SteppingClock())


def test_create_list_prepends_newest_first(store):
    first = store.create_list("Groceries")
    second = store.create_list("  Hardware  ")

    lists = store.all_lists()
    assert [shopping_list.id for shopping_list in lists] == [second.id, first.id]
    assert second.name == "Hardware"
    assert second.items == []
    assert first.id != second.id


def test_add_item_twice_reconciles_into_quantity(store):
    shopping_list = store.create_list("Groceries")

    store.add_item(shopping_list.id, EAN13)
    updated = store.add_item(shopping_list.id, EAN13)

    assert len(updated.items) == 1
    item = updated.items[0]
    assert item.barcode == EAN13
    assert item.quantity == 2
    assert item.defect is False


def test_repeat_scan_keeps_first_scan_time_and_defect(store):
    shopping_list = store.create_list("Groceries")
    first = store.add_item(shopping_list.id, EAN13).find(EAN13)
    store.mark_defect(shopping_list.id, EAN13, True)

    again = store.add_item(shopping_list.id, EAN13).find(EAN13)

    assert again.first_scanned_at == first.first_scanned_at
    assert again.defect is True
    assert again.quantity == 2


def test_items_keep_insertion_order(store):
    shopping_list = store.create_list("Groceries")
    for barcode in (EAN8, EAN13, UPCA, EAN13):
        store.add_item(shopping_list.id, barcode)

    items = store.get_list(shopping_list.id).items
    assert [(item.barcode, item.quantity) for item in items] == [(EAN8, 1), (EAN13, 2), (UPCA, 1)]


def test_update_quantity_to_zero_removes_item(store):
    shopping_list = store.create_list("Groceries")
    store.add_item(shopping_list.id, EAN13)

    updated = store.update_quantity(shopping_list.id, EAN13, -1)

    assert updated.find(EAN13) is None
    assert store.get_list(shopping_list.id).items == []


def test_update_quantity_below_zero_removes_item(store):
    shopping_list = store.create_list("Groceries")
    store.add_item(shopping_list.id, EAN13)
    store.add_item(shopping_list.id, EAN13)

    assert store.update_quantity(shopping_list.id, EAN13, -5).items == []


def test_update_quantity_increments(store):
    shopping_list = store.create_list("Groceries")
    store.add_item(shopping_list.id, EAN13)

    assert store.update_quantity(shopping_list.id, EAN13, 3).find(EAN13).quantity == 4


def test_remove_item_ignores_quantity(store):
    shopping_list = store.create_list("Groceries")
    for _ in range(3):
        store.add_item(shopping_list.id, EAN13)
    store.add_item(shopping_list.id, EAN8)

    updated = store.remove_item(shopping_list.id, EAN13)

    assert [item.barcode for item in updated.items] == [EAN8]


def test_mark_defect_does_not_touch_quantity(store):
    shopping_list = store.create_list("Groceries")
    store.add_item(shopping_list.id, EAN13)
    store.add_item(shopping_list.id, EAN13)

    flagged = store.mark_defect(shopping_list.id, EAN13, True).find(EAN13)
    cleared = store.mark_defect(shopping_list.id, EAN13, False).find(EAN13)

    assert flagged.defect is True and flagged.quantity == 2
    assert cleared.defect is False and cleared.quantity == 2


def test_operations_on_unknown_list_are_noops():
    repository = InMemoryRepository()
    store = ListStore(repository)
    existing = store.create_list("Groceries")
    saves = repository.saves

    assert store.add_item("missing", EAN13) is None
    assert store.remove_item("missing", EAN13) is None
    assert store.update_quantity("missing", EAN13, 1) is None
    assert store.mark_defect("missing", EAN13, True) is None
    store.delete_list("missing")

    assert repository.saves == saves
    assert store.all_lists() == [existing]


def test_operations_on_unknown_barcode_leave_list_unchanged(store):
    shopping_list = store.create_list("Groceries")
    store.add_item(shopping_list.id, EAN13)
    before = store.get_list(shopping_list.id)

    assert store.update_quantity(shopping_list.id, EAN8, -1) == before
    assert store.mark_defect(shopping_list.id, EAN8, True) == before
    assert store.remove_item(shopping_list.id, EAN8) == before


def test_delete_list(store):
    keep = store.create_list("Keep")
    drop = store.create_list("Drop")

    store.delete_list(drop.id)

    assert store.get_list(drop.id) is None
    assert store.all_lists() == [keep]


def test_mutations_only_touch_target_list(store):
    groceries = store.create_list("Groceries")
    hardware = store.create_list("Hardware")

    store.add_item(groceries.id, EAN13)

    assert store.get_list(hardware.id).items == []


def test_net_effect_has_no_duplicate_barcodes(store):
    shopping_list = store.create_list("Groceries")
    operations = [
        ("add", EAN13),
        ("add", EAN8),
        ("add", EAN13),
        ("qty", EAN8, 2),
        ("qty", EAN13, -2),
        ("add", EAN13),
        ("add", EAN13_OTHER),
        ("remove", EAN8),
        ("add", EAN8),
    ]
    for operation in operations:
        if operation[0] == "add":
            store.add_item(shopping_list.id, operation[1])
        elif operation[0] == "qty":
            store.update_quantity(shopping_list.id, operation[1], operation[2])
        else:
            store.remove_item(shopping_list.id, operation[1])

    items = store.get_list(shopping_list.id).items
    barcodes = [item.barcode for item in items]
    assert len(barcodes) == len(set(barcodes))
    assert [(item.barcode, item.quantity) for item in items] == [
        (EAN13, 1),
        (EAN13_OTHER, 1),
        (EAN8, 1),
    ]


def test_collection_round_trips_through_sqlite(tmp_path):
    db_path = tmp_path / "roundtrip.db"
    store = ListStore(CollectionRepository(LISTS_SLOT, ShoppingList, database_path=db_path))
    groceries = store.create_list("Groceries")
    store.add_item(groceries.id, EAN13)
    store.add_item(groceries.id, EAN13)
    store.add_item(groceries.id, UPCA)
    store.mark_defect(groceries.id, UPCA, True)
    store.create_list("Empty")
    before = store.all_lists()

    reloaded = ListStore(
        CollectionRepository(LISTS_SLOT, ShoppingList, database_path=db_path)
    ).all_lists()

    assert reloaded == before
    assert reloaded[1].created_at == groceries.created_at
    assert reloaded[1].find(UPCA).defect is True
