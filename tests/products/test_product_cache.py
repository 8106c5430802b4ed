"""Tests for the memoizing product lookup cache."""

from __future__ import annotations

import asyncio
from typing import Tuple

import pytest

from barcoder.db.repository import write_slot
from barcoder.db.snapshots import PRODUCTS_SLOT, CollectionRepository, InMemoryRepository
from barcoder.integrations.openfoodfacts import OpenFoodFactsClient
from barcoder.models.product import LookupOutcome, ProductInfo, ProductLookup
from barcoder.products.cache import ProductLookupCache
from tests.utils import EAN8, EAN13, UPCA, FakeProductDatabase


def _durable() -> CollectionRepository:
    return CollectionRepository(PRODUCTS_SLOT, Tuple[str, ProductInfo])


def _cache(product_db: FakeProductDatabase, repository=None, **kwargs) -> ProductLookupCache:
    client = OpenFoodFactsClient("https://off.example/api/v2", transport=product_db.transport())
    return ProductLookupCache(client, repository if repository is not None else _durable(), **kwargs)


@pytest.mark.asyncio
async def test_found_product_is_cached_in_memory_and_durably(product_db):
    product_db.add(EAN13, "Sparkling Water", "https://img/water.jpg")
    cache = _cache(product_db)

    first = await cache.lookup(EAN13)
    second = await cache.lookup(EAN13)

    assert first == ProductInfo(name="Sparkling Water", image_url="https://img/water.jpg")
    assert second == first
    assert product_db.requests == [EAN13]
    assert cache.is_durable(EAN13)
    assert _durable().load() == [(EAN13, first)]


@pytest.mark.asyncio
async def test_failed_lookup_is_memory_only_and_retried_later(product_db):
    product_db.offline = True
    cache = _cache(product_db)

    failed = await cache.lookup(EAN13)
    again = await cache.lookup(EAN13)

    assert failed.is_empty
    assert again.is_empty
    assert product_db.requests == [EAN13]
    assert not cache.is_durable(EAN13)
    assert _durable().load() == []

    product_db.offline = False
    product_db.add(EAN13, "Sparkling Water")
    restarted = _cache(product_db)

    recovered = await restarted.lookup(EAN13)

    assert recovered.name == "Sparkling Water"
    assert product_db.requests == [EAN13, EAN13]


@pytest.mark.asyncio
async def test_error_status_is_not_persisted(product_db):
    product_db.status_code = 500
    cache = _cache(product_db)

    assert (await cache.lookup(EAN13)).is_empty
    assert _durable().load() == []


@pytest.mark.asyncio
async def test_not_found_is_persisted_by_default(product_db):
    cache = _cache(product_db)

    info = await cache.lookup(EAN8)

    assert info.is_empty
    assert cache.is_durable(EAN8)
    assert _durable().load() == [(EAN8, ProductInfo())]

    hydrated = _cache(product_db)
    assert hydrated.peek(EAN8) == ProductInfo()
    await hydrated.lookup(EAN8)
    assert product_db.requests == [EAN8]


@pytest.mark.asyncio
async def test_not_found_can_stay_memory_only(product_db):
    cache = _cache(product_db, persist_not_found=False)

    await cache.lookup(EAN8)

    assert EAN8 in cache
    assert not cache.is_durable(EAN8)
    assert _durable().load() == []


@pytest.mark.asyncio
async def test_failures_are_not_written_alongside_later_successes(product_db):
    product_db.offline = True
    cache = _cache(product_db)
    await cache.lookup(EAN8)

    product_db.offline = False
    product_db.add(EAN13, "Sparkling Water")
    await cache.lookup(EAN13)

    assert [barcode for barcode, _ in _durable().load()] == [EAN13]


@pytest.mark.asyncio
async def test_concurrent_lookups_share_one_request():
    release = asyncio.Event()
    calls: list[str] = []

    class SlowFetcher:
        async def fetch(self, barcode: str) -> ProductLookup:
            calls.append(barcode)
            await release.wait()
            return ProductLookup(
                barcode=barcode,
                outcome=LookupOutcome.FOUND,
                info=ProductInfo(name="Oat Milk"),
            )

    cache = ProductLookupCache(SlowFetcher(), InMemoryRepository())
    pending = [asyncio.ensure_future(cache.lookup(EAN13)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*pending)

    assert calls == [EAN13]
    assert all(result.name == "Oat Milk" for result in results)


@pytest.mark.asyncio
async def test_fetcher_exception_degrades_to_empty_result():
    class BrokenFetcher:
        async def fetch(self, barcode: str) -> ProductLookup:
            raise RuntimeError("boom")

    repository = InMemoryRepository()
    cache = ProductLookupCache(BrokenFetcher(), repository)

    info = await cache.lookup(EAN13)

    assert info.is_empty
    assert repository.saves == 0


@pytest.mark.asyncio
async def test_lookup_many_deduplicates_and_preserves_order(product_db):
    product_db.add(EAN13, "Sparkling Water")
    product_db.add(UPCA, "Cereal")
    cache = _cache(product_db)

    results = await cache.lookup_many([UPCA, EAN13, UPCA, EAN8])

    assert list(results) == [UPCA, EAN13, EAN8]
    assert results[UPCA].name == "Cereal"
    assert results[EAN8].is_empty
    assert sorted(product_db.requests) == sorted([UPCA, EAN13, EAN8])


@pytest.mark.asyncio
async def test_forget_forces_a_fresh_request(product_db):
    product_db.add(EAN13, "Sparkling Water")
    cache = _cache(product_db)
    await cache.lookup(EAN13)

    cache.forget(EAN13)

    assert cache.peek(EAN13) is None
    assert _durable().load() == []
    await cache.lookup(EAN13)
    assert product_db.requests == [EAN13, EAN13]


def test_corrupt_durable_cache_hydrates_empty(product_db):
    write_slot(PRODUCTS_SLOT, "[[\"4006381333931\", 17]")

    cache = _cache(product_db)

    assert len(cache) == 0
