"""Memoizing product lookup with a durable tier and failure isolation."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from sqlalchemy.exc import SQLAlchemyError

from barcoder import metrics
from barcoder.db.snapshots import Repository
from barcoder.models.product import EMPTY_PRODUCT, LookupOutcome, ProductInfo, ProductLookup

logger = logging.getLogger(__name__)

CacheEntry = Tuple[str, ProductInfo]


class ProductFetcher(Protocol):
    async def fetch(self, barcode: str) -> ProductLookup: ...


class ProductLookupCache:
    """Barcode to ProductInfo cache owned by the application's composition root.

    Entries live in memory for the lifetime of the cache. Found products (and, by
    default, confirmed "not found" answers) are also written through to durable
    storage; results caused by transport failures or error statuses stay memory-only
    so a later process retries them. Concurrent lookups of one barcode share a single
    outbound request.
    """

    def __init__(
        self,
        client: ProductFetcher,
        repository: Repository[CacheEntry],
        *,
        persist_not_found: bool = True,
    ) -> None:
        self._client = client
        self._repository = repository
        self._persist_not_found = persist_not_found
        self._durable: Dict[str, ProductInfo] = dict(repository.load())
        self._memory: Dict[str, ProductInfo] = dict(self._durable)
        self._in_flight: Dict[str, asyncio.Task[ProductInfo]] = {}
        logger.debug("Product cache hydrated with %s entr(ies)", len(self._durable))

    def __contains__(self, barcode: object) -> bool:
        return barcode in self._memory

    def __len__(self) -> int:
        return len(self._memory)

    def peek(self, barcode: str) -> Optional[ProductInfo]:
        """Return the cached entry without triggering a lookup."""

        return self._memory.get(barcode)

    def is_durable(self, barcode: str) -> bool:
        return barcode in self._durable

    async def lookup(self, barcode: str) -> ProductInfo:
        cached = self._memory.get(barcode)
        if cached is not None:
            metrics.PRODUCT_LOOKUPS.labels(outcome="hit").inc()
            return cached

        task = self._in_flight.get(barcode)
        if task is None:
            task = asyncio.ensure_future(self._resolve(barcode))
            self._in_flight[barcode] = task
            task.add_done_callback(lambda done, key=barcode: self._finish(key, done))
        return await asyncio.shield(task)

    async def lookup_many(self, barcodes: Iterable[str]) -> Dict[str, ProductInfo]:
        """Resolve several barcodes concurrently, keyed in first-seen order."""

        unique: List[str] = list(dict.fromkeys(barcodes))
        results = await asyncio.gather(*(self.lookup(barcode) for barcode in unique))
        return dict(zip(unique, results))

    def forget(self, barcode: str) -> None:
        """Drop an entry so the next lookup goes back to the product database."""

        self._memory.pop(barcode, None)
        if self._durable.pop(barcode, None) is not None:
            self._persist()

    def clear(self) -> None:
        self._memory.clear()
        self._durable.clear()
        self._persist()

    def _finish(self, barcode: str, task: asyncio.Task[ProductInfo]) -> None:
        if self._in_flight.get(barcode) is task:
            del self._in_flight[barcode]

    async def _resolve(self, barcode: str) -> ProductInfo:
        try:
            result = await self._client.fetch(barcode)
        except Exception:
            logger.exception("Product fetcher raised for barcode=%s", barcode)
            result = ProductLookup(barcode=barcode, outcome=LookupOutcome.FAILED)

        info = result.info if result.outcome is LookupOutcome.FOUND else EMPTY_PRODUCT
        self._memory[barcode] = info
        metrics.PRODUCT_LOOKUPS.labels(outcome=result.outcome.value).inc()

        durable = result.outcome is LookupOutcome.FOUND or (
            result.outcome is LookupOutcome.NOT_FOUND and self._persist_not_found
        )
        if durable:
            self._durable[barcode] = info
            self._persist()
        logger.debug(
            "Resolved product barcode=%s outcome=%s durable=%s",
            barcode,
            result.outcome.value,
            durable,
            extra={"barcode": barcode},
        )
        return info

    def _persist(self) -> None:
        try:
            self._repository.save(list(self._durable.items()))
        except SQLAlchemyError:
            logger.warning("Unable to persist product cache; keeping memory copy", exc_info=True)


__all__ = ["CacheEntry", "ProductFetcher", "ProductLookupCache"]
