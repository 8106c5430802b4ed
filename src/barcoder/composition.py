"""Build the application's long-lived collaborators from settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from barcoder.config import Settings, get_settings
from barcoder.db.cards import CardStore
from barcoder.db.lists import ListStore
from barcoder.db.snapshots import CARDS_SLOT, LISTS_SLOT, PRODUCTS_SLOT, CollectionRepository
from barcoder.integrations.openfoodfacts import OpenFoodFactsClient
from barcoder.models.cards import SavedCard
from barcoder.models.product import ProductInfo
from barcoder.models.shopping import ShoppingList
from barcoder.products.cache import ProductLookupCache
from barcoder.replay.sessions import ReplaySessions


@dataclass
class Services:
    lists: ListStore
    cards: CardStore
    products: ProductLookupCache
    replays: ReplaySessions


def build_services(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    """Construct stores and the product cache once, hydrated from the snapshot database."""

    settings = settings or get_settings()
    db_path = settings.database_path
    lists = ListStore(CollectionRepository(LISTS_SLOT, ShoppingList, database_path=db_path))
    cards = CardStore(CollectionRepository(CARDS_SLOT, SavedCard, database_path=db_path))
    client = OpenFoodFactsClient(
        settings.product_api_base_url,
        user_agent=settings.product_api_user_agent,
        timeout=settings.product_api_timeout,
        transport=transport,
    )
    products = ProductLookupCache(
        client,
        CollectionRepository(PRODUCTS_SLOT, Tuple[str, ProductInfo], database_path=db_path),
        persist_not_found=settings.product_cache_persist_not_found,
    )
    return Services(lists=lists, cards=cards, products=products, replays=ReplaySessions(lists))


__all__ = ["Services", "build_services"]
