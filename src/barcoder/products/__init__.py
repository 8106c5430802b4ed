"""Product metadata enrichment."""

from barcoder.products.cache import CacheEntry, ProductFetcher, ProductLookupCache

__all__ = ["CacheEntry", "ProductFetcher", "ProductLookupCache"]
