"""Prometheus metrics definitions for Barcoder."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "barcoder_http_requests_total",
    "Total number of HTTP requests processed by the Barcoder API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "barcoder_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Barcoder API",
    ["method", "path"],
)

SCANS = Counter(
    "barcoder_scans_total",
    "Barcodes submitted to a shopping list by result",
    ["result"],
)

PRODUCT_LOOKUPS = Counter(
    "barcoder_product_lookups_total",
    "Product lookups served by the cache by outcome",
    ["outcome"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SCANS",
    "PRODUCT_LOOKUPS",
]
