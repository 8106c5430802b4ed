"""Shared helpers and sample barcodes for the test suite."""

from __future__ import annotations

import json
from typing import Dict, List, Optional

import httpx

from barcoder.config import get_settings

# 13, 8 and 12 digit codes whose check digits satisfy the left-anchored 1,3 weighting.
EAN13 = "4006381333931"
EAN13_OTHER = "5901234123457"
EAN8 = "96385074"
UPCA = "036000291458"


def auth_headers() -> dict[str, str]:
    token = get_settings().api_token
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


class FakeProductDatabase:
    """Stand-in for the Open Food Facts product endpoint."""

    def __init__(self) -> None:
        self.products: Dict[str, Dict[str, object]] = {}
        self.offline = False
        self.status_code = 200
        self.requests: List[str] = []

    def add(self, barcode: str, name: Optional[str], image_url: Optional[str] = None) -> None:
        self.products[barcode] = {"product_name": name, "image_small_url": image_url}

    def handler(self, request: httpx.Request) -> httpx.Response:
        barcode = request.url.path.rsplit("/", 1)[-1]
        self.requests.append(barcode)
        if self.offline:
            raise httpx.ConnectError("offline", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"status": 0})
        product = self.products.get(barcode)
        if product is None:
            body = {"code": barcode, "status": 0, "status_verbose": "product not found"}
        else:
            body = {"code": barcode, "status": 1, "product": product}
        return httpx.Response(200, content=json.dumps(body).encode("utf-8"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
