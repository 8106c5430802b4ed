"""Open Food Facts product lookup client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from barcoder.config import get_settings
from barcoder.models.product import LookupOutcome, ProductInfo, ProductLookup

logger = logging.getLogger(__name__)

LOOKUP_FIELDS = "product_name,image_small_url"


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


class OpenFoodFactsClient:
    """Async wrapper around the Open Food Facts v2 product endpoint.

    The client never raises for lookup problems: transport errors, non-2xx responses
    and undecodable bodies are reported as ``LookupOutcome.FAILED`` so the caller can
    decide whether the result is worth remembering.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.product_api_base_url).rstrip("/")
        self._user_agent = user_agent or settings.product_api_user_agent
        self._timeout = timeout if timeout is not None else settings.product_api_timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"User-Agent": self._user_agent, "Accept": "application/json"}

    async def fetch(self, barcode: str) -> ProductLookup:
        """Request name and small image URL for ``barcode``."""

        endpoint = f"{self._base_url}/product/{barcode}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = await client.get(endpoint, params={"fields": LOOKUP_FIELDS})
        except httpx.HTTPError as exc:
            logger.info("Product lookup transport failure barcode=%s error=%s", barcode, exc)
            return ProductLookup(barcode=barcode, outcome=LookupOutcome.FAILED)

        if not response.is_success:
            logger.info(
                "Product lookup rejected barcode=%s status=%s", barcode, response.status_code
            )
            return ProductLookup(barcode=barcode, outcome=LookupOutcome.FAILED)

        try:
            data = response.json()
        except ValueError:
            logger.warning("Product lookup returned invalid JSON barcode=%s", barcode)
            return ProductLookup(barcode=barcode, outcome=LookupOutcome.FAILED)

        product = data.get("product") if isinstance(data, dict) else None
        if not isinstance(data, dict) or data.get("status") != 1 or not isinstance(product, dict):
            logger.debug("Product not found barcode=%s", barcode)
            return ProductLookup(barcode=barcode, outcome=LookupOutcome.NOT_FOUND)

        info = ProductInfo(
            name=_clean(product.get("product_name")),
            image_url=_clean(product.get("image_small_url")),
        )
        return ProductLookup(barcode=barcode, outcome=LookupOutcome.FOUND, info=info)


__all__ = ["LOOKUP_FIELDS", "OpenFoodFactsClient"]
