"""Product metadata models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProductInfo(BaseModel):
    """Best-effort product metadata; both fields absent means nothing is known."""

    name: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.image_url is None


EMPTY_PRODUCT = ProductInfo()


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class ProductLookup(BaseModel):
    """Result of a single outbound product database request."""

    barcode: str
    outcome: LookupOutcome
    info: ProductInfo = Field(default=EMPTY_PRODUCT)

    model_config = ConfigDict(frozen=True)


__all__ = ["EMPTY_PRODUCT", "LookupOutcome", "ProductInfo", "ProductLookup"]
