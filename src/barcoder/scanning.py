"""Scan intake: validate raw scanner or keyboard input before it reaches a list."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict

from barcoder import metrics
from barcoder.barcode import barcode_format, is_valid_barcode
from barcoder.db.lists import ListStore
from barcoder.models.shopping import ShoppingList

logger = logging.getLogger(__name__)

INVALID_BARCODE_MESSAGE = "Invalid barcode. Must be a valid EAN-13, EAN-8, or UPC-A code."
LIST_NOT_FOUND_MESSAGE = "List not found"


class ScanResult(BaseModel):
    accepted: bool
    barcode: str
    format: Optional[str] = None
    message: Optional[str] = None
    shopping_list: Optional[ShoppingList] = None

    model_config = ConfigDict(frozen=True)


def submit_scan(store: ListStore, list_id: str, raw: str) -> ScanResult:
    """Add ``raw`` to the list when it is a valid retail barcode.

    Rejections carry a short user-facing message and leave the list untouched.
    Blank input is rejected without a message.
    """

    barcode = (raw or "").strip()
    if not barcode:
        return ScanResult(accepted=False, barcode=barcode)

    if not is_valid_barcode(barcode):
        metrics.SCANS.labels(result="rejected").inc()
        logger.info("Rejected scan %r for list %s", barcode, list_id, extra={"list_id": list_id})
        return ScanResult(accepted=False, barcode=barcode, message=INVALID_BARCODE_MESSAGE)

    updated = store.add_item(list_id, barcode)
    if updated is None:
        metrics.SCANS.labels(result="rejected").inc()
        return ScanResult(accepted=False, barcode=barcode, message=LIST_NOT_FOUND_MESSAGE)

    metrics.SCANS.labels(result="accepted").inc()
    return ScanResult(
        accepted=True,
        barcode=barcode,
        format=barcode_format(barcode),
        shopping_list=updated,
    )


__all__ = ["INVALID_BARCODE_MESSAGE", "LIST_NOT_FOUND_MESSAGE", "ScanResult", "submit_scan"]
