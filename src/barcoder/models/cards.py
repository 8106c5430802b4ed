"""Saved membership card models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SavedCard(BaseModel):
    """Static loyalty or membership barcode kept for display at the till."""

    id: str
    name: str
    barcode: str

    model_config = ConfigDict(frozen=True)


__all__ = ["SavedCard"]
