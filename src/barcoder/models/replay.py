"""Replay state models exposed to presentation layers."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReplayPhase(str, Enum):
    IDLE = "idle"
    TRANSITIONING = "transitioning"


class ReplayState(BaseModel):
    """Point-in-time view of a replay walk through a shopping list."""

    list_id: str
    current_index: int = Field(ge=0)
    length: int = Field(ge=0)
    barcode: Optional[str] = None
    defect: bool = False
    occurrence: int = Field(default=0, ge=0)
    quantity: int = Field(default=0, ge=0)
    is_first: bool = True
    is_last: bool = True
    phase: ReplayPhase = ReplayPhase.IDLE
    finished: bool = False
    defects: list[str] = Field(default_factory=list)
    scannable_remaining: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


__all__ = ["ReplayPhase", "ReplayState"]
