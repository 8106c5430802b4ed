"""Replay sequencing for showing a list one barcode at a time."""

from barcoder.replay.sequencer import (
    ReplaySequencer,
    StepResult,
    clamp_index,
    flatten_items,
    occurrence,
)
from barcoder.replay.sessions import ReplaySessions

__all__ = [
    "ReplaySequencer",
    "ReplaySessions",
    "StepResult",
    "clamp_index",
    "flatten_items",
    "occurrence",
]
