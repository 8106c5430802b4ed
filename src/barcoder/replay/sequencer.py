"""Replay of a shopping list as a flat walk of individual barcodes.

An item with quantity N contributes N consecutive positions, items in list order.
Defective items stay in the walk; they are reported as defective so a presentation
layer can dim them and offer to clear the flag without leaving the replay.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

from barcoder.db.lists import ListStore
from barcoder.models.replay import ReplayPhase, ReplayState
from barcoder.models.shopping import ScannedItem

logger = logging.getLogger(__name__)


class StepResult(str, Enum):
    MOVED = "moved"
    COMPLETED = "completed"
    NOOP = "noop"
    BLOCKED = "blocked"


def flatten_items(items: Sequence[ScannedItem]) -> List[str]:
    """Expand items into one barcode per unit, keeping each item's repeats together."""

    return [item.barcode for item in items for _ in range(item.quantity)]


def occurrence(sequence: Sequence[str], index: int) -> Tuple[int, int]:
    """Return ``(n, total)`` for the "n of total" label at ``index``."""

    barcode = sequence[index]
    running = sum(1 for position in range(index + 1) if sequence[position] == barcode)
    return running, sum(1 for entry in sequence if entry == barcode)


def clamp_index(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


class ReplaySequencer:
    """Cursor and defect state for replaying one list.

    ``advance``/``retreat`` move the cursor immediately. When asked to animate, the
    sequencer enters the ``transitioning`` phase and ignores further moves until
    ``settle`` is called, which guards against double-advance from repeated taps.
    """

    def __init__(self, store: ListStore, list_id: str, *, start_index: int = 0) -> None:
        self._store = store
        self._list_id = list_id
        self._sequence: List[str] = []
        self._defects: Set[str] = set()
        self._index = start_index
        self._phase = ReplayPhase.IDLE
        self._finished = False
        self._available = False
        self.refresh()

    @property
    def list_id(self) -> str:
        return self._list_id

    @property
    def available(self) -> bool:
        """False when the list no longer exists."""

        return self._available

    @property
    def sequence(self) -> Tuple[str, ...]:
        return tuple(self._sequence)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_barcode(self) -> Optional[str]:
        if not self._sequence:
            return None
        return self._sequence[self._index]

    @property
    def defects(self) -> frozenset[str]:
        return frozenset(self._defects)

    @property
    def phase(self) -> ReplayPhase:
        return self._phase

    @property
    def finished(self) -> bool:
        return self._finished

    def refresh(self) -> bool:
        """Re-derive the walk from the stored list and pull its defect flags."""

        shopping_list = self._store.get_list(self._list_id)
        if shopping_list is None:
            self._available = False
            self._sequence = []
            self._defects = set()
            self._index = 0
            return False

        self._available = True
        self._sequence = flatten_items(shopping_list.items)
        self._defects = {item.barcode for item in shopping_list.items if item.defect}
        self._index = clamp_index(self._index, len(self._sequence))
        return True

    def advance(self, *, animate: bool = False) -> StepResult:
        if self._phase is ReplayPhase.TRANSITIONING:
            return StepResult.BLOCKED
        if not self._sequence or self._index >= len(self._sequence) - 1:
            self._finished = True
            logger.debug("Replay of list %s completed", self._list_id, extra={"list_id": self._list_id})
            return StepResult.COMPLETED
        self._index += 1
        self._after_move(animate)
        return StepResult.MOVED

    def retreat(self, *, animate: bool = False) -> StepResult:
        if self._phase is ReplayPhase.TRANSITIONING:
            return StepResult.BLOCKED
        if self._index == 0:
            return StepResult.NOOP
        self._index -= 1
        self._after_move(animate)
        return StepResult.MOVED

    def settle(self) -> None:
        """End the presentation transition and accept moves again."""

        self._phase = ReplayPhase.IDLE

    def toggle_defect(self) -> Optional[bool]:
        """Flip the defect flag of the displayed barcode and write it to the store.

        Returns the new flag, or None when there is nothing displayed.
        """

        barcode = self.current_barcode
        if barcode is None:
            return None
        flagged = barcode not in self._defects
        if flagged:
            self._defects.add(barcode)
        else:
            self._defects.discard(barcode)
        self._store.mark_defect(self._list_id, barcode, flagged)
        logger.info(
            "Defect %s for barcode %s",
            "set" if flagged else "cleared",
            barcode,
            extra={"list_id": self._list_id, "barcode": barcode},
        )
        return flagged

    def snapshot(self) -> ReplayState:
        length = len(self._sequence)
        barcode = self.current_barcode
        count, total = occurrence(self._sequence, self._index) if barcode else (0, 0)
        remaining = sum(
            1 for entry in self._sequence[self._index:] if entry not in self._defects
        )
        return ReplayState(
            list_id=self._list_id,
            current_index=self._index,
            length=length,
            barcode=barcode,
            defect=barcode in self._defects if barcode else False,
            occurrence=count,
            quantity=total,
            is_first=self._index == 0,
            is_last=length == 0 or self._index == length - 1,
            phase=self._phase,
            finished=self._finished,
            defects=sorted(self._defects),
            scannable_remaining=remaining,
        )

    def _after_move(self, animate: bool) -> None:
        self._finished = False
        if animate:
            self._phase = ReplayPhase.TRANSITIONING


__all__ = ["ReplaySequencer", "StepResult", "clamp_index", "flatten_items", "occurrence"]
