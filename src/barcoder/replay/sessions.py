"""In-process registry of active replays, one per list."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from barcoder.db.lists import ListStore
from barcoder.replay.sequencer import ReplaySequencer

logger = logging.getLogger(__name__)


class ReplaySessions:
    def __init__(self, store: ListStore) -> None:
        self._store = store
        self._active: Dict[str, ReplaySequencer] = {}

    def start(self, list_id: str) -> Optional[ReplaySequencer]:
        """Begin (or restart) a replay at the first barcode; None when the list is missing."""

        sequencer = ReplaySequencer(self._store, list_id)
        if not sequencer.available:
            self._active.pop(list_id, None)
            return None
        self._active[list_id] = sequencer
        logger.info(
            "Replay started for list %s with %s barcode(s)",
            list_id,
            len(sequencer.sequence),
            extra={"list_id": list_id},
        )
        return sequencer

    def get(self, list_id: str) -> Optional[ReplaySequencer]:
        """Return the active replay re-synced with the store, dropping it if the list is gone."""

        sequencer = self._active.get(list_id)
        if sequencer is None:
            return None
        if not sequencer.refresh():
            self.end(list_id)
            return None
        return sequencer

    def end(self, list_id: str) -> None:
        self._active.pop(list_id, None)

    def __len__(self) -> int:
        return len(self._active)


__all__ = ["ReplaySessions"]
