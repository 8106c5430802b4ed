"""Saved card store."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional
from uuid import uuid4

from barcoder.models.cards import SavedCard

from .snapshots import Repository

logger = logging.getLogger(__name__)


class CardStore:
    """CRUD over membership/loyalty barcodes. Card barcodes are free-form and never validated."""

    def __init__(
        self,
        repository: Repository[SavedCard],
        *,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._repository = repository
        self._id_factory = id_factory

    def all_cards(self) -> List[SavedCard]:
        return self._repository.load()

    def get_card(self, card_id: str) -> Optional[SavedCard]:
        for card in self._repository.load():
            if card.id == card_id:
                return card
        return None

    def add_card(self, name: str, barcode: str) -> SavedCard:
        card = SavedCard(id=self._id_factory(), name=name.strip(), barcode=barcode.strip())
        cards = self._repository.load()
        self._repository.save([*cards, card])
        logger.info("Saved card %s name=%s", card.id, card.name)
        return card

    def delete_card(self, card_id: str) -> None:
        cards = self._repository.load()
        remaining = [card for card in cards if card.id != card_id]
        if len(remaining) == len(cards):
            logger.debug("Delete of unknown card %s ignored", card_id)
            return
        self._repository.save(remaining)
        logger.info("Deleted card %s", card_id)


__all__ = ["CardStore"]
