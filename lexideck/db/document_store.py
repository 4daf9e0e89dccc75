"""SQL-backed primary store holding one deck document per learner."""
from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.orm import sessionmaker

from lexideck.db.models.deck import DeckDocumentRecord
from lexideck.schemas.card import DeckDocument, cards_from_payload, cards_to_payload


class SqlDeckDocumentStore:
    """Persist whole deck documents through SQLAlchemy.

    Blocking database work runs in a worker thread so the event loop that
    owns the deck store keeps serving timers and requests.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _get_sync(self, learner_id: str) -> Optional[DeckDocument]:
        with self._session_factory() as db:
            record = db.get(DeckDocumentRecord, learner_id)
            if record is None:
                return None
            return DeckDocument(
                cards=cards_from_payload(record.cards),
                updated_at=record.updated_at,
            )

    def _set_sync(self, learner_id: str, document: DeckDocument) -> None:
        with self._session_factory() as db:
            try:
                record = db.get(DeckDocumentRecord, learner_id)
                if record is None:
                    record = DeckDocumentRecord(learner_id=learner_id)
                    db.add(record)
                record.cards = cards_to_payload(document.cards)
                record.updated_at = document.updated_at
                db.commit()
            except Exception:
                db.rollback()
                raise
        logger.debug("Deck document stored", learner_id=learner_id, cards=len(document.cards))

    async def get(self, learner_id: str) -> Optional[DeckDocument]:
        return await asyncio.to_thread(self._get_sync, learner_id)

    async def set(self, learner_id: str, document: DeckDocument) -> None:
        await asyncio.to_thread(self._set_sync, learner_id, document)


__all__ = ["SqlDeckDocumentStore"]
