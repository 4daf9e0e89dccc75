"""Deck document model."""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from lexideck.db.base import Base


class DeckDocumentRecord(Base):
    """One learner's whole card collection, overwritten on every save."""

    __tablename__ = "deck_documents"

    learner_id = Column(String(128), primary_key=True)
    cards = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<DeckDocumentRecord learner_id={self.learner_id!r}>"
