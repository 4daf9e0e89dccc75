"""Database models."""

from lexideck.db.models.deck import DeckDocumentRecord

__all__ = ["DeckDocumentRecord"]
