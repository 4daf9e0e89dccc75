"""Pydantic schemas package."""

from lexideck.schemas.card import Card, DeckDocument

__all__ = ["Card", "DeckDocument"]
