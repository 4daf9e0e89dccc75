"""API endpoint modules for v1."""

from lexideck.api.v1.endpoints import decks, review

__all__ = ["decks", "review"]
