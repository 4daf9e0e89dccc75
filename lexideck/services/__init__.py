"""Service layer: deck persistence, review sessions and enrichment clients."""

from lexideck.services.deck_store import SAVE_WARNING, DeckStore
from lexideck.services.registry import DeckRegistry
from lexideck.services.review_session import ReviewSession

__all__ = ["DeckStore", "DeckRegistry", "ReviewSession", "SAVE_WARNING"]
