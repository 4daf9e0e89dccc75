"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, HTTPException, Path, Request, status

from lexideck.services.deck_store import DeckStore
from lexideck.services.registry import DeckRegistry
from lexideck.utils.exceptions import DeckNotLoadedError, handle_deck_not_loaded_error


def get_registry(request: Request) -> DeckRegistry:
    """Return the registry created during application startup."""

    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deck registry is not available",
        )
    return registry


async def get_deck(
    learner_id: str = Path(..., min_length=1, max_length=128),
    registry: DeckRegistry = Depends(get_registry),
) -> DeckStore:
    """Resolve the learner's loaded deck."""

    deck = await registry.get_deck(learner_id)
    if deck.closed:
        raise handle_deck_not_loaded_error(DeckNotLoadedError(f"Deck for learner {learner_id} is closed"))
    return deck
