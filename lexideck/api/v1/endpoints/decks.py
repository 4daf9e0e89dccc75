"""Deck browsing and editing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from lexideck.api import deps
from lexideck.schemas.card import Card
from lexideck.schemas.deck import (
    CardAddResponse,
    CardCreate,
    DeckOverview,
    DueCardsResponse,
    RatingRequest,
)
from lexideck.services.deck_store import DeckStore
from lexideck.utils.exceptions import (
    CardNotFoundError,
    DeckNotLoadedError,
    handle_card_not_found_error,
    handle_deck_not_loaded_error,
)

router = APIRouter(prefix="/decks/{learner_id}", tags=["decks"])


def _missing_card(deck: DeckStore, card_id: str) -> CardNotFoundError:
    return CardNotFoundError(
        f"Card {card_id!r} is not in the deck",
        {"learner_id": deck.learner_id, "card_id": card_id},
    )


@router.get("", response_model=DeckOverview)
async def read_deck(deck: DeckStore = Depends(deps.get_deck)) -> DeckOverview:
    """Return every card together with due count and persistence status."""

    cards = list(deck.cards)
    return DeckOverview(
        learner_id=deck.learner_id,
        cards=cards,
        total=len(cards),
        due_count=deck.due_count,
        degraded=deck.degraded,
        save_warning=deck.save_warning,
    )


@router.get("/due", response_model=DueCardsResponse)
async def list_due_cards(deck: DeckStore = Depends(deps.get_deck)) -> DueCardsResponse:
    """Return cards due now, oldest first."""

    items = deck.due_cards()
    return DueCardsResponse(total=len(items), items=items)


@router.post("/cards", response_model=CardAddResponse, status_code=status.HTTP_201_CREATED)
async def add_card(
    payload: CardCreate,
    response: Response,
    deck: DeckStore = Depends(deps.get_deck),
) -> CardAddResponse:
    """Add a word; adding a word that is already in the deck changes nothing."""

    try:
        card = deck.add_card(
            payload.word,
            payload.translation,
            payload.source_language,
            context=payload.context,
            context_translation=payload.context_translation,
            dictionary=payload.dictionary,
        )
    except DeckNotLoadedError as exc:
        raise handle_deck_not_loaded_error(exc) from exc
    if card is None:
        response.status_code = status.HTTP_200_OK
        return CardAddResponse(added=False)
    return CardAddResponse(added=True, card=card)


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(card_id: str, deck: DeckStore = Depends(deps.get_deck)) -> Response:
    try:
        removed = deck.remove_card(card_id)
    except DeckNotLoadedError as exc:
        raise handle_deck_not_loaded_error(exc) from exc
    if not removed:
        raise handle_card_not_found_error(_missing_card(deck, card_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/cards/{card_id}/review", response_model=Card)
async def review_card(
    card_id: str,
    payload: RatingRequest,
    deck: DeckStore = Depends(deps.get_deck),
) -> Card:
    """Rate a card outside of a review session."""

    try:
        card = deck.review_card(card_id, payload.rating)
    except DeckNotLoadedError as exc:
        raise handle_deck_not_loaded_error(exc) from exc
    if card is None:
        raise handle_card_not_found_error(_missing_card(deck, card_id))
    return card


@router.delete("/warning", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_warning(deck: DeckStore = Depends(deps.get_deck)) -> Response:
    deck.dismiss_warning()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
