"""Review session endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Response, status

from lexideck.api import deps
from lexideck.core.srs.sm2 import format_preview
from lexideck.schemas.deck import IntervalPreviewRead, RatingRequest, SessionStateRead
from lexideck.services.registry import DeckRegistry
from lexideck.services.review_session import ReviewSession
from lexideck.utils.exceptions import SessionError, handle_session_error

router = APIRouter(prefix="/decks/{learner_id}/session", tags=["review"])


def _session_state(session: ReviewSession) -> SessionStateRead:
    state = session.state
    previews = [
        IntervalPreviewRead(
            rating=rating,
            value=preview.value,
            unit=preview.unit,
            label=format_preview(preview),
        )
        for rating, preview in session.previews().items()
    ]
    return SessionStateRead(
        phase=state.phase,
        current=session.current_card,
        remaining=state.remaining,
        reviewed=state.reviewed,
        total=state.total,
        countdown=state.countdown,
        previews=previews,
    )


def _existing_session(
    learner_id: str = Path(..., min_length=1, max_length=128),
    registry: DeckRegistry = Depends(deps.get_registry),
) -> ReviewSession:
    try:
        return registry.get_session(learner_id)
    except SessionError as exc:
        raise handle_session_error(exc) from exc


@router.post("", response_model=SessionStateRead, status_code=status.HTTP_201_CREATED)
async def open_session(
    learner_id: str = Path(..., min_length=1, max_length=128),
    registry: DeckRegistry = Depends(deps.get_registry),
) -> SessionStateRead:
    """Start a sitting over the cards that are due now."""

    try:
        session = await registry.open_session(learner_id)
    except SessionError as exc:
        raise handle_session_error(exc) from exc
    return _session_state(session)


@router.get("", response_model=SessionStateRead)
async def read_session(session: ReviewSession = Depends(_existing_session)) -> SessionStateRead:
    return _session_state(session)


@router.post("/reveal", response_model=SessionStateRead)
async def reveal_card(session: ReviewSession = Depends(_existing_session)) -> SessionStateRead:
    session.reveal()
    return _session_state(session)


@router.post("/rate", response_model=SessionStateRead)
async def rate_card(
    payload: RatingRequest,
    session: ReviewSession = Depends(_existing_session),
) -> SessionStateRead:
    """Rate the revealed card; ratings before reveal are ignored."""

    session.rate(payload.rating)
    return _session_state(session)


@router.post("/remove", response_model=SessionStateRead)
async def remove_card(session: ReviewSession = Depends(_existing_session)) -> SessionStateRead:
    """Delete the current card from the deck and move on."""

    session.remove()
    return _session_state(session)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    learner_id: str = Path(..., min_length=1, max_length=128),
    registry: DeckRegistry = Depends(deps.get_registry),
) -> Response:
    if not registry.close_session(learner_id):
        raise handle_session_error(SessionError(f"No review session for learner {learner_id}"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
