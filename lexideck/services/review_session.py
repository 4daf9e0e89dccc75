"""Asyncio driver for the review state machine.

A session walks a snapshot of due cards, reports every rating and removal to a
:class:`~lexideck.services.ports.ReviewSink` (normally the learner's
:class:`~lexideck.services.deck_store.DeckStore`) and re-shows cards that are
still in learning once their in-session delay has elapsed.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional

from loguru import logger

from lexideck.config import settings as default_settings
from lexideck.core.clock import Clock, utcnow
from lexideck.core.review.machine import (
    ArmTimer,
    Close,
    DisarmTimer,
    Effect,
    Event,
    Open,
    PersistRemoval,
    PersistReview,
    Phase,
    Rate,
    Remove,
    Reveal,
    SessionState,
    Tick,
    transition,
)
from lexideck.core.srs.sm2 import IntervalPreview, Rating, preview_interval
from lexideck.schemas.card import Card
from lexideck.services.ports import ReviewSink
from lexideck.utils.exceptions import SessionError

_PERSIST_EFFECTS = (PersistReview, PersistRemoval)


class ReviewSession:
    """One review sitting for one learner."""

    def __init__(
        self,
        sink: ReviewSink,
        *,
        clock: Clock = utcnow,
        tick_seconds: Optional[float] = None,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._tick_seconds = default_settings.REVIEW_TICK_SECONDS if tick_seconds is None else tick_seconds
        self._state = SessionState()
        self._timer: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "ReviewSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def current_card(self) -> Optional[Card]:
        current = self._state.current
        return current.card if current else None

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def open(self, cards: Iterable[Card]) -> SessionState:
        if self._state.phase not in (Phase.IDLE, Phase.DONE):
            raise SessionError("A review session is already in progress")
        self._closed = False
        state = self._dispatch(Open(cards=tuple(cards)))
        logger.info("Review session opened", cards=state.total, phase=state.phase.value)
        return state

    def reveal(self) -> SessionState:
        return self._dispatch(Reveal())

    def rate(self, rating: int) -> SessionState:
        return self._dispatch(Rate(rating=Rating(rating)))

    def remove(self) -> SessionState:
        return self._dispatch(Remove())

    def close(self) -> None:
        if self._closed:
            return
        self._dispatch(Close())
        self._closed = True
        self._cancel_timer()

    def preview(self, rating: int) -> Optional[IntervalPreview]:
        card = self.current_card
        if card is None:
            return None
        return preview_interval(card, rating, self._clock())

    def previews(self) -> Dict[Rating, IntervalPreview]:
        """Would-be intervals for every rating of the current card."""

        card = self.current_card
        if card is None:
            return {}
        now = self._clock()
        return {rating: preview_interval(card, rating, now) for rating in Rating}

    def _dispatch(self, event: Event) -> SessionState:
        before = self._state
        result = transition(before, event, self._clock())
        if result.state is before and not result.effects:
            logger.debug("Ignored review event", event=type(event).__name__, phase=before.phase.value)
            return before
        # Persist first: if the sink refuses, the sitting stays on the same card
        persists = [effect for effect in result.effects if isinstance(effect, _PERSIST_EFFECTS)]
        timers = [effect for effect in result.effects if not isinstance(effect, _PERSIST_EFFECTS)]
        for effect in persists:
            self._apply(effect)
        self._state = result.state
        for effect in timers:
            self._apply(effect)
        if self._state.is_done and not before.is_done:
            logger.info("Review session finished", reviewed=self._state.reviewed)
        return self._state

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, PersistReview):
            self._sink.review_card(effect.card.id, int(effect.rating))
        elif isinstance(effect, PersistRemoval):
            self._sink.remove_card(effect.card_id)
        elif isinstance(effect, ArmTimer):
            self._cancel_timer()
            self._timer = asyncio.create_task(self._run_timer())
        elif isinstance(effect, DisarmTimer):
            self._cancel_timer()

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._tick_seconds)
            if self._closed or self._state.phase is not Phase.WAITING:
                return
            self._dispatch(Tick())
            if self._state.phase is not Phase.WAITING:
                return


__all__ = ["ReviewSession"]
