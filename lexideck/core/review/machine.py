"""Finite-state model of a single review sitting.

The machine is pure: :func:`transition` maps ``(state, event, now)`` to a new
state plus a tuple of effects. Timers and persistence are effects that the
driver in :mod:`lexideck.services.review_session` carries out.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from lexideck.core.clock import TZ
from lexideck.core.srs.sm2 import Rating, advance, learning_delay
from lexideck.schemas.card import Card

# Items opened from the due set are available immediately.
IMMEDIATELY = dt.datetime.min.replace(tzinfo=TZ)


class Phase(str, Enum):
    IDLE = "idle"
    SHOWING = "showing"
    REVEALED = "revealed"
    WAITING = "waiting"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class QueueItem:
    """A card plus the wall-clock time it becomes available in this sitting."""

    card: Card
    due_at: dt.datetime


@dataclass(frozen=True, slots=True)
class SessionState:
    phase: Phase = Phase.IDLE
    current: Optional[QueueItem] = None
    queue: Tuple[QueueItem, ...] = ()
    countdown: Optional[int] = None
    reviewed: int = 0
    total: int = 0

    @property
    def remaining(self) -> int:
        return len(self.queue)

    @property
    def is_done(self) -> bool:
        return self.phase is Phase.DONE


# Events ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Open:
    cards: Tuple[Card, ...]


@dataclass(frozen=True, slots=True)
class Reveal:
    pass


@dataclass(frozen=True, slots=True)
class Rate:
    rating: Rating


@dataclass(frozen=True, slots=True)
class Remove:
    pass


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class Close:
    pass


Event = Union[Open, Reveal, Rate, Remove, Tick, Close]


# Effects --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PersistReview:
    """Durably record ``rating`` for the card as it was shown."""

    card: Card
    rating: Rating


@dataclass(frozen=True, slots=True)
class PersistRemoval:
    card_id: str


@dataclass(frozen=True, slots=True)
class ArmTimer:
    pass


@dataclass(frozen=True, slots=True)
class DisarmTimer:
    pass


Effect = Union[PersistReview, PersistRemoval, ArmTimer, DisarmTimer]


@dataclass(frozen=True, slots=True)
class Transition:
    state: SessionState
    effects: Tuple[Effect, ...] = ()


def _countdown(queue: Sequence[QueueItem], now: dt.datetime) -> int:
    nearest = min(item.due_at for item in queue)
    return max(1, math.ceil((nearest - now).total_seconds()))


def pop_next(state: SessionState, now: dt.datetime) -> Transition:
    """Advance to the next available card, a countdown, or the end of the sitting."""

    was_waiting = state.phase is Phase.WAITING
    for index, item in enumerate(state.queue):
        if item.due_at <= now:
            queue = state.queue[:index] + state.queue[index + 1:]
            next_state = replace(
                state, phase=Phase.SHOWING, current=item, queue=queue, countdown=None
            )
            return Transition(next_state, (DisarmTimer(),) if was_waiting else ())

    if state.queue:
        next_state = replace(
            state,
            phase=Phase.WAITING,
            current=None,
            countdown=_countdown(state.queue, now),
        )
        return Transition(next_state, () if was_waiting else (ArmTimer(),))

    next_state = replace(state, phase=Phase.DONE, current=None, countdown=None)
    return Transition(next_state, (DisarmTimer(),) if was_waiting else ())


def _open(event: Open, now: dt.datetime) -> Transition:
    items = tuple(QueueItem(card=card, due_at=IMMEDIATELY) for card in event.cards)
    fresh = SessionState(phase=Phase.SHOWING, queue=items, total=len(items))
    return pop_next(fresh, now)


def _rate(state: SessionState, rating: Rating, now: dt.datetime) -> Transition:
    card = state.current.card
    effects: list[Effect] = [PersistReview(card=card, rating=rating)]
    updated = advance(card, rating, now)
    queue = state.queue
    if updated.repetition == 0:
        queue = queue + (QueueItem(card=updated, due_at=now + learning_delay(rating)),)
    cleared = replace(state, current=None, queue=queue, reviewed=state.reviewed + 1)
    popped = pop_next(cleared, now)
    return Transition(popped.state, tuple(effects) + popped.effects)


def _remove(state: SessionState, now: dt.datetime) -> Transition:
    removal = PersistRemoval(card_id=state.current.card.id)
    popped = pop_next(replace(state, current=None), now)
    return Transition(popped.state, (removal,) + popped.effects)


def transition(state: SessionState, event: Event, now: dt.datetime) -> Transition:
    """Apply ``event`` to ``state``; events invalid for the phase are ignored."""

    phase = state.phase
    if isinstance(event, Open):
        if phase in (Phase.IDLE, Phase.DONE):
            return _open(event, now)
    elif isinstance(event, Reveal):
        if phase is Phase.SHOWING:
            return Transition(replace(state, phase=Phase.REVEALED))
    elif isinstance(event, Rate):
        if phase is Phase.REVEALED:
            return _rate(state, event.rating, now)
    elif isinstance(event, Remove):
        if phase in (Phase.SHOWING, Phase.REVEALED):
            return _remove(state, now)
    elif isinstance(event, Tick):
        if phase is Phase.WAITING:
            return pop_next(state, now)
    elif isinstance(event, Close):
        if phase is not Phase.IDLE:
            effects = (DisarmTimer(),) if phase is Phase.WAITING else ()
            return Transition(SessionState(), effects)
    return Transition(state)


__all__ = [
    "Phase",
    "QueueItem",
    "SessionState",
    "Open",
    "Reveal",
    "Rate",
    "Remove",
    "Tick",
    "Close",
    "Event",
    "PersistReview",
    "PersistRemoval",
    "ArmTimer",
    "DisarmTimer",
    "Effect",
    "Transition",
    "pop_next",
    "transition",
]
