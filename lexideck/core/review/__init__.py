"""Review sitting state machine."""

from lexideck.core.review.machine import (
    ArmTimer,
    Close,
    DisarmTimer,
    Open,
    PersistRemoval,
    PersistReview,
    Phase,
    QueueItem,
    Rate,
    Remove,
    Reveal,
    SessionState,
    Tick,
    Transition,
    transition,
)

__all__ = [
    "ArmTimer",
    "Close",
    "DisarmTimer",
    "Open",
    "PersistRemoval",
    "PersistReview",
    "Phase",
    "QueueItem",
    "Rate",
    "Remove",
    "Reveal",
    "SessionState",
    "Tick",
    "Transition",
    "transition",
]
