"""Spaced repetition scheduling."""

from lexideck.core.srs.due import count_due_cards, select_due_cards
from lexideck.core.srs.sm2 import (
    MIN_EASE_FACTOR,
    IntervalPreview,
    Rating,
    advance,
    format_preview,
    learning_delay,
    preview_interval,
    update_ease_factor,
)

__all__ = [
    "MIN_EASE_FACTOR",
    "IntervalPreview",
    "Rating",
    "advance",
    "count_due_cards",
    "format_preview",
    "learning_delay",
    "preview_interval",
    "select_due_cards",
    "update_ease_factor",
]
