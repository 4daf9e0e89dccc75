"""Due-set selection over a card collection."""
from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from lexideck.core.clock import utcnow
from lexideck.schemas.card import Card


def select_due_cards(cards: Iterable[Card], now: Optional[dt.datetime] = None) -> list[Card]:
    """Return cards whose next review has passed, oldest-due first."""

    now = now or utcnow()
    due = [card for card in cards if card.next_review_date <= now]
    due.sort(key=lambda card: card.next_review_date)
    return due


def count_due_cards(cards: Iterable[Card], now: Optional[dt.datetime] = None) -> int:
    now = now or utcnow()
    return sum(1 for card in cards if card.next_review_date <= now)


__all__ = ["select_due_cards", "count_due_cards"]
