"""Pydantic models for the deck and review session endpoints."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lexideck.core.review.machine import Phase
from lexideck.core.srs.sm2 import Rating
from lexideck.schemas.card import Card


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardCreate(_CamelModel):
    """Payload for adding a word to the deck."""

    word: str = Field(..., min_length=1)
    translation: str = Field(..., min_length=1)
    source_language: str = Field(..., min_length=1, max_length=10)
    context: Optional[str] = None
    context_translation: Optional[str] = None
    dictionary: Optional[Dict[str, Any]] = None


class CardAddResponse(_CamelModel):
    added: bool
    card: Optional[Card] = None


class RatingRequest(_CamelModel):
    rating: Rating = Field(..., description="0 (Again), 2 (Hard), 4 (Good) or 5 (Easy)")


class DeckOverview(_CamelModel):
    """Deck contents plus persistence status."""

    learner_id: str
    cards: List[Card]
    total: int
    due_count: int
    degraded: bool
    save_warning: Optional[str] = None


class DueCardsResponse(_CamelModel):
    total: int
    items: List[Card]


class IntervalPreviewRead(_CamelModel):
    rating: Rating
    value: int
    unit: str
    label: str


class SessionStateRead(_CamelModel):
    """Snapshot of a review sitting."""

    phase: Phase
    current: Optional[Card] = None
    remaining: int
    reviewed: int
    total: int
    countdown: Optional[int] = None
    previews: List[IntervalPreviewRead] = Field(default_factory=list)


__all__ = [
    "CardCreate",
    "CardAddResponse",
    "RatingRequest",
    "DeckOverview",
    "DueCardsResponse",
    "IntervalPreviewRead",
    "SessionStateRead",
]
