"""Interfaces the deck store and review session depend on."""
from __future__ import annotations

from typing import Any, Optional, Protocol

from lexideck.core.result import Result
from lexideck.schemas.card import Card, DeckDocument

DictionaryEntries = dict[str, Optional[dict[str, Any]]]
ExampleEntries = dict[str, Optional[dict[str, Any]]]


class PrimaryStore(Protocol):
    """Durable whole-document store, one document per learner."""

    async def get(self, learner_id: str) -> Optional[DeckDocument]:  # pragma: no cover - interface definition
        """Return the learner's document, or ``None`` when there is none."""

    async def set(self, learner_id: str, document: DeckDocument) -> None:  # pragma: no cover - interface definition
        """Overwrite the learner's document."""


class FallbackCache(Protocol):
    """Local single-blob cache used when the primary store is unavailable."""

    def get(self, key: str) -> Optional[str]:  # pragma: no cover - interface definition
        ...

    def set(self, key: str, value: str) -> None:  # pragma: no cover - interface definition
        ...

    def remove(self, key: str) -> None:  # pragma: no cover - interface definition
        ...


class DictionaryLookup(Protocol):
    """Bulk dictionary lookup keyed by headword."""

    async def lookup(self, words: list[str]) -> Result[DictionaryEntries]:  # pragma: no cover - interface definition
        ...


class ExampleGenerator(Protocol):
    """Example-sentence generation keyed by headword (at most 50 words per call)."""

    async def generate(self, words: list[str]) -> Result[ExampleEntries]:  # pragma: no cover - interface definition
        ...


class ReviewSink(Protocol):
    """Durable review/remove entry points a review session reports to."""

    def review_card(self, card_id: str, rating: int) -> Optional[Card]:  # pragma: no cover - interface definition
        ...

    def remove_card(self, card_id: str) -> bool:  # pragma: no cover - interface definition
        ...


__all__ = [
    "PrimaryStore",
    "FallbackCache",
    "DictionaryLookup",
    "ExampleGenerator",
    "ReviewSink",
    "DictionaryEntries",
    "ExampleEntries",
]
