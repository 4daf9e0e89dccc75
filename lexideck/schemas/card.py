"""Pydantic models for deck cards and the persisted deck document."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from lexideck.core.clock import ensure_aware, utcnow
from lexideck.core.normalization import normalize_card_id

DEFAULT_EASE_FACTOR = 2.5

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Card(BaseModel):
    """A learned vocabulary item with its scheduling state.

    Serialised with camelCase keys so the primary document and the local
    fallback blob share one format.
    """

    model_config = ConfigDict(**_CAMEL, frozen=True)

    id: str
    word: str
    translation: str
    source_language: str
    context: Optional[str] = None
    context_translation: Optional[str] = None
    dictionary: Optional[dict[str, Any]] = None
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = Field(0, ge=0)
    repetition: int = Field(0, ge=0)
    next_review_date: datetime
    added_at: datetime
    last_reviewed_at: Optional[datetime] = None

    @field_validator("next_review_date", "added_at", "last_reviewed_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @classmethod
    def create(
        cls,
        word: str,
        translation: str,
        source_language: str,
        context: Optional[str] = None,
        context_translation: Optional[str] = None,
        dictionary: Optional[dict[str, Any]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> "Card":
        """Build a fresh learning-phase card that is due immediately."""

        now = now or utcnow()
        return cls(
            id=normalize_card_id(word),
            word=word,
            translation=translation,
            source_language=source_language,
            context=context,
            context_translation=context_translation,
            dictionary=dictionary,
            next_review_date=now,
            added_at=now,
        )

    @property
    def is_learning(self) -> bool:
        return self.repetition == 0

    @property
    def has_example(self) -> bool:
        return bool(self.dictionary and self.dictionary.get("example"))


class DeckDocument(BaseModel):
    """Whole-document unit exchanged with the primary store."""

    model_config = _CAMEL

    cards: List[Card] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)


_CARD_LIST = TypeAdapter(List[Card])


def dump_cards(cards: Iterable[Card]) -> str:
    """Encode cards as the JSON array stored in the fallback cache."""

    return _CARD_LIST.dump_json(list(cards), by_alias=True).decode("utf-8")


def load_cards(blob: str) -> list[Card]:
    """Decode a JSON card array; raises ``ValueError`` on malformed input."""

    return _CARD_LIST.validate_json(blob)


def cards_to_payload(cards: Iterable[Card]) -> list[dict[str, Any]]:
    """Return JSON-compatible dictionaries for document storage."""

    return _CARD_LIST.dump_python(list(cards), mode="json", by_alias=True)


def cards_from_payload(payload: Any) -> list[Card]:
    return _CARD_LIST.validate_python(payload or [])


__all__ = [
    "Card",
    "DeckDocument",
    "DEFAULT_EASE_FACTOR",
    "dump_cards",
    "load_cards",
    "cards_to_payload",
    "cards_from_payload",
]
