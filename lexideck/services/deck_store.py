"""Canonical per-learner card collection with debounced dual-store persistence.

The store is the only writer of a learner's deck. Every mutation computes a
complete next snapshot and hands it to :meth:`DeckStore._commit`, which swaps
it in and schedules a debounced write of whatever snapshot is current when the
write actually runs.

Load order on first access:

1. read the primary store; a non-empty document wins;
2. otherwise read the local fallback blob and, when it holds cards, adopt them,
   write them to the primary store and clear the fallback (one-time migration);
3. if the primary store cannot be read at all, adopt the fallback blob and run
   degraded.

After loading, cards without dictionary data and cards without an example
sentence are enriched in the background; failures leave the cards as they are.
"""
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Any, Awaitable, Callable, Iterable, Iterator, Optional, Sequence

from loguru import logger

from lexideck.config import settings as default_settings
from lexideck.core.clock import Clock, utcnow
from lexideck.core.normalization import normalize_card_id
from lexideck.core.result import Err, ErrorKind, Ok, Result, guard
from lexideck.core.srs.due import count_due_cards, select_due_cards
from lexideck.core.srs.sm2 import advance
from lexideck.schemas.card import Card, DeckDocument, dump_cards, load_cards
from lexideck.services.ports import DictionaryLookup, ExampleGenerator, FallbackCache, PrimaryStore
from lexideck.utils.exceptions import DeckNotLoadedError

SAVE_WARNING = "Deck changes may not be saved - check your connection"


def _batched(items: Sequence[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def _unique_words(cards: Iterable[Card]) -> list[str]:
    return list(dict.fromkeys(card.word for card in cards))


class DeckStore:
    """Own one learner's deck and keep it durable."""

    def __init__(
        self,
        learner_id: str,
        primary: PrimaryStore,
        fallback: FallbackCache,
        *,
        dictionary: Optional[DictionaryLookup] = None,
        examples: Optional[ExampleGenerator] = None,
        cache_key: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        dictionary_batch_size: Optional[int] = None,
        example_batch_size: Optional[int] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.learner_id = learner_id
        self._primary = primary
        self._fallback = fallback
        self._dictionary = dictionary
        self._examples = examples
        self._cache_key = cache_key or default_settings.DECK_CACHE_KEY
        self._debounce_seconds = (
            default_settings.DECK_SAVE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self._dictionary_batch_size = dictionary_batch_size or default_settings.DICTIONARY_BATCH_SIZE
        self._example_batch_size = example_batch_size or default_settings.EXAMPLE_BATCH_SIZE
        self._clock = clock

        self._cards: tuple[Card, ...] = ()
        self._loaded = False
        self._closed = False
        self._degraded = False
        self.save_warning: Optional[str] = None

        self._load_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._dirty = False
        self._debounce_task: Optional[asyncio.Task] = None
        self._write_tasks: set[asyncio.Task] = set()
        self._enrichment_task: Optional[asyncio.Task] = None

    # State -------------------------------------------------------------
    @property
    def cards(self) -> tuple[Card, ...]:
        return self._cards

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def degraded(self) -> bool:
        """True when the primary store could not be used during load."""

        return self._degraded

    @property
    def due_count(self) -> int:
        return count_due_cards(self._cards, self._clock())

    def due_cards(self, now: Optional[dt.datetime] = None) -> list[Card]:
        return select_due_cards(self._cards, now or self._clock())

    def get_card(self, card_id: str) -> Optional[Card]:
        return next((card for card in self._cards if card.id == card_id), None)

    def has_word(self, word: str) -> bool:
        return self.get_card(normalize_card_id(word)) is not None

    def dismiss_warning(self) -> None:
        self.save_warning = None

    # Loading -------------------------------------------------------------
    async def load(self) -> None:
        """Populate the deck on first access; later calls are no-ops."""

        async with self._load_lock:
            if self._loaded or self._closed:
                return
            cards = await self._read_initial_cards()
            if self._closed:
                return
            self._cards = tuple(cards)
            self._loaded = True
            logger.info(
                "Deck loaded",
                learner_id=self.learner_id,
                cards=len(self._cards),
                degraded=self._degraded,
            )
            if self._dictionary is not None or self._examples is not None:
                self._enrichment_task = asyncio.create_task(self._enrich())

    async def _read_initial_cards(self) -> list[Card]:
        primary = await guard(self._primary.get(self.learner_id), ErrorKind.PRIMARY_UNAVAILABLE)
        if isinstance(primary, Err):
            logger.warning(
                "Primary deck store unavailable, using local fallback",
                learner_id=self.learner_id,
                error=primary.detail,
            )
            self._degraded = True
            return self._read_fallback()

        document = primary.value
        if document is not None and document.cards:
            return list(document.cards)

        local = self._read_fallback()
        if local:
            await self._migrate_fallback(local)
        return local

    async def _migrate_fallback(self, cards: list[Card]) -> None:
        document = DeckDocument(cards=cards, updated_at=self._clock())
        result = await guard(self._primary.set(self.learner_id, document), ErrorKind.PRIMARY_WRITE_FAILED)
        if isinstance(result, Err):
            logger.warning(
                "Fallback deck migration failed",
                learner_id=self.learner_id,
                error=result.detail,
            )
            self._degraded = True
            return
        self._remove_fallback()
        logger.info("Migrated fallback deck to primary store", learner_id=self.learner_id, cards=len(cards))

    def _read_fallback(self) -> list[Card]:
        try:
            blob = self._fallback.get(self._cache_key)
        except Exception as exc:
            logger.warning("Fallback cache unreadable", learner_id=self.learner_id, error=str(exc))
            return []
        if not blob:
            return []
        try:
            return load_cards(blob)
        except ValueError:
            logger.warning(
                "Ignoring malformed fallback deck",
                learner_id=self.learner_id,
                kind=ErrorKind.MALFORMED_CACHE.value,
            )
            return []

    def _remove_fallback(self) -> None:
        try:
            self._fallback.remove(self._cache_key)
        except Exception as exc:
            logger.warning("Could not clear fallback deck", learner_id=self.learner_id, error=str(exc))

    def _backup_to_fallback(self, cards: Sequence[Card]) -> None:
        try:
            self._fallback.set(self._cache_key, dump_cards(cards))
        except Exception as exc:
            logger.error("Local deck backup failed", learner_id=self.learner_id, error=str(exc))

    # Mutations -----------------------------------------------------------
    def _require_open(self) -> None:
        if self._closed:
            raise DeckNotLoadedError(f"Deck for learner {self.learner_id} is closed")
        if not self._loaded:
            raise DeckNotLoadedError(f"Deck for learner {self.learner_id} has not been loaded")

    def add_card(
        self,
        word: str,
        translation: str,
        source_language: str,
        context: Optional[str] = None,
        context_translation: Optional[str] = None,
        dictionary: Optional[dict[str, Any]] = None,
    ) -> Optional[Card]:
        """Add a new card; returns ``None`` when a card with the same id exists."""

        self._require_open()
        card = Card.create(
            word,
            translation,
            source_language,
            context,
            context_translation,
            dictionary,
            now=self._clock(),
        )
        if self.get_card(card.id) is not None:
            logger.debug("Duplicate card ignored", learner_id=self.learner_id, card_id=card.id)
            return None
        self._commit(self._cards + (card,))
        return card

    def remove_card(self, card_id: str) -> bool:
        self._require_open()
        remaining = tuple(card for card in self._cards if card.id != card_id)
        if len(remaining) == len(self._cards):
            return False
        self._commit(remaining)
        return True

    def review_card(self, card_id: str, rating: int) -> Optional[Card]:
        """Apply a rating to a card and persist the result."""

        self._require_open()
        for index, card in enumerate(self._cards):
            if card.id == card_id:
                updated = advance(card, rating, self._clock())
                self._commit(self._cards[:index] + (updated,) + self._cards[index + 1:])
                return updated
        return None

    def _commit(self, next_cards: Iterable[Card]) -> None:
        """Single entry point for replacing the collection."""

        self._cards = tuple(next_cards)
        self._dirty = True
        self._schedule_write()

    # Persistence ---------------------------------------------------------
    def _schedule_write(self) -> None:
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.create_task(self._debounced_write())

    async def _debounced_write(self) -> None:
        try:
            await asyncio.sleep(self._debounce_seconds)
        except asyncio.CancelledError:
            # Superseded by a newer mutation
            return
        task = asyncio.create_task(self._write())
        self._write_tasks.add(task)
        task.add_done_callback(self._write_tasks.discard)

    async def _write(self) -> None:
        async with self._write_lock:
            if not self._dirty:
                return
            self._dirty = False
            snapshot = self._cards
            document = DeckDocument(cards=list(snapshot), updated_at=self._clock())
            result = await guard(
                self._primary.set(self.learner_id, document), ErrorKind.PRIMARY_WRITE_FAILED
            )
            if isinstance(result, Ok):
                self.save_warning = None
                logger.debug("Deck saved", learner_id=self.learner_id, cards=len(snapshot))
                return
            logger.warning("Deck save failed", learner_id=self.learner_id, error=result.detail)
            self.save_warning = SAVE_WARNING
            self._backup_to_fallback(snapshot)

    async def flush(self) -> None:
        """Write any pending change now instead of waiting for the debounce window."""

        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None
        await self._write()

    async def close(self) -> None:
        """Stop background work and flush pending changes."""

        if self._closed:
            return
        self._closed = True
        if self._enrichment_task and not self._enrichment_task.done():
            self._enrichment_task.cancel()
        await self.flush()
        if self._write_tasks:
            await asyncio.gather(*self._write_tasks, return_exceptions=True)
        logger.debug("Deck closed", learner_id=self.learner_id)

    # Enrichment ----------------------------------------------------------
    async def _call_enrichment(self, call: Awaitable[Result[dict]]) -> Result[dict]:
        outcome = await guard(call, ErrorKind.ENRICHMENT_FAILED)
        return outcome.value if isinstance(outcome, Ok) else outcome

    async def _collect(
        self,
        words: list[str],
        batch_size: int,
        request: Callable[[list[str]], Awaitable[Result[dict]]],
    ) -> Optional[dict[str, Any]]:
        """Gather results batch by batch; stops at the first failure.

        Returns ``None`` when the deck was closed while a request was in flight.
        """

        collected: dict[str, Any] = {}
        for batch in _batched(words, batch_size):
            result = await self._call_enrichment(request(batch))
            if self._closed:
                return None
            if isinstance(result, Err):
                logger.warning(
                    "Card enrichment failed",
                    learner_id=self.learner_id,
                    words=len(batch),
                    error=result.detail,
                )
                break
            collected.update(result.value)
        return collected

    def _apply_enrichment(self, update: Callable[[Card], Card]) -> int:
        changed = 0
        next_cards = []
        for card in self._cards:
            updated = update(card)
            if updated is not card:
                changed += 1
            next_cards.append(updated)
        if changed:
            self._commit(next_cards)
        return changed

    async def _enrich_dictionary(self) -> None:
        words = _unique_words(card for card in self._cards if card.dictionary is None)
        if not words:
            return
        entries = await self._collect(words, self._dictionary_batch_size, self._dictionary.lookup)
        if not entries:
            return

        def attach(card: Card) -> Card:
            entry = entries.get(card.word)
            if card.dictionary is None and entry:
                return card.model_copy(update={"dictionary": entry})
            return card

        changed = self._apply_enrichment(attach)
        logger.info("Dictionary enrichment applied", learner_id=self.learner_id, cards=changed)

    async def _enrich_examples(self) -> None:
        words = _unique_words(
            card for card in self._cards if card.dictionary is not None and not card.has_example
        )
        if not words:
            return
        examples = await self._collect(words, self._example_batch_size, self._examples.generate)
        if not examples:
            return

        def attach(card: Card) -> Card:
            example = examples.get(card.word)
            if card.dictionary is not None and not card.has_example and example:
                return card.model_copy(update={"dictionary": {**card.dictionary, "example": example}})
            return card

        changed = self._apply_enrichment(attach)
        logger.info("Example enrichment applied", learner_id=self.learner_id, cards=changed)

    async def _enrich(self) -> None:
        if self._dictionary is not None:
            await self._enrich_dictionary()
        if self._examples is not None and not self._closed:
            await self._enrich_examples()


__all__ = ["DeckStore", "SAVE_WARNING"]
