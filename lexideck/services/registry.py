"""Per-learner deck stores and review sessions for the HTTP surface."""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, Optional

from loguru import logger

from lexideck.config import Settings
from lexideck.core.clock import Clock, utcnow
from lexideck.services.deck_store import DeckStore
from lexideck.services.ports import DictionaryLookup, ExampleGenerator, FallbackCache, PrimaryStore
from lexideck.services.review_session import ReviewSession
from lexideck.utils.exceptions import SessionError


class DeckRegistry:
    """Lazily create, load and share one :class:`DeckStore` per learner.

    Each learner has its own fallback cache key so local backups of different
    decks never overwrite each other.
    """

    def __init__(
        self,
        settings: Settings,
        primary: PrimaryStore,
        fallback: FallbackCache,
        *,
        dictionary: Optional[DictionaryLookup] = None,
        examples: Optional[ExampleGenerator] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.settings = settings
        self._primary = primary
        self._fallback = fallback
        self._dictionary = dictionary
        self._examples = examples
        self._clock = clock
        self._decks: Dict[str, DeckStore] = {}
        self._sessions: Dict[str, ReviewSession] = {}
        self._lock = asyncio.Lock()
        self._on_close: list[Callable] = []

    def cache_key(self, learner_id: str) -> str:
        return f"{self.settings.DECK_CACHE_KEY}:{learner_id}"

    def add_close_callback(self, callback: Callable) -> None:
        """Register an awaitable factory run by :meth:`aclose`, e.g. an HTTP client's ``aclose``."""

        self._on_close.append(callback)

    async def get_deck(self, learner_id: str) -> DeckStore:
        async with self._lock:
            deck = self._decks.get(learner_id)
            if deck is None:
                deck = DeckStore(
                    learner_id,
                    self._primary,
                    self._fallback,
                    dictionary=self._dictionary,
                    examples=self._examples,
                    cache_key=self.cache_key(learner_id),
                    debounce_seconds=self.settings.DECK_SAVE_DEBOUNCE_SECONDS,
                    dictionary_batch_size=self.settings.DICTIONARY_BATCH_SIZE,
                    example_batch_size=self.settings.EXAMPLE_BATCH_SIZE,
                    clock=self._clock,
                )
                self._decks[learner_id] = deck
        await deck.load()
        return deck

    async def open_session(self, learner_id: str) -> ReviewSession:
        """Start a sitting over the learner's currently due cards."""

        deck = await self.get_deck(learner_id)
        session = self._sessions.get(learner_id)
        if session is None:
            session = ReviewSession(
                deck, clock=self._clock, tick_seconds=self.settings.REVIEW_TICK_SECONDS
            )
            self._sessions[learner_id] = session
        session.open(deck.due_cards())
        return session

    def get_session(self, learner_id: str) -> ReviewSession:
        session = self._sessions.get(learner_id)
        if session is None:
            raise SessionError(f"No review session for learner {learner_id}")
        return session

    def close_session(self, learner_id: str) -> bool:
        session = self._sessions.pop(learner_id, None)
        if session is None:
            return False
        session.close()
        return True

    async def aclose(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        decks = list(self._decks.values())
        self._decks.clear()
        for deck in decks:
            await deck.close()
        for callback in self._on_close:
            await callback()
        logger.info("Deck registry closed", decks=len(decks))


__all__ = ["DeckRegistry"]
