"""Shared fixtures: in-memory ports, a controllable clock and an API client."""

from __future__ import annotations

import datetime as dt
from collections.abc import AsyncGenerator
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from lexideck.api.deps import get_registry
from lexideck.config import Settings
from lexideck.core.result import Err, ErrorKind, Ok
from lexideck.main import create_app
from lexideck.schemas.card import Card, DeckDocument
from lexideck.services.deck_store import DeckStore
from lexideck.services.registry import DeckRegistry
from lexideck.utils.cache import MemoryFallbackCache

START = dt.datetime(2026, 1, 5, 12, 0, tzinfo=dt.timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: dt.datetime = START) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> dt.datetime:
        self.now = self.now + dt.timedelta(**kwargs)
        return self.now


class FakePrimaryStore:
    def __init__(self, documents: Optional[Dict[str, DeckDocument]] = None) -> None:
        self.documents: Dict[str, DeckDocument] = dict(documents or {})
        self.fail_reads = False
        self.fail_writes = False
        self.reads: List[str] = []
        self.writes: List[tuple[str, DeckDocument]] = []

    async def get(self, learner_id: str) -> Optional[DeckDocument]:
        self.reads.append(learner_id)
        if self.fail_reads:
            raise ConnectionError("primary store offline")
        return self.documents.get(learner_id)

    async def set(self, learner_id: str, document: DeckDocument) -> None:
        if self.fail_writes:
            raise ConnectionError("primary store offline")
        self.writes.append((learner_id, document))
        self.documents[learner_id] = document


class StubDictionary:
    def __init__(self, entries: Optional[Dict[str, Any]] = None, should_fail: bool = False) -> None:
        self.entries = entries or {}
        self.should_fail = should_fail
        self.calls: List[List[str]] = []

    async def lookup(self, words: List[str]):
        self.calls.append(list(words))
        if self.should_fail:
            return Err(ErrorKind.ENRICHMENT_FAILED, "dictionary offline")
        return Ok({word: self.entries.get(word) for word in words})


class StubExamples:
    def __init__(self, examples: Optional[Dict[str, Any]] = None, should_fail: bool = False) -> None:
        self.examples = examples or {}
        self.should_fail = should_fail
        self.calls: List[List[str]] = []

    async def generate(self, words: List[str]):
        self.calls.append(list(words))
        if self.should_fail:
            return Err(ErrorKind.ENRICHMENT_FAILED, "examples offline")
        return Ok({word: self.examples.get(word) for word in words})


class RecordingSink:
    """Review sink that records calls instead of persisting them."""

    def __init__(self) -> None:
        self.reviews: List[tuple[str, int]] = []
        self.removals: List[str] = []

    def review_card(self, card_id: str, rating: int):
        self.reviews.append((card_id, rating))
        return None

    def remove_card(self, card_id: str) -> bool:
        self.removals.append(card_id)
        return True


def make_card(word: str, now: dt.datetime = START, **overrides: Any) -> Card:
    card = Card.create(word, f"{word}-translation", "ru", now=now)
    return card.model_copy(update=overrides) if overrides else card


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def primary() -> FakePrimaryStore:
    return FakePrimaryStore()


@pytest.fixture()
def fallback() -> MemoryFallbackCache:
    return MemoryFallbackCache()


@pytest.fixture()
def make_store(primary, fallback, clock):
    def factory(**kwargs: Any) -> DeckStore:
        options: Dict[str, Any] = {"debounce_seconds": 0.01, "clock": clock, "cache_key": "srs_deck"}
        options.update(kwargs)
        return DeckStore("learner-1", primary, fallback, **options)

    return factory


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(DECK_SAVE_DEBOUNCE_SECONDS=0.01, REVIEW_TICK_SECONDS=0.01)


@pytest.fixture()
def registry(test_settings, primary, fallback, clock) -> DeckRegistry:
    return DeckRegistry(test_settings, primary, fallback, clock=clock)


@pytest_asyncio.fixture()
async def async_client(registry: DeckRegistry) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app()
    app.dependency_overrides[get_registry] = lambda: registry

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await registry.aclose()
