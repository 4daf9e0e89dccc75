"""Tests for the deck store: loading, debounced persistence and enrichment."""
from __future__ import annotations

import asyncio
import datetime as dt

import pytest

from conftest import START, FakePrimaryStore, StubDictionary, StubExamples, make_card
from lexideck.core.srs import Rating
from lexideck.schemas.card import DeckDocument, dump_cards
from lexideck.services.deck_store import SAVE_WARNING, DeckStore
from lexideck.utils.exceptions import DeckNotLoadedError

SETTLE = 0.1


async def settle() -> None:
    """Give debounce timers and background tasks time to finish."""

    await asyncio.sleep(SETTLE)


@pytest.mark.asyncio
async def test_load_adopts_primary_document(make_store, primary):
    primary.documents["learner-1"] = DeckDocument(cards=[make_card("дом"), make_card("кот")])
    store = make_store()

    await store.load()

    assert store.loaded
    assert not store.degraded
    assert [card.id for card in store.cards] == ["дом", "кот"]
    assert primary.writes == []


@pytest.mark.asyncio
async def test_load_is_idempotent(make_store, primary):
    store = make_store()

    await store.load()
    await store.load()

    assert primary.reads == ["learner-1"]


@pytest.mark.asyncio
async def test_fallback_is_migrated_once(make_store, primary, fallback):
    fallback.set("srs_deck", dump_cards([make_card("дом")]))
    store = make_store()

    await store.load()

    assert [card.id for card in store.cards] == ["дом"]
    assert len(primary.writes) == 1
    assert [card.id for card in primary.documents["learner-1"].cards] == ["дом"]
    assert fallback.get("srs_deck") is None
    assert not store.degraded

    second = make_store()
    await second.load()
    assert len(primary.writes) == 1


@pytest.mark.asyncio
async def test_failed_migration_keeps_fallback(make_store, primary, fallback):
    blob = dump_cards([make_card("дом")])
    fallback.set("srs_deck", blob)
    primary.fail_writes = True
    store = make_store()

    await store.load()

    assert [card.id for card in store.cards] == ["дом"]
    assert store.degraded
    assert fallback.get("srs_deck") == blob


@pytest.mark.asyncio
async def test_unreachable_primary_uses_fallback(make_store, primary, fallback):
    fallback.set("srs_deck", dump_cards([make_card("дом"), make_card("кот")]))
    primary.fail_reads = True
    store = make_store()

    await store.load()

    assert store.degraded
    assert [card.id for card in store.cards] == ["дом", "кот"]


@pytest.mark.asyncio
async def test_unreachable_primary_without_fallback_is_empty(make_store, primary):
    primary.fail_reads = True
    store = make_store()

    await store.load()

    assert store.degraded
    assert store.cards == ()


@pytest.mark.asyncio
@pytest.mark.parametrize("blob", ["not json", "{}", '[{"id": "дом"}]'])
async def test_malformed_fallback_loads_empty(make_store, fallback, blob):
    fallback.set("srs_deck", blob)
    store = make_store()

    await store.load()

    assert store.cards == ()
    assert store.loaded


@pytest.mark.asyncio
async def test_mutation_before_load_raises(make_store):
    store = make_store()

    with pytest.raises(DeckNotLoadedError):
        store.add_card("дом", "house", "ru")


@pytest.mark.asyncio
async def test_rapid_mutations_coalesce_into_one_write(make_store, primary):
    store = make_store()
    await store.load()

    store.add_card("дом", "house", "ru")
    store.add_card("кот", "cat", "ru")
    store.review_card("дом", Rating.GOOD)
    store.add_card("лес", "forest", "ru")
    store.remove_card("кот")
    await settle()

    assert len(primary.writes) == 1
    _, document = primary.writes[0]
    assert [card.id for card in document.cards] == ["дом", "лес"]
    assert document.cards[0].repetition == 1


@pytest.mark.asyncio
async def test_duplicate_add_is_silent_noop(make_store, primary):
    store = make_store()
    await store.load()

    first = store.add_card("Ёлка", "fir", "ru")
    await settle()
    duplicate = store.add_card("елка!", "fir tree", "ru")
    await settle()

    assert first is not None
    assert duplicate is None
    assert len(store.cards) == 1
    assert store.cards[0].translation == "fir"
    assert len(primary.writes) == 1
    assert store.has_word("ЁЛКА")


@pytest.mark.asyncio
async def test_unknown_card_operations(make_store, primary):
    store = make_store()
    await store.load()

    assert store.review_card("нет", Rating.GOOD) is None
    assert store.remove_card("нет") is False
    await settle()

    assert primary.writes == []


@pytest.mark.asyncio
async def test_review_updates_schedule(make_store, clock):
    store = make_store()
    await store.load()
    store.add_card("дом", "house", "ru")
    clock.advance(minutes=10)

    updated = store.review_card("дом", Rating.EASY)

    assert updated.interval == 5
    assert store.get_card("дом") == updated
    assert store.due_count == 0
    await store.flush()


@pytest.mark.asyncio
async def test_due_cards_reflect_clock(make_store, clock):
    store = make_store()
    await store.load()
    store.add_card("дом", "house", "ru")
    clock.advance(seconds=1)
    store.add_card("кот", "cat", "ru")
    store.review_card("кот", Rating.GOOD)

    assert [card.id for card in store.due_cards()] == ["дом"]
    assert [card.id for card in store.due_cards(START + dt.timedelta(days=2))] == ["дом", "кот"]
    await store.flush()


@pytest.mark.asyncio
async def test_write_failure_sets_warning_and_backs_up(make_store, primary, fallback):
    store = make_store()
    await store.load()
    primary.fail_writes = True

    store.add_card("дом", "house", "ru")
    await settle()

    assert store.save_warning == SAVE_WARNING
    assert "дом" in fallback.get("srs_deck")

    primary.fail_writes = False
    store.add_card("кот", "cat", "ru")
    await settle()

    assert store.save_warning is None
    assert [card.id for card in primary.documents["learner-1"].cards] == ["дом", "кот"]


@pytest.mark.asyncio
async def test_warning_can_be_dismissed(make_store, primary):
    store = make_store()
    await store.load()
    primary.fail_writes = True
    store.add_card("дом", "house", "ru")
    await settle()

    store.dismiss_warning()

    assert store.save_warning is None


@pytest.mark.asyncio
async def test_close_flushes_pending_write(make_store, primary):
    store = make_store(debounce_seconds=60)
    await store.load()
    store.add_card("дом", "house", "ru")
    assert primary.writes == []

    await store.close()

    assert len(primary.writes) == 1
    with pytest.raises(DeckNotLoadedError):
        store.add_card("кот", "cat", "ru")


@pytest.mark.asyncio
async def test_dictionary_enrichment_attaches_entries(make_store, primary):
    primary.documents["learner-1"] = DeckDocument(cards=[make_card("дом"), make_card("кот")])
    dictionary = StubDictionary({"дом": {"pos": "noun"}})
    store = make_store(dictionary=dictionary)

    await store.load()
    await settle()

    assert dictionary.calls == [["дом", "кот"]]
    assert store.get_card("дом").dictionary == {"pos": "noun"}
    assert store.get_card("кот").dictionary is None
    assert len(primary.writes) == 1


@pytest.mark.asyncio
async def test_dictionary_lookup_is_batched(make_store, primary):
    words = ["дом", "кот", "лес", "мир", "сад"]
    primary.documents["learner-1"] = DeckDocument(cards=[make_card(word) for word in words])
    dictionary = StubDictionary()
    store = make_store(dictionary=dictionary, dictionary_batch_size=2)

    await store.load()
    await settle()

    assert dictionary.calls == [["дом", "кот"], ["лес", "мир"], ["сад"]]


@pytest.mark.asyncio
async def test_example_generation_is_capped_per_request(make_store, primary):
    cards = [make_card(f"слово{'а' * i}", dictionary={"pos": "noun"}) for i in range(120)]
    primary.documents["learner-1"] = DeckDocument(cards=cards)
    examples = StubExamples({cards[0].word: {"sourceText": "x", "translatedText": "y"}})
    store = make_store(examples=examples)

    await store.load()
    await settle()

    assert [len(call) for call in examples.calls] == [50, 50, 20]
    enriched = store.get_card(cards[0].id)
    assert enriched.dictionary == {"pos": "noun", "example": {"sourceText": "x", "translatedText": "y"}}
    assert enriched.has_example


@pytest.mark.asyncio
async def test_cards_with_examples_are_not_resubmitted(make_store, primary):
    cards = [
        make_card("дом", dictionary={"example": {"sourceText": "x"}}),
        make_card("кот", dictionary={"pos": "noun"}),
    ]
    primary.documents["learner-1"] = DeckDocument(cards=cards)
    examples = StubExamples()
    store = make_store(examples=examples)

    await store.load()
    await settle()

    assert examples.calls == [["кот"]]
    assert primary.writes == []


@pytest.mark.asyncio
async def test_enrichment_failure_leaves_cards_usable(make_store, primary):
    primary.documents["learner-1"] = DeckDocument(cards=[make_card("дом")])
    store = make_store(
        dictionary=StubDictionary(should_fail=True),
        examples=StubExamples(should_fail=True),
    )

    await store.load()
    await settle()

    assert store.get_card("дом").dictionary is None
    assert primary.writes == []
    assert store.save_warning is None


@pytest.mark.asyncio
async def test_enrichment_applies_to_current_collection(make_store, primary):
    primary.documents["learner-1"] = DeckDocument(cards=[make_card("дом")])
    release = asyncio.Event()

    class SlowDictionary(StubDictionary):
        async def lookup(self, words):
            await release.wait()
            return await super().lookup(words)

    store = make_store(dictionary=SlowDictionary({"дом": {"pos": "noun"}}))
    await store.load()

    store.add_card("кот", "cat", "ru")
    store.review_card("дом", Rating.GOOD)
    release.set()
    await settle()

    assert [card.id for card in store.cards] == ["дом", "кот"]
    assert store.get_card("дом").repetition == 1
    assert store.get_card("дом").dictionary == {"pos": "noun"}


@pytest.mark.asyncio
async def test_latin_headwords_do_not_collide(make_store):
    store = make_store()
    await store.load()

    hello = store.add_card("hello", "привет", "en")
    world = store.add_card("world", "мир", "en")

    assert hello is not None
    assert world is not None
    assert [card.id for card in store.cards] == ["hello", "world"]
    await store.flush()


@pytest.mark.asyncio
async def test_enrichment_finishing_after_close_is_discarded(make_store, primary):
    primary.documents["learner-1"] = DeckDocument(cards=[make_card("дом")])
    release = asyncio.Event()

    class SlowDictionary(StubDictionary):
        async def lookup(self, words):
            await release.wait()
            return await super().lookup(words)

    dictionary = SlowDictionary({"дом": {"pos": "noun"}})
    store = make_store(dictionary=dictionary)
    await store.load()
    await asyncio.sleep(0)

    await store.close()
    release.set()
    await settle()

    assert store.loaded
    assert store.get_card("дом").dictionary is None
    assert primary.writes == []


@pytest.mark.asyncio
async def test_load_finishing_after_close_is_discarded(fallback, clock):
    release = asyncio.Event()

    class SlowPrimaryStore(FakePrimaryStore):
        async def get(self, learner_id):
            await release.wait()
            return await super().get(learner_id)

    primary = SlowPrimaryStore({"learner-1": DeckDocument(cards=[make_card("дом")])})
    store = DeckStore("learner-1", primary, fallback, debounce_seconds=0.01, clock=clock)

    loading = asyncio.create_task(store.load())
    await asyncio.sleep(0)
    await store.close()
    release.set()
    await loading

    assert store.loaded is False
    assert store.cards == ()
    assert primary.writes == []
