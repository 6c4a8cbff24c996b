"""Tests for the volatile/durable article cache coordinator."""
from __future__ import annotations

import threading
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.db.models import CachedArticle
from app.services.article_cache import ArticleEvictionPolicy, DurableArticleStore, build_article_cache
from app.services.article_generator import (
    BLANK_MARKER,
    ArticleResolver,
    ArticleWord,
    FallbackArticleGenerator,
    LLMArticleGenerator,
)
from app.services.llm_service import LLMResult, LLMService
from app.utils.exceptions import InvalidInputError

from tests.conftest import StubArticleGenerator, make_coordinator

A = ArticleWord(id="A", word="Ephemeral", definition="Lasting for a very short time")
B = ArticleWord(id="B", word="Ubiquitous", definition="Present, appearing, or found everywhere")
C = ArticleWord(id="C", word="Serendipity", definition="Pleasant things that happen by chance")


class SlowProvider:
    name = "openai"

    def generate(self, messages, **kwargs):
        time.sleep(0.5)
        return LLMResult(
            provider="openai",
            model="slow",
            content=BLANK_MARKER,
            prompt_tokens=0,
            completion_tokens=0,
            total_tokens=0,
            cost=0.0,
            raw_response={},
        )


class SlowArticleGenerator(StubArticleGenerator):
    def generate(self, words):
        time.sleep(0.2)
        return super().generate(words)


@pytest.fixture()
def broken_store() -> DurableArticleStore:
    engine = create_engine("sqlite:////nonexistent-directory/articles/cache.db")
    return DurableArticleStore(sessionmaker(bind=engine))


def test_first_request_generates_and_persists(article_cache, durable_store, stub_generator):
    article = article_cache.resolve_article([C, A, B])

    assert article.source == "generated"
    assert article.key == "A|B|C"
    assert [word.id for word in article.words] == ["A", "B", "C"]
    assert article.blank_count == 3
    assert article.persisted is True
    assert stub_generator.calls == [["A", "B", "C"]]

    record = durable_store.get("A|B|C")
    assert record is not None
    assert record.text == article.text
    assert record.access_count == 0
    assert record.generator == "llm"
    assert record.word_count == 3
    assert "A|B|C" in article_cache.volatile


def test_reordered_request_hits_volatile_layer(article_cache, stub_generator):
    first = article_cache.resolve_article([C, A, B])
    second = article_cache.resolve_article([B, C, A])

    assert second.source == "volatile"
    assert second.text == first.text
    assert len(stub_generator.calls) == 1


def test_durable_hit_after_restart_counts_access(article_cache, durable_store, clock, stub_generator):
    generated = article_cache.resolve_article([C, A, B])

    # A new process starts with an empty volatile layer.
    restarted = make_coordinator(durable_store, clock, [stub_generator])
    clock.advance(30)
    hit = restarted.resolve_article([B, C, A])

    assert hit.source == "durable"
    assert hit.text == generated.text
    assert hit.access_count == 1
    assert len(stub_generator.calls) == 1
    assert durable_store.get("A|B|C").last_accessed_at > durable_store.get("A|B|C").created_at

    assert restarted.resolve_article([A, B, C]).source == "volatile"
    assert durable_store.get("A|B|C").access_count == 1

    again = make_coordinator(durable_store, clock, [stub_generator]).resolve_article([A, C, B])
    assert again.access_count == 2


def test_duplicate_words_collapse_to_one_key(article_cache, stub_generator):
    article = article_cache.resolve_article([A, B, A, B])

    assert article.key == "A|B"
    assert stub_generator.calls == [["A", "B"]]
    assert article.blank_count == 2


def test_distinct_sets_get_distinct_articles(article_cache, durable_store):
    article_cache.resolve_article([A, B])
    article_cache.resolve_article([A, B, C])

    assert durable_store.count() == 2


def test_invalid_words_are_rejected(article_cache):
    with pytest.raises(InvalidInputError):
        article_cache.resolve_article([])
    with pytest.raises(InvalidInputError):
        article_cache.resolve_article([ArticleWord(id="bad|id", word="x", definition="y")])


def test_llm_timeout_falls_back_to_templates(durable_store, clock):
    llm = LLMArticleGenerator(LLMService(providers=[SlowProvider()]), deadline_seconds=0.05)
    coordinator = make_coordinator(durable_store, clock, [llm, FallbackArticleGenerator()])
    try:
        article = coordinator.resolve_article([A, B, C])
    finally:
        coordinator.close()

    assert article.source == "generated"
    assert article.generator == "fallback"
    assert article.blank_count == 3
    assert durable_store.get("A|B|C").generator == "fallback"


def test_exhausted_generator_chain_still_returns_article(durable_store, clock):
    failing = StubArticleGenerator("llm", should_fail=True)
    coordinator = make_coordinator(durable_store, clock, [failing])

    article = coordinator.resolve_article([A, B])

    assert article.generator == "fallback"
    assert article.blank_count == 2
    assert durable_store.get("A|B") is not None


def test_quality_warning_is_reported_and_article_kept(durable_store, clock):
    sloppy = StubArticleGenerator("llm", text=f"Just one {BLANK_MARKER}.")
    coordinator = make_coordinator(durable_store, clock, [sloppy])

    article = coordinator.resolve_article([A, B, C])

    assert article.quality_warning is not None
    assert article.quality_warning.expected == 3
    assert article.blank_count == 1
    assert durable_store.get("A|B|C").text == f"Just one {BLANK_MARKER}."


def test_store_outage_returns_text_without_caching(broken_store, clock, stub_generator):
    coordinator = make_coordinator(broken_store, clock, [stub_generator])

    article = coordinator.resolve_article([A, B])

    assert article.source == "generated"
    assert article.persisted is False
    assert article.blank_count == 2
    assert "A|B" not in coordinator.volatile
    assert coordinator.stats()["durable"]["available"] is False


def test_upsert_twice_keeps_one_row_with_latest_text(durable_store, clock):
    assert durable_store.upsert("A|B", "first", word_count=2, generator="llm", now=clock.now()) is True
    clock.advance(5)
    assert durable_store.upsert("A|B", "second", word_count=2, generator="fallback", now=clock.now()) is False

    assert durable_store.count() == 1
    record = durable_store.get("A|B")
    assert record.text == "second"
    assert record.generator == "fallback"


def test_record_hit_on_missing_key_returns_none(durable_store, clock):
    assert durable_store.record_hit("missing", now=clock.now()) is None


def test_concurrent_requests_for_one_set_generate_once(tmp_path, clock):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'articles.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine, tables=[CachedArticle.__table__])
    store = DurableArticleStore(sessionmaker(bind=engine))
    slow = SlowArticleGenerator()
    coordinator = make_coordinator(store, clock, [slow], single_flight=True)

    results = []
    orders = [[A, B, C], [C, B, A], [B, A, C], [C, A, B]]
    threads = [
        threading.Thread(target=lambda words=words: results.append(coordinator.resolve_article(words)))
        for words in orders
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(slow.calls) == 1
    assert len(results) == 4
    assert len({article.text for article in results}) == 1
    assert store.count() == 1
    assert coordinator._flights == {}
    engine.dispose()


def test_trim_removes_least_recently_accessed(durable_store, clock, stub_generator):
    coordinator = make_coordinator(durable_store, clock, [stub_generator], max_entries=2)
    coordinator.resolve_article([A])
    clock.advance(10)
    coordinator.resolve_article([B])
    clock.advance(10)
    coordinator.resolve_article([C])
    clock.advance(10)
    # Reading A through a cold process refreshes its access time.
    make_coordinator(durable_store, clock, [stub_generator]).resolve_article([A])

    report = coordinator.evict()

    assert report.trimmed == ["B"]
    assert report.expired == []
    assert durable_store.count() == 2
    assert durable_store.get("B") is None
    assert durable_store.get("A") is not None
    assert "B" not in coordinator.volatile


def test_expiry_removes_entries_not_read_within_max_age(durable_store, clock, stub_generator):
    coordinator = make_coordinator(durable_store, clock, [stub_generator], max_age_seconds=3600)
    coordinator.resolve_article([A])
    clock.advance(4000)
    coordinator.resolve_article([B])

    report = coordinator.evict()

    assert report.expired == ["A"]
    assert durable_store.get("A") is None
    assert durable_store.get("B") is not None
    assert "A" not in coordinator.volatile


def test_eviction_runs_every_n_inserts(durable_store, clock, stub_generator):
    coordinator = make_coordinator(
        durable_store, clock, [stub_generator], max_entries=1, evict_every_n_inserts=2
    )
    coordinator.resolve_article([A])
    clock.advance(1)
    assert durable_store.count() == 1

    coordinator.resolve_article([B])

    assert durable_store.count() == 1
    assert durable_store.get("B") is not None
    assert "A" not in coordinator.volatile


def test_cache_stats_report_both_layers(article_cache):
    article_cache.resolve_article([A, B])
    article_cache.resolve_article([B, A])

    stats = article_cache.stats()

    assert stats["volatile"]["keys"] == 1
    assert stats["volatile"]["hits"] == 1
    assert stats["durable"] == {"count": 1, "total_accesses": 0, "available": True}


def test_build_article_cache_uses_settings(session_factory, db_session):
    coordinator = build_article_cache(session_factory, ArticleResolver([FallbackArticleGenerator()]))

    article = coordinator.resolve_article([A])

    assert article.generator == "fallback"
    assert coordinator.single_flight is True
    coordinator.close()


def test_volatile_entry_evicted_by_another_process_is_regenerated(
    article_cache, durable_store, stub_generator
):
    article_cache.resolve_article([A])
    # Same steps as the Celery sweep, which cannot touch this process's memory.
    ArticleEvictionPolicy(durable_store, max_entries=0).run()
    assert durable_store.get("A") is None

    again = article_cache.resolve_article([A])

    assert again.source == "generated"
    assert len(stub_generator.calls) == 2
    assert durable_store.get("A") is not None
    assert article_cache.stats()["volatile"]["hits"] == 0


def test_volatile_hit_is_served_when_store_cannot_be_checked(article_cache, broken_store):
    first = article_cache.resolve_article([A, B])
    article_cache.store = broken_store

    again = article_cache.resolve_article([B, A])

    assert again.source == "volatile"
    assert again.text == first.text


def test_eviction_between_hit_and_volatile_write_is_not_cached(
    durable_store, clock, stub_generator, monkeypatch
):
    make_coordinator(durable_store, clock, [stub_generator]).resolve_article([A])
    cold = make_coordinator(durable_store, clock, [stub_generator], max_entries=0)
    record_hit = durable_store.record_hit

    def hit_then_evict(key, *, now):
        record = record_hit(key, now=now)
        cold.evict()
        return record

    monkeypatch.setattr(durable_store, "record_hit", hit_then_evict)

    article = cold.resolve_article([A])

    assert article.source == "durable"
    assert durable_store.get("A") is None
    assert "A" not in cold.volatile


def test_delete_removes_only_named_keys(durable_store, clock):
    for key in ("A", "A|B", "B"):
        durable_store.upsert(key, f"text for {key}", word_count=1, generator="llm", now=clock.now())

    assert durable_store.delete(["A|B", "missing"]) == 1
    assert durable_store.delete([]) == 0

    assert durable_store.exists("A|B") is False
    assert durable_store.exists("A") is True
    assert durable_store.count() == 2
