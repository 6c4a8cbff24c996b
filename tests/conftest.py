"""Pytest fixtures for service and API tests."""

import os
from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db import models  # noqa: F401  # Imported for side effects
from app.db.base import Base
from app.db.models import CachedArticle, DailyProgress, QuizResult, User, Word, WordProgress
from app.main import create_app
from app.services.article_cache import (
    ArticleCacheCoordinator,
    ArticleEvictionPolicy,
    DurableArticleStore,
)
from app.services.article_generator import (
    BLANK_MARKER,
    ArticleResolver,
    ArticleWord,
    FallbackArticleGenerator,
)
from app.utils.cache import VolatileArticleCache
from app.utils.exceptions import GenerationFailure


class FakeClock:
    """Wall clock and monotonic clock that only move when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)
        self.ticks = 1000.0

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)
        self.ticks += seconds


class StubArticleGenerator:
    def __init__(self, name: str = "llm", *, should_fail: bool = False, text: str | None = None):
        self.name = name
        self.should_fail = should_fail
        self.text = text
        self.calls: list[list[str]] = []

    def generate(self, words):
        self.calls.append([word.id for word in words])
        if self.should_fail:
            raise GenerationFailure(f"{self.name} unavailable")
        if self.text is not None:
            return self.text
        return " ".join(f"Sentence {index} needs {BLANK_MARKER} here." for index, _ in enumerate(words))


def make_coordinator(
    store: DurableArticleStore,
    clock: FakeClock,
    generators,
    *,
    ttl_seconds: int = 3600,
    max_keys: int = 100,
    max_age_seconds: int = 86400,
    max_entries: int = 100,
    evict_every_n_inserts: int = 10,
    single_flight: bool = True,
) -> ArticleCacheCoordinator:
    return ArticleCacheCoordinator(
        store=store,
        volatile=VolatileArticleCache(ttl_seconds=ttl_seconds, max_keys=max_keys, clock=clock.monotonic),
        resolver=ArticleResolver(generators),
        eviction=ArticleEvictionPolicy(
            store, max_age_seconds=max_age_seconds, max_entries=max_entries, clock=clock.now
        ),
        evict_every_n_inserts=evict_every_n_inserts,
        single_flight=single_flight,
        clock=clock.now,
    )


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture()
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        for model in (QuizResult, DailyProgress, WordProgress, CachedArticle, User, Word):
            db.query(model).delete()
        db.commit()
        db.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def stub_generator() -> StubArticleGenerator:
    return StubArticleGenerator()


@pytest.fixture()
def durable_store(session_factory, db_session) -> DurableArticleStore:
    return DurableArticleStore(session_factory)


@pytest.fixture()
def article_cache(durable_store, clock, stub_generator) -> ArticleCacheCoordinator:
    return make_coordinator(durable_store, clock, [stub_generator, FallbackArticleGenerator()])


@pytest.fixture()
def vocabulary(db_session) -> list[Word]:
    words = [
        Word(
            id="word-1",
            word="Serendipity",
            definition="The occurrence of pleasant things that happen by chance",
            synonym="Luck",
            usages=["Finding that rare book was pure serendipity."],
            difficulty_level=3,
            category="literary",
        ),
        Word(
            id="word-2",
            word="Ubiquitous",
            definition="Present, appearing, or found everywhere",
            synonym="Widespread",
            usages=["Smartphones have become ubiquitous."],
            difficulty_level=3,
            category="academic",
        ),
        Word(
            id="word-3",
            word="Ephemeral",
            definition="Lasting for a very short time",
            synonym="Temporary",
            usages=["Social media trends are ephemeral."],
            difficulty_level=3,
            category="literary",
        ),
        Word(
            id="word-4",
            word="Pernicious",
            definition="Having a harmful effect, especially in a gradual or subtle way",
            synonym="Harmful",
            usages=[],
            difficulty_level=4,
            category="academic",
        ),
    ]
    db_session.add_all(words)
    db_session.commit()
    return words


@pytest.fixture()
def article_words(vocabulary) -> list[ArticleWord]:
    return [ArticleWord(id=w.id, word=w.word, definition=w.definition) for w in vocabulary]


@pytest.fixture()
def learner(db_session) -> User:
    user = User(id="user-test", device_id="device-test")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def client(db_session: Session, article_cache) -> Generator[TestClient, None, None]:
    app = create_app(article_cache=article_cache)

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture()
async def async_client(db_session: Session, article_cache) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app(article_cache=article_cache)
    # ASGITransport does not run the lifespan.
    app.state.article_cache = article_cache

    async def override_get_db() -> AsyncGenerator[Session, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
