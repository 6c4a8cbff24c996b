"""Two-layer cache in front of article generation.

Lookups go volatile -> durable -> generate. The durable store is the source
of truth; the volatile layer only ever holds text that was read from or
successfully written to it, and can be dropped at any time.
"""
from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.db.models.article_cache import CachedArticle
from app.services.article_generator import (
    ArticleResolver,
    ArticleWord,
    FallbackArticleGenerator,
    GeneratedArticle,
    count_blanks,
)
from app.utils.cache import VolatileArticleCache, build_article_key
from app.utils.exceptions import (
    GenerationFailure,
    GenerationQualityWarning,
    InvalidInputError,
    StoreUnavailableError,
)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CachedArticleRecord:
    """Detached snapshot of a durable cache row."""

    key: str
    text: str
    word_count: int
    generator: Optional[str]
    created_at: datetime
    last_accessed_at: datetime
    access_count: int

    @classmethod
    def from_row(cls, row: CachedArticle) -> "CachedArticleRecord":
        return cls(
            key=row.cache_key,
            text=row.article_text,
            word_count=row.word_count,
            generator=row.generator,
            created_at=row.created_at,
            last_accessed_at=row.last_accessed_at,
            access_count=row.access_count or 0,
        )


class DurableArticleStore:
    """SQL-backed article cache with access bookkeeping.

    Every public method opens its own short-lived session so the store can be
    shared by concurrent requests. Database errors surface as
    :class:`StoreUnavailableError`.
    """

    def __init__(self, session_factory: sessionmaker | Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreUnavailableError(f"Article store unavailable: {exc}") from exc
        finally:
            db.close()

    def get(self, key: str) -> CachedArticleRecord | None:
        with self._session() as db:
            row = db.scalars(select(CachedArticle).where(CachedArticle.cache_key == key)).first()
            return CachedArticleRecord.from_row(row) if row else None

    def exists(self, key: str) -> bool:
        with self._session() as db:
            return db.scalar(select(CachedArticle.id).where(CachedArticle.cache_key == key)) is not None

    def record_hit(self, key: str, *, now: datetime) -> CachedArticleRecord | None:
        """Return the entry for ``key`` after bumping its access statistics."""

        with self._session() as db:
            updated = db.execute(
                update(CachedArticle)
                .where(CachedArticle.cache_key == key)
                .values(
                    access_count=CachedArticle.access_count + 1,
                    last_accessed_at=now,
                )
            )
            if not updated.rowcount:
                db.rollback()
                return None
            db.commit()
            row = db.scalars(select(CachedArticle).where(CachedArticle.cache_key == key)).first()
            return CachedArticleRecord.from_row(row) if row else None

    def upsert(
        self,
        key: str,
        text: str,
        *,
        word_count: int,
        generator: str | None,
        now: datetime,
    ) -> bool:
        """Store ``text`` under ``key``; return True when a new row was created.

        A concurrent writer that already inserted the same key is not an
        error: its row is overwritten with this text.
        """

        with self._session() as db:
            db.add(
                CachedArticle(
                    cache_key=key,
                    article_text=text,
                    word_count=word_count,
                    generator=generator,
                    created_at=now,
                    last_accessed_at=now,
                    access_count=0,
                )
            )
            try:
                db.commit()
                return True
            except IntegrityError:
                db.rollback()
            db.execute(
                update(CachedArticle)
                .where(CachedArticle.cache_key == key)
                .values(
                    article_text=text,
                    word_count=word_count,
                    generator=generator,
                    last_accessed_at=now,
                )
            )
            db.commit()
            logger.debug("Durable article entry already existed, overwritten", key=key)
            return False

    def delete(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        with self._session() as db:
            result = db.execute(delete(CachedArticle).where(CachedArticle.cache_key.in_(list(keys))))
            db.commit()
            return result.rowcount or 0

    def delete_accessed_before(self, cutoff: datetime) -> list[str]:
        """Delete entries last read before ``cutoff`` and return their keys."""

        with self._session() as db:
            keys = list(
                db.scalars(
                    select(CachedArticle.cache_key).where(CachedArticle.last_accessed_at < cutoff)
                )
            )
            if keys:
                db.execute(delete(CachedArticle).where(CachedArticle.cache_key.in_(keys)))
                db.commit()
            return keys

    def delete_least_recently_accessed(self, count: int) -> list[str]:
        """Delete the ``count`` entries with the oldest ``last_accessed_at``."""

        if count <= 0:
            return []
        with self._session() as db:
            keys = list(
                db.scalars(
                    select(CachedArticle.cache_key)
                    .order_by(CachedArticle.last_accessed_at.asc(), CachedArticle.created_at.asc())
                    .limit(count)
                )
            )
            if keys:
                db.execute(delete(CachedArticle).where(CachedArticle.cache_key.in_(keys)))
                db.commit()
            return keys

    def count(self) -> int:
        with self._session() as db:
            return int(db.scalar(select(func.count()).select_from(CachedArticle)) or 0)

    def stats(self) -> dict[str, int]:
        with self._session() as db:
            count, total = db.execute(
                select(func.count(CachedArticle.id), func.coalesce(func.sum(CachedArticle.access_count), 0))
            ).one()
            return {"count": int(count or 0), "total_accesses": int(total or 0)}


@dataclass(slots=True)
class EvictionReport:
    expired: list[str] = field(default_factory=list)
    trimmed: list[str] = field(default_factory=list)

    @property
    def removed_keys(self) -> list[str]:
        return [*self.expired, *self.trimmed]

    def as_dict(self) -> dict[str, int]:
        return {"expired": len(self.expired), "trimmed": len(self.trimmed)}


class ArticleEvictionPolicy:
    """Age expiry followed by least-recently-accessed trimming."""

    def __init__(
        self,
        store: DurableArticleStore,
        *,
        max_age_seconds: int | None = None,
        max_entries: int | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.max_age = timedelta(
            seconds=settings.ARTICLE_DURABLE_MAX_AGE_SECONDS if max_age_seconds is None else max_age_seconds
        )
        self.max_entries = settings.ARTICLE_DURABLE_MAX_ENTRIES if max_entries is None else max_entries
        self.clock = clock

    def expire(self, now: datetime | None = None) -> list[str]:
        cutoff = (now or self.clock()) - self.max_age
        return self.store.delete_accessed_before(cutoff)

    def trim(self) -> list[str]:
        overflow = self.store.count() - self.max_entries
        if overflow <= 0:
            return []
        return self.store.delete_least_recently_accessed(overflow)

    def run(self, now: datetime | None = None) -> EvictionReport:
        report = EvictionReport(expired=self.expire(now), trimmed=self.trim())
        if report.removed_keys:
            logger.info("Evicted cached articles", **report.as_dict())
        return report


@dataclass(slots=True)
class ResolvedArticle:
    """Article handed to the quiz flow."""

    key: str
    text: str
    words: list[ArticleWord]
    source: str
    generator: Optional[str] = None
    access_count: Optional[int] = None
    persisted: bool = True
    quality_warning: Optional[GenerationQualityWarning] = None

    @property
    def blank_count(self) -> int:
        return count_blanks(self.text)


class ArticleCacheCoordinator:
    """Resolve articles for word sets through the volatile and durable caches."""

    def __init__(
        self,
        *,
        store: DurableArticleStore,
        volatile: VolatileArticleCache,
        resolver: ArticleResolver,
        eviction: ArticleEvictionPolicy,
        evict_every_n_inserts: int | None = None,
        single_flight: bool | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.volatile = volatile
        self.resolver = resolver
        self.eviction = eviction
        self.evict_every_n_inserts = max(
            1,
            settings.ARTICLE_EVICTION_EVERY_N_INSERTS
            if evict_every_n_inserts is None
            else evict_every_n_inserts,
        )
        self.single_flight = settings.ARTICLE_SINGLE_FLIGHT if single_flight is None else single_flight
        self.clock = clock
        self._fallback = FallbackArticleGenerator()
        self._inserts_since_eviction = 0
        self._counter_lock = threading.Lock()
        self._flight_guard = threading.Lock()
        self._flights: dict[str, list] = {}
        self._eviction_lock = threading.Lock()
        self._evictions = 0

    def resolve_article(self, words: Sequence[ArticleWord]) -> ResolvedArticle:
        """Return cached or freshly generated article text for ``words``.

        Only :class:`InvalidInputError` escapes; generation and storage
        failures are logged and absorbed.
        """

        unique = {word.id: word for word in words}
        if not unique:
            raise InvalidInputError("At least one word is required")
        key = build_article_key(unique)
        ordered = [unique[word_id] for word_id in sorted(unique)]

        cached = self._lookup(key, ordered)
        if cached is not None:
            return cached

        with self._in_flight(key):
            if self.single_flight:
                cached = self._lookup(key, ordered)
                if cached is not None:
                    return cached
            return self._generate_and_store(key, ordered)

    def _lookup(self, key: str, words: list[ArticleWord]) -> ResolvedArticle | None:
        text = self.volatile.get(key)
        if text is not None and self._still_stored(key):
            logger.debug("Article cache hit", layer="volatile", key=key)
            return ResolvedArticle(key=key, text=text, words=words, source="volatile")

        epoch = self._eviction_epoch()
        try:
            record = self.store.record_hit(key, now=self.clock())
        except StoreUnavailableError as exc:
            logger.error("Durable article lookup failed", key=key, error=exc.message)
            return None
        if record is None:
            return None

        self._cache_unless_evicted(key, record.text, epoch)
        logger.info("Article cache hit", layer="durable", key=key, access_count=record.access_count)
        return ResolvedArticle(
            key=key,
            text=record.text,
            words=words,
            source="durable",
            generator=record.generator,
            access_count=record.access_count,
        )

    def _generate_and_store(self, key: str, words: list[ArticleWord]) -> ResolvedArticle:
        logger.info("Article cache miss, generating", key=key, words=len(words))
        try:
            generated = self.resolver.resolve(words)
        except GenerationFailure as exc:
            logger.error("Article generation chain failed, using templates", key=key, error=exc.message)
            generated = GeneratedArticle(text=self._fallback.generate(words), generator=self._fallback.name)

        article = ResolvedArticle(
            key=key,
            text=generated.text,
            words=words,
            source="generated",
            generator=generated.generator,
            access_count=0,
            quality_warning=generated.quality_warning,
        )

        epoch = self._eviction_epoch()
        try:
            inserted = self.store.upsert(
                key,
                generated.text,
                word_count=len(words),
                generator=generated.generator,
                now=self.clock(),
            )
        except StoreUnavailableError as exc:
            logger.error("Could not persist generated article", key=key, error=exc.message)
            article.persisted = False
            return article

        self._cache_unless_evicted(key, generated.text, epoch)
        if inserted:
            self._note_insert()
        return article

    def _still_stored(self, key: str) -> bool:
        """Check a volatile hit against the durable row.

        Rows can be evicted by another process (the Celery sweep) that cannot
        reach this process's memory.
        """

        try:
            present = self.store.exists(key)
        except StoreUnavailableError as exc:
            logger.warning("Serving volatile article unverified", key=key, error=exc.message)
            return True
        if not present:
            self.volatile.revoke(key)
            logger.info("Dropped volatile article evicted elsewhere", key=key)
        return present

    def _eviction_epoch(self) -> int:
        with self._eviction_lock:
            return self._evictions

    def _cache_unless_evicted(self, key: str, text: str, epoch: int) -> None:
        # An eviction that finished since ``epoch`` may have deleted this row.
        with self._eviction_lock:
            if self._evictions == epoch:
                self.volatile.set(key, text)

    def _note_insert(self) -> None:
        with self._counter_lock:
            self._inserts_since_eviction += 1
            due = self._inserts_since_eviction >= self.evict_every_n_inserts
            if due:
                self._inserts_since_eviction = 0
        if due:
            try:
                self.evict()
            except StoreUnavailableError as exc:
                logger.error("Opportunistic article eviction failed", error=exc.message)

    def evict(self) -> EvictionReport:
        """Run the eviction policy and drop evicted keys from the volatile layer."""

        report = self.eviction.run(self.clock())
        if report.removed_keys:
            with self._eviction_lock:
                self._evictions += 1
                self.volatile.invalidate(*report.removed_keys)
        self.volatile.purge_expired()
        return report

    def stats(self) -> dict[str, dict]:
        try:
            durable: dict = self.store.stats()
            durable["available"] = True
        except StoreUnavailableError as exc:
            logger.error("Durable article stats unavailable", error=exc.message)
            durable = {"count": 0, "total_accesses": 0, "available": False}
        return {"volatile": self.volatile.stats(), "durable": durable}

    @contextmanager
    def _in_flight(self, key: str) -> Iterator[None]:
        if not self.single_flight:
            yield
            return
        with self._flight_guard:
            flight = self._flights.setdefault(key, [threading.Lock(), 0])
            flight[1] += 1
        try:
            with flight[0]:
                yield
        finally:
            with self._flight_guard:
                flight[1] -= 1
                if flight[1] == 0:
                    self._flights.pop(key, None)

    def close(self) -> None:
        self.volatile.clear()
        self.resolver.close()


def build_article_cache(
    session_factory: sessionmaker | Callable[[], Session],
    resolver: ArticleResolver,
    *,
    clock: Clock = utcnow,
) -> ArticleCacheCoordinator:
    """Wire a coordinator from settings."""

    store = DurableArticleStore(session_factory)
    return ArticleCacheCoordinator(
        store=store,
        volatile=VolatileArticleCache(
            ttl_seconds=settings.ARTICLE_CACHE_TTL_SECONDS,
            max_keys=settings.ARTICLE_CACHE_MAX_KEYS,
        ),
        resolver=resolver,
        eviction=ArticleEvictionPolicy(store, clock=clock),
        clock=clock,
    )


__all__ = [
    "ArticleCacheCoordinator",
    "ArticleEvictionPolicy",
    "CachedArticleRecord",
    "DurableArticleStore",
    "EvictionReport",
    "ResolvedArticle",
    "build_article_cache",
]
