"""Canonical article keys and the process-local article cache."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable

from app.utils.exceptions import InvalidInputError

KEY_SEPARATOR = "|"


def build_article_key(word_ids: Iterable[str]) -> str:
    """Return the permutation-invariant key for a set of word identifiers.

    Duplicates collapse, identifiers are ordered by code point (the same order
    as their UTF-8 bytes) and joined with ``KEY_SEPARATOR``.
    """

    unique: set[str] = set()
    for word_id in word_ids:
        if not isinstance(word_id, str) or not word_id.strip():
            raise InvalidInputError("Word identifiers must be non-empty strings")
        if KEY_SEPARATOR in word_id:
            raise InvalidInputError(
                "Word identifier contains a reserved character",
                details={"word_id": word_id, "reserved": KEY_SEPARATOR},
            )
        unique.add(word_id)
    if not unique:
        raise InvalidInputError("At least one word identifier is required")
    return KEY_SEPARATOR.join(sorted(unique))


def split_article_key(key: str) -> list[str]:
    """Return the word identifiers encoded in a canonical key."""

    return key.split(KEY_SEPARATOR)


@dataclass
class _CacheEntry:
    expires_at: float | None
    payload: str


class VolatileArticleCache:
    """Thread-safe in-memory store with a TTL and an LRU capacity bound."""

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_keys: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_keys < 1:
            raise ValueError("max_keys must be positive")
        self._ttl = ttl_seconds
        self._max_keys = max_keys
        self._clock = clock
        self._lock = threading.Lock()
        self._local: OrderedDict[str, _CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._local.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                self._local.pop(key, None)
                self.misses += 1
                return None
            self._local.move_to_end(key)
            self.hits += 1
            return entry.payload

    def set(self, key: str, value: str) -> None:
        with self._lock:
            expires_at = self._clock() + self._ttl if self._ttl else None
            self._local[key] = _CacheEntry(expires_at=expires_at, payload=value)
            self._local.move_to_end(key)
            while len(self._local) > self._max_keys:
                self._local.popitem(last=False)

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._local.pop(key, None)

    def revoke(self, key: str) -> None:
        """Drop ``key`` right after ``get`` returned it and count that lookup as a miss."""

        with self._lock:
            if self._local.pop(key, None) is not None:
                self.hits -= 1
                self.misses += 1

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, entry in self._local.items()
                if entry.expires_at is not None and entry.expires_at <= now
            ]
            for key in expired:
                self._local.pop(key, None)
        return len(expired)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._local

    def __len__(self) -> int:
        with self._lock:
            return len(self._local)

    def stats(self) -> dict[str, float]:
        self.purge_expired()
        with self._lock:
            lookups = self.hits + self.misses
            return {
                "keys": len(self._local),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
            }

    def clear(self) -> None:
        """Drop every entry and reset counters."""

        with self._lock:
            self._local.clear()
            self.hits = 0
            self.misses = 0


__all__ = ["KEY_SEPARATOR", "VolatileArticleCache", "build_article_key", "split_article_key"]
