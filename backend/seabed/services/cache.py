"""Time-bounded in-process cache for read paths.

Entries expire purely by time; writes elsewhere in the system (association
runs, imports) never evict anything, so a reader may observe data that is
stale by at most the entry's TTL (for sliding entries, at most the TTL
after the last read that missed). Three tiers are used by the map filter
service:

    ================================  ========  =======
    data                              policy    default
    ================================  ========  =======
    reference lookups                 absolute  24 h
    contractor / area / block lists   sliding   10 min
    nested map tree                   sliding   5 min
    ================================  ========  =======

The cache is safe for concurrent use. A short lock guards the entry table
only; ``get_or_create`` additionally serialises computation per key so
concurrent misses on the same key compute the value once, while misses on
different keys proceed in parallel. Per-key locks live only while a value
is being computed, and every ``set`` prunes expired entries, so distinct
keys that are never read again do not accumulate.

Example:
    >>> cache = TTLCache()
    >>> policy = CachePolicy.sliding_for(60)
    >>> cache.get_or_create("ContractTypes", lambda: ["Nodules"], policy)
    ['Nodules']
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from seabed.core import config

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclasses.dataclass(frozen=True)
class CachePolicy:
    """Expiry rule for one cache entry.

    Attributes:
        ttl_seconds: Lifetime in seconds.
        sliding: When True every hit pushes expiry ``ttl_seconds`` into the
            future; when False the entry expires ``ttl_seconds`` after it
            was stored regardless of reads.
    """

    ttl_seconds: float
    sliding: bool = False

    @classmethod
    def absolute_for(cls, ttl_seconds: float) -> CachePolicy:
        return cls(ttl_seconds=ttl_seconds, sliding=False)

    @classmethod
    def sliding_for(cls, ttl_seconds: float) -> CachePolicy:
        return cls(ttl_seconds=ttl_seconds, sliding=True)


@dataclasses.dataclass(frozen=True)
class CacheTiers:
    """The three policies used by the map filter service."""

    reference: CachePolicy
    lists: CachePolicy
    map_data: CachePolicy

    @classmethod
    def from_settings(cls, settings: config.Settings) -> CacheTiers:
        return cls(
            reference=CachePolicy.absolute_for(settings.reference_cache_ttl_seconds),
            lists=CachePolicy.sliding_for(settings.list_cache_ttl_seconds),
            map_data=CachePolicy.sliding_for(settings.map_data_cache_ttl_seconds),
        )


@dataclasses.dataclass
class _Entry:
    value: Any
    policy: CachePolicy
    expires_at: float


class TTLCache:
    """Key-value cache with per-entry absolute or sliding expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Create an empty cache.

        Args:
            clock: Monotonic seconds source; injectable for tests.
        """
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not _MISSING

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]

    def _lookup(self, key: str) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING
            if entry.expires_at <= now:
                del self._entries[key]
                return _MISSING
            if entry.policy.sliding:
                entry.expires_at = now + entry.policy.ttl_seconds
            return entry.value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` when absent or expired."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: Any, policy: CachePolicy) -> None:
        """Store a value under ``key`` with the given expiry policy.

        Expired entries under other keys are dropped at the same time.
        """
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            self._entries[key] = _Entry(
                value=value,
                policy=policy,
                expires_at=now + policy.ttl_seconds,
            )

    def get_or_create[T](
        self,
        key: str,
        factory: Callable[[], T],
        policy: CachePolicy,
    ) -> T:
        """Return the cached value or compute, store and return it.

        Concurrent callers missing on the same key wait for the first one
        to finish instead of computing the value again. Exceptions raised by
        ``factory`` propagate and nothing is stored.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        try:
            with key_lock:
                value = self._lookup(key)
                if value is not _MISSING:
                    return value

                logger.debug("Cache miss for %s", key)
                created = factory()
                self.set(key, created, policy)
                return created
        finally:
            with self._lock:
                if self._key_locks.get(key) is key_lock:
                    del self._key_locks[key]

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()
