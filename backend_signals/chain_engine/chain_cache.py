"""
Get-or-compute cache for detected chains.

Keyed by (entity_id, signal_set_version, config_key). A refreshed entity gets
a new version, so stale chains are never served; invalidation and pruning
are explicit operations. Concurrent requests for the same key compute once:
the first caller holds a per-key lock while later callers wait and then read
the stored result. Entries are stored as tuples so callers cannot mutate
them. Optional TTL (seconds, monotonic clock); None means
entries live until invalidated.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Iterable, NamedTuple

from backend_signals.chain_engine.models import SignalChain
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)


class ChainCacheKey(NamedTuple):
    entity_id: str
    version: str
    config_key: str


class ChainCache:
    """Thread-safe chain cache with at-most-once computation per key."""

    def __init__(self, ttl_sec: float | None = None) -> None:
        self._ttl = ttl_sec
        self._store: dict[ChainCacheKey, tuple[tuple[SignalChain, ...], float | None]] = {}
        self._inflight: dict[ChainCacheKey, threading.Lock] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _get_locked(self, key: ChainCacheKey) -> tuple[SignalChain, ...] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if expiry is not None and time.monotonic() > expiry:
            del self._store[key]
            return None
        return value

    def get(self, key: ChainCacheKey) -> tuple[SignalChain, ...] | None:
        with self._lock:
            return self._get_locked(key)

    def set(self, key: ChainCacheKey, value: Iterable[SignalChain]) -> tuple[SignalChain, ...]:
        expiry = time.monotonic() + self._ttl if self._ttl is not None else None
        stored = tuple(value)
        with self._lock:
            self._store[key] = (stored, expiry)
        return stored

    def get_or_compute(
        self,
        key: ChainCacheKey,
        compute: Callable[[], Iterable[SignalChain]],
    ) -> tuple[SignalChain, ...]:
        """
        Return the cached chains for key, computing them at most once.

        Exceptions from compute propagate to the caller that ran it; nothing
        is stored, so a later call retries.
        """
        with self._lock:
            cached = self._get_locked(key)
            if cached is not None:
                self.hits += 1
                logger.debug("signal_chain_cache_hit", entity_id=key.entity_id, version=key.version)
                return cached
            key_lock = self._inflight.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                cached = self._get_locked(key)
                if cached is not None:
                    self.hits += 1
                    logger.debug("signal_chain_cache_hit", entity_id=key.entity_id, version=key.version)
                    return cached
                self.misses += 1
            try:
                return self.set(key, compute())
            finally:
                with self._lock:
                    if self._inflight.get(key) is key_lock:
                        del self._inflight[key]

    def invalidate(self, entity_id: str) -> int:
        """Drop every entry for entity_id; returns the number removed."""
        with self._lock:
            keys = [k for k in self._store if k.entity_id == entity_id]
            for k in keys:
                del self._store[k]
        if keys:
            logger.info("signal_chain_cache_invalidated", entity_id=entity_id, entries=len(keys))
        return len(keys)

    def prune(self, live_versions: dict[str, str]) -> int:
        """Drop entries whose entity is gone or whose version is no longer current."""
        with self._lock:
            stale = [k for k in self._store if live_versions.get(k.entity_id) != k.version]
            for k in stale:
                del self._store[k]
        return len(stale)

    def entity_ids(self) -> Iterable[str]:
        with self._lock:
            return {k.entity_id for k in self._store}

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
