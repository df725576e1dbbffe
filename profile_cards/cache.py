"""
Process-lifetime memory caches.

Two independent tiers: raw statistics per account and rendered documents per
(account, render configuration). Entries go stale after the tier TTL. Without
``max_entries`` a tier grows with every distinct key it has seen; set a bound
to get least-recently-used eviction.
"""

from __future__ import annotations
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from .config import DEFAULT_DOCUMENT_TTL, DEFAULT_STATS_TTL
from .models import CacheEntry

logger = logging.getLogger(__name__)

STATS_TIER = "stats"
DOCUMENTS_TIER = "documents"


class _KeyLock:
    """Per-key computation lock plus the number of callers holding or awaiting it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class ExpiringCache:

    def __init__(
        self,
        ttl: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self.name = name
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._key_locks: Dict[str, _KeyLock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[CacheEntry]:
        """Returns the live entry for ``key`` or None when absent or stale."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry.stored_at >= self.ttl:
                return None
            self._entries.move_to_end(key)
            return entry

    def put(self, key: str, payload) -> CacheEntry:
        entry = CacheEntry(payload, self.clock())
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("%s: evicted %s", self.name, evicted)
        return entry

    def _acquire_key_lock(self, key: str) -> _KeyLock:
        with self._lock:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = self._key_locks[key] = _KeyLock()
            slot.users += 1
            return slot

    def _release_key_lock(self, key: str, slot: _KeyLock) -> None:
        # The last user removes the slot, so only keys in flight hold a lock.
        with self._lock:
            slot.users -= 1
            if slot.users == 0 and self._key_locks.get(key) is slot:
                del self._key_locks[key]

    def get_or_compute(self, key: str, compute: Callable[[], object], bypass: bool = False):
        """
        Returns a fresh cached payload or computes, stores and returns a new one.

        Concurrent callers for the same key wait for the first computation
        instead of repeating it. ``bypass`` forces a recompute; the result
        still overwrites the entry.
        """
        if not bypass:
            entry = self.get(key)
            if entry is not None:
                self._count(hit=True, key=key)
                return entry.payload
        slot = self._acquire_key_lock(key)
        try:
            with slot.lock:
                if not bypass:
                    entry = self.get(key)
                    if entry is not None:
                        self._count(hit=True, key=key)
                        return entry.payload
                self._count(hit=False, key=key)
                payload = compute()
                self.put(key, payload)
                return payload
        finally:
            self._release_key_lock(key, slot)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _count(self, hit: bool, key: str) -> None:
        with self._lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1
        logger.debug("%s %s: %s", self.name, "hit" if hit else "miss", key)


class TieredCache:
    """Owns the statistics tier and the rendered-document tier."""

    def __init__(
        self,
        stats_ttl: float = DEFAULT_STATS_TTL,
        document_ttl: float = DEFAULT_DOCUMENT_TTL,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.tiers: Dict[str, ExpiringCache] = {
            STATS_TIER: ExpiringCache(stats_ttl, max_entries, clock, STATS_TIER),
            DOCUMENTS_TIER: ExpiringCache(document_ttl, max_entries, clock, DOCUMENTS_TIER),
        }

    @property
    def stats(self) -> ExpiringCache:
        return self.tiers[STATS_TIER]

    @property
    def documents(self) -> ExpiringCache:
        return self.tiers[DOCUMENTS_TIER]

    def get_or_compute(self, tier: str, key: str, compute: Callable[[], object], bypass: bool = False):
        return self.tiers[tier].get_or_compute(key, compute, bypass)
