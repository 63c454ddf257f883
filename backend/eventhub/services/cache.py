"""
In-process cache with namespaces, TTL expiry and a size bound.

Event reads (detail and listing pages) are cached in the ``events``
namespace, which every event, attendance or user mutation evicts as a whole.
Logged-out tokens live in ``token_blacklist`` until they would have expired
anyway.

A single process-wide instance is assumed; entries are not shared between
service instances.
"""

import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from eventhub.config import settings

logger = logging.getLogger(__name__)

EVENTS = "events"
TOKEN_BLACKLIST = "token_blacklist"


@dataclass
class CacheEntry:
    value: Any
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


@dataclass
class NamespaceConfig:
    # None: no size bound, entries leave only by expiry
    max_entries: Optional[int]
    ttl_seconds: int


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0


@dataclass
class _Namespace:
    config: NamespaceConfig
    entries: "OrderedDict[str, CacheEntry]" = field(default_factory=OrderedDict)
    stats: CacheStats = field(default_factory=CacheStats)


class Cache:
    """Thread-safe namespaced cache.

    Each namespace keeps its entries in least-recently-used order; when a
    namespace is full the oldest entry is dropped.
    """

    def __init__(self, default: NamespaceConfig):
        self._default = default
        self._namespaces: Dict[str, _Namespace] = {}
        self._lock = threading.Lock()

    def configure(self, namespace: str, max_entries: Optional[int], ttl_seconds: int) -> None:
        with self._lock:
            self._namespaces[namespace] = _Namespace(NamespaceConfig(max_entries, ttl_seconds))

    def _namespace(self, name: str) -> _Namespace:
        ns = self._namespaces.get(name)
        if ns is None:
            ns = _Namespace(NamespaceConfig(self._default.max_entries, self._default.ttl_seconds))
            self._namespaces[name] = ns
        return ns

    def get(self, namespace: str, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or expired entry."""
        with self._lock:
            ns = self._namespace(namespace)
            entry = ns.entries.get(key)
            if entry is None:
                ns.stats.misses += 1
                return None
            if entry.is_expired():
                del ns.entries[key]
                ns.stats.misses += 1
                return None
            ns.entries.move_to_end(key)
            ns.stats.hits += 1
            return entry.value

    def put(self, namespace: str, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        with self._lock:
            ns = self._namespace(namespace)
            ttl = ns.config.ttl_seconds if ttl_seconds is None else ttl_seconds
            ns.entries[key] = CacheEntry(value, datetime.now(timezone.utc) + timedelta(seconds=ttl))
            ns.entries.move_to_end(key)
            if ns.config.max_entries is None:
                self._purge_expired(ns)
                return
            while len(ns.entries) > ns.config.max_entries:
                ns.entries.popitem(last=False)
                ns.stats.evictions += 1

    @staticmethod
    def _purge_expired(ns: _Namespace) -> None:
        """Drop expired entries from the oldest end, stopping at the first live one."""
        now = datetime.now(timezone.utc)
        while ns.entries:
            key, entry = next(iter(ns.entries.items()))
            if not entry.is_expired(now):
                break
            del ns.entries[key]

    def evict(self, namespace: str, key: str) -> bool:
        with self._lock:
            return self._namespace(namespace).entries.pop(key, None) is not None

    def evict_namespace(self, namespace: str) -> int:
        """Drop every entry in ``namespace``; returns how many were removed."""
        with self._lock:
            ns = self._namespace(namespace)
            removed = len(ns.entries)
            ns.entries.clear()
        if removed:
            logger.debug("Evicted %d entries from cache namespace '%s'", removed, namespace)
        return removed

    def size(self, namespace: str) -> int:
        with self._lock:
            return len(self._namespace(namespace).entries)

    def stats(self, namespace: str) -> CacheStats:
        with self._lock:
            s = self._namespace(namespace).stats
            return CacheStats(s.hits, s.misses, s.evictions)

    def clear(self) -> None:
        with self._lock:
            for ns in self._namespaces.values():
                ns.entries.clear()
                ns.stats = CacheStats()


def cache_key(*parts: Any) -> str:
    """Encode key parts as a JSON array, so separators inside a part cannot collide."""
    return json.dumps([getattr(p, "value", p) for p in parts], default=str)


def init_cache() -> Cache:
    cache = Cache(NamespaceConfig(settings.CACHE_MAX_ENTRIES, settings.CACHE_TTL_SECONDS))
    cache.configure(EVENTS, settings.CACHE_MAX_ENTRIES, settings.CACHE_TTL_SECONDS)
    # Unbounded: a revoked token only leaves by expiring.
    cache.configure(TOKEN_BLACKLIST, None, settings.TOKEN_BLACKLIST_TTL_SECONDS)
    return cache


_cache = init_cache()


def get_cache() -> Cache:
    return _cache


def evict_events() -> None:
    """Full invalidation of cached event reads, run after every mutation."""
    _cache.evict_namespace(EVENTS)
