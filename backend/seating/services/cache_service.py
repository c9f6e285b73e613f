# Overview: Generic TTL key-value cache backends with pattern-based invalidation.

from __future__ import annotations

import copy
import fnmatch
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

import redis

from ..errors import CacheError


DEFAULT_CACHE_MAX_ENTRIES = 1024


class BaseCache:
    """
    Chart-agnostic cache interface. Values must be JSON-compatible.

    keys() is only meant for bulk invalidation and is eventually consistent:
    a key written during a sweep may be missed.
    """

    def get(self, key: str) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self, pattern: str) -> list[str]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def delete_pattern(self, pattern: str) -> int:
        matched = self.keys(pattern)
        for key in matched:
            self.delete(key)
        return len(matched)


class NullCache(BaseCache):
    """Caching disabled: every lookup misses."""

    def get(self, key: str) -> Any:
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def keys(self, pattern: str) -> list[str]:
        return []

    def clear(self) -> None:
        return None


class MemoryCache(BaseCache):
    """In-process cache with LRU eviction and per-entry TTL."""

    def __init__(
        self,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(1, int(max_entries or DEFAULT_CACHE_MAX_ENTRIES))
        self._clock = clock
        self._store: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        self._lock = threading.RLock()

    def _is_expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and expires_at <= self._clock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            value, expires_at = entry
            if self._is_expired(expires_at):
                self._store.pop(key, None)
                return None
            self._store.move_to_end(key)
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        expires_at = None
        if ttl:
            expires_at = self._clock() + max(int(ttl), 1)
        with self._lock:
            self._store[key] = (copy.deepcopy(value), expires_at)
            self._store.move_to_end(key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self, pattern: str) -> list[str]:
        with self._lock:
            live = [
                key for key, (_, expires_at) in self._store.items()
                if not self._is_expired(expires_at)
            ]
        return [key for key in live if fnmatch.fnmatchcase(key, pattern)]

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class RedisCache(BaseCache):
    """Redis-backed cache; values are stored as JSON strings."""

    def __init__(self, url: Optional[str] = None, *, client=None) -> None:
        if client is None:
            if not url:
                raise CacheError("Redis cache requested but no redis URL configured")
            client = redis.Redis.from_url(url, decode_responses=True)
        self._client = client

    def get(self, key: str) -> Any:
        try:
            payload = self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError(f"Redis GET failed for {key}") from exc
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except ValueError:
            # Unreadable entry is a miss; drop it so the next write repairs it
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = json.dumps(value)
        try:
            if ttl:
                self._client.setex(key, max(int(ttl), 1), payload)
            else:
                self._client.set(key, payload)
        except redis.RedisError as exc:
            raise CacheError(f"Redis SET failed for {key}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise CacheError(f"Redis DEL failed for {key}") from exc

    def keys(self, pattern: str) -> list[str]:
        try:
            return [
                k.decode() if isinstance(k, bytes) else k
                for k in self._client.scan_iter(match=pattern)
            ]
        except redis.RedisError as exc:
            raise CacheError(f"Redis SCAN failed for {pattern}") from exc

    def delete_pattern(self, pattern: str) -> int:
        matched = self.keys(pattern)
        if not matched:
            return 0
        try:
            self._client.delete(*matched)
        except redis.RedisError as exc:
            raise CacheError(f"Redis DEL failed for {pattern}") from exc
        return len(matched)

    def clear(self) -> None:
        try:
            self._client.flushdb()
        except redis.RedisError as exc:
            raise CacheError("Redis FLUSHDB failed") from exc


def create_cache(config) -> BaseCache:
    """Build the cache backend named by SEATING_CACHE_BACKEND."""
    backend = str(config.get("SEATING_CACHE_BACKEND") or "memory").lower()
    if backend == "redis":
        return RedisCache(config.get("REDIS_URL"))
    if backend in {"none", "null", "off"}:
        return NullCache()
    if backend == "memory":
        return MemoryCache(max_entries=config.get("SEATING_CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES))
    raise ValueError(f"Unknown cache backend: {backend}")
