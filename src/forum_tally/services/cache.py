"""Process-wide read-through cache with per-entry TTL.

The cache is an advisory accelerator in front of the relational store. It is
constructed once at application startup and handed to the services that need
it; nothing in the service layer reaches for a module-level instance.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock
from typing import Any, TypeVar

__all__ = ["CacheEntry", "CacheSweeper", "ReadThroughCache"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING: Any = object()


@dataclass(slots=True)
class CacheEntry:
    """Stored value with the time it was inserted and its lifetime."""

    value: Any
    inserted_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl


class ReadThroughCache:
    """Thread-safe key/value store with passive and swept expiry.

    ``get``/``set``/``delete`` are individually atomic; there are no
    cross-key transactions and no size-based eviction.
    """

    def __init__(
        self,
        default_ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = RLock()

    def _lookup(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING
            if entry.expired(self._clock()):
                del self._entries[key]
                return _MISSING
            return entry.value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (default TTL if omitted)."""
        lifetime = self.default_ttl if ttl is None else float(ttl)
        if lifetime <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._entries[key] = CacheEntry(value=value, inserted_at=self._clock(), ttl=lifetime)

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_compute(self, key: str, compute: Callable[[], T], ttl: float | None = None) -> T:
        """Return the cached value for ``key`` or compute, store and return it.

        A failing cache never fails the read: lookup and store errors are
        logged and the freshly computed value is returned.
        """
        try:
            cached = self._lookup(key)
        except Exception as exc:
            logger.warning("Cache read failed for %s, computing live value: %s", key, exc)
            return compute()

        if cached is not _MISSING:
            return cached

        value = compute()
        try:
            self.set(key, value, ttl)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
        return value


class CacheSweeper:
    """Background task that periodically sweeps expired cache entries."""

    def __init__(self, cache: ReadThroughCache, interval_seconds: float) -> None:
        self.cache = cache
        self.interval = max(0.1, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                pass
            else:
                return

            try:
                removed = self.cache.sweep()
            except Exception as e:
                logger.error("CacheSweeper failed to sweep: %s", e, exc_info=True)
                continue
            if removed:
                logger.debug("Swept %d expired cache entries", removed)
