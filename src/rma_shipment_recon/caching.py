# src/rma_shipment_recon/caching.py

"""
Explicit, opt-in caching around the pure aggregation functions.

Nothing in the engine caches implicitly. A caller that wants to avoid
re-scanning the corpus on every page load wraps a function in TtlCache:

    cached = TtlCache(lambda: get_active_shipments(source), ttl_s=60)
    cached()            # computes
    cached()            # served from cache until the TTL expires
    cached.invalidate() # e.g. after a webhook updated a shipment

Only successful results are stored; exceptions propagate and leave the
cache untouched.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class TtlCache(Generic[T]):
    def __init__(
        self,
        func: Callable[..., T],
        ttl_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        self._func = func
        self._ttl_s = ttl_s
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Tuple[float, T]] = {}

    def __call__(self, *args: Hashable) -> T:
        now = self._clock()
        with self._lock:
            hit = self._entries.get(args)
            if hit is not None and now - hit[0] < self._ttl_s:
                return hit[1]

        value = self._func(*args)

        with self._lock:
            stamp = self._clock()
            self._purge_expired(stamp)
            self._entries[args] = (stamp, value)
        return value

    def _purge_expired(self, now: float) -> None:
        stale = [key for key, (stamp, _) in self._entries.items() if now - stamp >= self._ttl_s]
        for key in stale:
            del self._entries[key]

    def invalidate(self, *args: Hashable) -> None:
        """
        Drop one cached key, or everything when called without arguments.
        """
        with self._lock:
            if args:
                self._entries.pop(args, None)
            else:
                self._entries.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)


def cached(ttl_s: float, clock: Optional[Callable[[], float]] = None):
    """
    Decorator form of TtlCache. The wrapped function gains `.invalidate()`.
    """

    def decorator(func: Callable[..., T]) -> TtlCache[T]:
        return TtlCache(func, ttl_s=ttl_s, clock=clock or time.monotonic)

    return decorator


class CachedRecordSource:
    """
    Record source wrapper that serves `all()` and `get()` from a TtlCache.

    Call `invalidate()` after the upstream records change.
    """

    def __init__(self, source: Any, ttl_s: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.source = source
        self._all = TtlCache(lambda: source.all(), ttl_s=ttl_s, clock=clock)
        self._get = TtlCache(source.get, ttl_s=ttl_s, clock=clock)

    def all(self) -> List[Dict[str, Any]]:
        return self._all()

    def get(self, rma_id: str) -> Optional[Dict[str, Any]]:
        return self._get(rma_id)

    def invalidate(self) -> None:
        self._all.invalidate()
        self._get.invalidate()
