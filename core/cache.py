"""In-memory key/value cache with sliding expiration.

An item expires once ``expiration_seconds`` have passed without a successful
read; every hit restarts its clock. Expired items are invisible to readers
right away and are removed later by a background sweeper, which then notifies
``item_expired`` subscribers.

This cache is process-local. It is safe for concurrent access from threads
inside the same Python process, but it is not shared across workers/instances.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from core.config import CacheSettings
from core.errors import InvalidArgumentError, require_argument, require_key
from core.events import ExpirationNotifier
from core.sweeper import Sweeper, SweepReport

logger = logging.getLogger("kvcache")

Items = Union[Mapping[Hashable, Any], Iterable[Tuple[Hashable, Any]]]


class CacheItem:
    __slots__ = ("_key", "_value", "_expiration_seconds", "_time_func", "_truncate", "_touched_at")

    def __init__(
        self,
        key: Hashable,
        value: Any,
        expiration_seconds: float,
        *,
        time_func: Callable[[], float] = time.monotonic,
        truncate_elapsed: bool = False,
    ):
        require_key(key)
        if (
            not isinstance(expiration_seconds, (int, float))
            or isinstance(expiration_seconds, bool)
            or not expiration_seconds >= 0
        ):
            raise InvalidArgumentError(
                "expiration_seconds must be a non-negative number.", argument="expiration_seconds"
            )
        self._key = key
        self._value = value
        self._expiration_seconds = expiration_seconds
        self._time_func = time_func
        self._truncate = truncate_elapsed
        self._touched_at = time_func()

    @property
    def key(self) -> Hashable:
        return self._key

    @property
    def expiration_seconds(self) -> float:
        return self._expiration_seconds

    def read(self) -> Any:
        """Return the value and restart the freshness clock."""
        self._touched_at = self._time_func()
        return self._value

    def peek(self) -> Any:
        return self._value

    def elapsed(self) -> float:
        elapsed = self._time_func() - self._touched_at
        if self._truncate:
            return float(math.floor(elapsed))
        return elapsed

    @property
    def is_expired(self) -> bool:
        return self.elapsed() > self._expiration_seconds

    def __repr__(self) -> str:
        return f"CacheItem(key={self._key!r}, expiration_seconds={self._expiration_seconds})"


class CacheStore:
    def __init__(
        self,
        sweep_interval_seconds: Optional[float] = None,
        *,
        settings: Optional[CacheSettings] = None,
        time_func: Callable[[], float] = time.monotonic,
    ):
        settings = settings or CacheSettings.from_env()
        interval = settings.sweep_interval_seconds if sweep_interval_seconds is None else sweep_interval_seconds
        if interval <= 0:
            raise InvalidArgumentError(
                "sweep_interval_seconds must be greater than zero.", argument="sweep_interval_seconds"
            )

        self._items: Optional[Dict[Hashable, CacheItem]] = {}
        self._lock = threading.Lock()
        self._time_func = time_func
        self._truncate_elapsed = settings.truncate_elapsed

        self.item_expired = ExpirationNotifier()
        self._sweeper = Sweeper(
            self._snapshot,
            self._remove_expired,
            self.item_expired.notify,
            interval_seconds=interval,
            max_workers=settings.sweep_workers,
            parallel_threshold=settings.parallel_scan_threshold,
        )
        self._sweeper.start()

    def __enter__(self) -> "CacheStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def __len__(self) -> int:
        return self.count

    @property
    def count(self) -> int:
        """Entries currently held, including expired ones not yet swept."""
        with self._lock:
            return len(self._items) if self._items is not None else 0

    @property
    def sweep_interval_seconds(self) -> float:
        return self._sweeper.interval_seconds

    @property
    def closed(self) -> bool:
        return self._sweeper.stopped

    @property
    def last_sweep_report(self) -> Optional[SweepReport]:
        return self._sweeper.last_report

    def _new_item(self, key: Hashable, value: Any, expiration_seconds: float) -> CacheItem:
        return CacheItem(
            key,
            value,
            expiration_seconds,
            time_func=self._time_func,
            truncate_elapsed=self._truncate_elapsed,
        )

    def add_item(self, key: Hashable, value: Any, expiration_seconds: float) -> None:
        item = self._new_item(key, value, expiration_seconds)
        with self._lock:
            if self._items is None:
                self._items = {}
            self._items[key] = item

    def add_range_items(self, items: Items, expiration_seconds: float) -> None:
        require_argument(items, "items")
        pairs = items.items() if isinstance(items, Mapping) else items
        prepared = [self._new_item(key, value, expiration_seconds) for key, value in pairs]

        with self._lock:
            if self._items is None:
                self._items = {}
            for item in prepared:
                self._items[item.key] = item

    def try_get_item(self, key: Hashable) -> Tuple[Optional[Any], bool]:
        """Return ``(value, True)`` on a hit, ``(None, False)`` if absent or expired.

        A hit restarts the item's freshness clock.
        """
        require_key(key)
        with self._lock:
            if self._items is None:
                return None, False
            item = self._items.get(key)
            if item is None or item.is_expired:
                return None, False
            return item.read(), True

    def get(self, key: Hashable, default: Any = None) -> Any:
        value, found = self.try_get_item(key)
        return value if found else default

    def remove_item(self, key: Hashable) -> None:
        require_key(key)
        with self._lock:
            if self._items:
                self._items.pop(key, None)

    def remove_range_items(self, keys: Iterable[Hashable]) -> None:
        require_argument(keys, "keys")
        keys = [key for key in keys if key is not None]
        with self._lock:
            if not self._items:
                return
            for key in keys:
                self._items.pop(key, None)

    def clear(self) -> None:
        """Drop every entry without notifying subscribers."""
        with self._lock:
            self._items = None
        logger.debug("cache_cleared")

    def sweep(self) -> SweepReport:
        """Force a sweep cycle on the calling thread."""
        return self._sweeper.run_once()

    def shutdown(self, timeout: Optional[float] = None) -> None:
        self._sweeper.stop(timeout)

    close = shutdown

    def _snapshot(self) -> List[Tuple[Hashable, CacheItem]]:
        with self._lock:
            if not self._items:
                return []
            return list(self._items.items())

    def _remove_expired(self, keys: Sequence[Hashable]) -> List[Tuple[Hashable, Any]]:
        removed: List[Tuple[Hashable, Any]] = []
        with self._lock:
            if not self._items:
                return removed
            for key in keys:
                item = self._items.get(key)
                if item is None or not item.is_expired:
                    continue
                del self._items[key]
                removed.append((key, item.peek()))
        return removed
