"""Read-through cache of daily price series shared by run tasks.

Many tasks (one per window length) need the same instrument. The first task
to ask for an instrument loads it; every later task, on any thread, gets the
stored series. Population is first-writer-wins: once a series is stored it is
never replaced.
"""
from __future__ import annotations

import threading
from typing import Callable, Optional

from common.logging import get_logger
from data.series import PriceSeries

logger = get_logger("cache")

Loader = Callable[[], PriceSeries]


class DailyDataCache:
    def __init__(self) -> None:
        self._series: dict[str, PriceSeries] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}

    def _key_lock(self, selection: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(selection, threading.Lock())

    def get(self, selection: str) -> Optional[PriceSeries]:
        with self._lock:
            return self._series.get(selection)

    def put(self, series: PriceSeries) -> PriceSeries:
        """Store ``series`` unless one is already cached; returns the cached series."""
        with self._lock:
            return self._series.setdefault(series.selection, series)

    def get_or_load(self, selection: str, loader: Loader) -> PriceSeries:
        """Return the cached series, calling ``loader`` only on the first request.

        Concurrent requests for the same selection wait for the first loader;
        a failing loader stores nothing and its exception propagates.
        """
        cached = self.get(selection)
        if cached is not None:
            return cached
        with self._key_lock(selection):
            cached = self.get(selection)
            if cached is not None:
                return cached
            series = loader()
            logger.debug("Cached %d prices for %s", len(series), selection)
            return self.put(series)

    def __contains__(self, selection: str) -> bool:
        return self.get(selection) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def __bool__(self) -> bool:
        # an empty cache is still a cache
        return True
