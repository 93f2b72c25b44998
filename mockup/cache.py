from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from .io_types import RasterImage

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0


class GarmentImageCache:
    """
    In-process memo of background-removed garment photos keyed by image location.
    At most one computation runs per key; concurrent callers wait on it.
    A failed computation is handed to every waiter and not stored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done: dict[str, RasterImage] = {}
        self._inflight: dict[str, "Future[RasterImage]"] = {}
        self.stats = CacheStats()

    def get(self, key: str) -> Optional[RasterImage]:
        with self._lock:
            return self._done.get(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._done

    def __len__(self) -> int:
        with self._lock:
            return len(self._done)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._done)

    def clear(self) -> None:
        with self._lock:
            self._done.clear()

    def get_or_compute(self, key: str, compute: Callable[[], RasterImage]) -> RasterImage:
        with self._lock:
            hit = self._done.get(key)
            if hit is not None:
                self.stats.hits += 1
                return hit
            fut = self._inflight.get(key)
            owner = fut is None
            if owner:
                fut = Future()
                self._inflight[key] = fut
                self.stats.misses += 1
            else:
                self.stats.coalesced += 1

        if not owner:
            return fut.result()

        logger.debug("Garment cache miss: %s", key)
        try:
            result = compute()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            fut.set_exception(exc)
            raise
        with self._lock:
            self._done[key] = result
            self._inflight.pop(key, None)
        fut.set_result(result)
        return result
