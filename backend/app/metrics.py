from __future__ import annotations

from typing import Callable, Optional

from prometheus_client import Counter
from prometheus_client.core import CounterMetricFamily

from mockup.cache import CacheStats, GarmentImageCache

mockups_rendered = Counter("mockup_exports_total", "Mockup PNGs exported with the garment composited")
mockup_fallbacks = Counter("mockup_design_only_exports_total", "Exports that fell back to the design layer alone")
mockup_failures = Counter("mockup_failures_total", "Requests that failed in a pipeline stage", ["stage"])
previews_rendered = Counter("mockup_previews_total", "Recolored garment previews served")


class GarmentCacheCollector:
    """Exports the keyed-garment cache counters of whichever pipeline is live."""

    def __init__(self, cache_getter: Callable[[], Optional[GarmentImageCache]]) -> None:
        self._cache_getter = cache_getter

    def collect(self):
        cache = self._cache_getter()
        stats = cache.stats if cache is not None else CacheStats()
        lookups = CounterMetricFamily(
            "mockup_garment_cache_lookups",
            "Keyed garment image lookups by outcome",
            labels=["outcome"],
        )
        lookups.add_metric(["hit"], stats.hits)
        lookups.add_metric(["miss"], stats.misses)
        lookups.add_metric(["coalesced"], stats.coalesced)
        yield lookups
