"""Bounded plot cache keyed by (level_name, x, z).

The cache holds the most recently observed Plot for a coordinate, empty
sentinels included. Eviction drops the oldest-inserted entry. A cache of
size 0 is disabled: get() always misses and put() does nothing.

Usage:
    cache = PlotCache(max_size=256)
    cache.put(plot)
    cached = cache.get("world", 0, 0)
"""

from __future__ import annotations

from collections import OrderedDict

from plotgrid.core.plot import Plot, PlotKey
from plotgrid.core.spiral import Coordinate, in_ring


class PlotCache:
    """Size-bounded coordinate -> Plot mapping.

    Args:
        max_size: Maximum entries kept (0 disables caching).
    """

    def __init__(self, max_size: int = 0):
        if max_size < 0:
            raise ValueError(f"Cache size must be >= 0, got {max_size}")
        self._max_size = max_size
        self._entries: OrderedDict[PlotKey, Plot] = OrderedDict()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def enabled(self) -> bool:
        return self._max_size > 0

    def get(self, level_name: str, x: int, z: int) -> Plot | None:
        """Return the cached plot for a coordinate, or None on a miss."""
        return self._entries.get((level_name, x, z))

    def put(self, plot: Plot) -> None:
        """Store plot, replacing any entry for its coordinate.

        A replaced entry moves to the newest position. Inserting a new key into
        a full cache evicts the oldest entry first.
        """
        if not self.enabled:
            return
        key = plot.key
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = plot

    def remove(self, level_name: str, x: int, z: int) -> bool:
        """Drop a coordinate. Returns True if it was cached."""
        return self._entries.pop((level_name, x, z), None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def claimed_in_ring(self, level_name: str, radius: int) -> set[Coordinate]:
        """Coordinates of cached claimed plots lying on one ring of a level."""
        return {
            (plot.x, plot.z)
            for (level, x, z), plot in self._entries.items()
            if level == level_name and plot.is_claimed and in_ring(x, z, radius)
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
